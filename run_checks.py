from fastapi.testclient import TestClient
from impact_map.main import app

client = TestClient(app)

print('ROOT:')
print(client.get('/').json())

print('\nHEALTH:')
print(client.get('/health').json())

print('\nMAP SESSION:')
issues = [
    {"id": "a", "latitude": 40.0, "longitude": -74.0, "severity": "Critical"},
    {"id": "b", "latitude": 40.0001, "longitude": -74.0001, "severity": "Low"},
    {"id": "c", "latitude": 40.05, "longitude": -74.05},
]
view = client.post('/map/sessions', json={"issues": issues}).json()
print(view["state"]["interaction_state"], [(m["id"], len(m["members"])) for m in view["markers"]])

print('\nDB HEALTH:')
try:
    resp = client.get('/health/db')
    print(resp.status_code)
    try:
        print(resp.json())
    except Exception:
        print(resp.text)
except Exception as e:
    print('DB call raised exception:', e)
