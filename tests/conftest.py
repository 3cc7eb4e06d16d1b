from __future__ import annotations

from typing import Optional

import pytest

from impact_map.config import firebase
from impact_map.config.mock_firestore import MockFirestore
from impact_map.models.issue import Issue, Severity
from impact_map.models.map import Bounds
from impact_map.services import issue_store
from impact_map.services.map_sessions import get_session_registry


def make_issue(
    issue_id: str,
    lat: float,
    lng: float,
    severity: Optional[Severity] = Severity.LOW,
    **extra,
) -> Issue:
    return Issue(id=issue_id, latitude=lat, longitude=lng, severity=severity, **extra)


@pytest.fixture
def plane_bounds() -> Bounds:
    """Bounds where x == lng and y == 100 - lat."""
    return Bounds(min_lat=0.0, max_lat=100.0, min_lng=0.0, max_lng=100.0)


@pytest.fixture
def mock_db(monkeypatch: pytest.MonkeyPatch) -> MockFirestore:
    db = MockFirestore(path=None)
    monkeypatch.setattr(firebase, "db", db)
    issue_store.reset_issue_store()
    yield db
    issue_store.reset_issue_store()


@pytest.fixture
def client(mock_db: MockFirestore):
    from fastapi.testclient import TestClient

    from impact_map.main import app

    get_session_registry().clear()
    yield TestClient(app)
    get_session_registry().clear()
