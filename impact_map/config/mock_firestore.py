"""
Mock Firestore for local development and tests.

Implements the small subset of the firebase_admin Firestore client the
issue store uses: collection(), document().set()/get(), where(), limit(),
stream() and collections(). Data lives in memory and is optionally
mirrored to a JSON file.
"""

from typing import Any, Dict, List, Optional
import json
import logging
import os
import uuid

logger = logging.getLogger(__name__)


_OPERATORS = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a is not None and a < b,
    "<=": lambda a, b: a is not None and a <= b,
    ">": lambda a, b: a is not None and a > b,
    ">=": lambda a, b: a is not None and a >= b,
    "in": lambda a, b: a in b,
}


class MockDocumentSnapshot:
    def __init__(self, doc_id: str, data: Optional[Dict[str, Any]]):
        self.id = doc_id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[Dict[str, Any]]:
        return dict(self._data) if self._data is not None else None


class MockDocumentReference:
    def __init__(self, store: "MockFirestore", collection: str, doc_id: str):
        self._store = store
        self._collection = collection
        self.id = doc_id

    def set(self, data: Dict[str, Any]) -> None:
        self._store._data.setdefault(self._collection, {})[self.id] = dict(data)
        self._store._save()

    def get(self) -> MockDocumentSnapshot:
        return MockDocumentSnapshot(self.id, self._store._data.get(self._collection, {}).get(self.id))

    def delete(self) -> None:
        self._store._data.get(self._collection, {}).pop(self.id, None)
        self._store._save()


class MockQuery:
    def __init__(self, store: "MockFirestore", collection: str, filters=None, max_results: Optional[int] = None):
        self._store = store
        self._collection = collection
        self._filters = list(filters or [])
        self._limit = max_results

    def where(self, field_path: str, op_string: str, value: Any) -> "MockQuery":
        if op_string not in _OPERATORS:
            raise ValueError(f"Unsupported operator in mock Firestore: {op_string}")
        return MockQuery(self._store, self._collection, self._filters + [(field_path, op_string, value)], self._limit)

    def limit(self, count: int) -> "MockQuery":
        return MockQuery(self._store, self._collection, self._filters, count)

    def stream(self) -> List[MockDocumentSnapshot]:
        results = []
        for doc_id, data in self._store._data.get(self._collection, {}).items():
            if all(_OPERATORS[op](data.get(field), value) for field, op, value in self._filters):
                results.append(MockDocumentSnapshot(doc_id, data))
                if self._limit is not None and len(results) >= self._limit:
                    break
        return results


class MockCollectionReference(MockQuery):
    def __init__(self, store: "MockFirestore", collection: str):
        super().__init__(store, collection)
        self.id = collection

    def document(self, doc_id: Optional[str] = None) -> MockDocumentReference:
        return MockDocumentReference(self._store, self._collection, doc_id or uuid.uuid4().hex[:20])


class MockFirestore:
    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        if path and os.path.exists(path):
            with open(path, "r", encoding="utf-8") as f:
                self._data = json.load(f)
            logger.info(f"Loaded mock Firestore from {path}")

    def collection(self, name: str) -> MockCollectionReference:
        return MockCollectionReference(self, name)

    def collections(self) -> List[MockCollectionReference]:
        return [MockCollectionReference(self, name) for name in self._data]

    def _save(self) -> None:
        if not self.path:
            return
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2, default=str)


def get_mock_db(path: Optional[str] = None) -> MockFirestore:
    return MockFirestore(path)
