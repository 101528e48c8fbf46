"""
Pytest configuration and shared fixtures for licensing-admin tests.
"""

import os
import uuid
from datetime import UTC, datetime
from typing import Any

import pytest

# Set environment variables at module level (before any imports)
os.environ["GCP_PROJECT_ID"] = "licensing-admin-test"
os.environ["API_BASE_URL"] = "https://api.test.local/api"
os.environ.pop("USE_CLOUD_LOGGING", None)

# Don't set GOOGLE_APPLICATION_CREDENTIALS to avoid auth errors during module import
# GCP clients will be mocked in tests anyway
if "GOOGLE_APPLICATION_CREDENTIALS" in os.environ:
    del os.environ["GOOGLE_APPLICATION_CREDENTIALS"]

from google.api_core.exceptions import NotFound  # noqa: E402
from google.cloud import firestore  # noqa: E402


def _resolve(value: Any) -> Any:
    if value is firestore.SERVER_TIMESTAMP:
        return datetime.now(UTC)
    if isinstance(value, dict):
        return {k: _resolve(v) for k, v in value.items()}
    return value


def _apply(target: dict, data: dict) -> dict:
    for key, value in data.items():
        if value is firestore.DELETE_FIELD:
            target.pop(key, None)
        else:
            target[key] = _resolve(value)
    return target


def _matches(data: dict, field_path: str, op: str, value: Any) -> bool:
    if field_path not in data:
        return False
    actual = data[field_path]
    if op == "==":
        return actual == value
    if op == "!=":
        return actual != value
    if op == "in":
        return actual in value
    if op == "array_contains":
        return isinstance(actual, list) and value in actual
    try:
        if op == "<":
            return actual < value
        if op == "<=":
            return actual <= value
        if op == ">":
            return actual > value
        if op == ">=":
            return actual >= value
    except TypeError:
        return False
    raise ValueError(f"Unsupported operator in fake Firestore: {op}")


class FakeSnapshot:
    def __init__(self, ref: "FakeDocumentRef", data: dict | None):
        self.reference = ref
        self.id = ref.id
        self.exists = data is not None
        self._data = data

    def to_dict(self) -> dict | None:
        if self._data is None:
            return None
        return {k: (dict(v) if isinstance(v, dict) else v) for k, v in self._data.items()}


class FakeDocumentRef:
    def __init__(self, db: "FakeFirestore", collection: str, doc_id: str):
        self._db = db
        self.collection_name = collection
        self.id = doc_id

    @property
    def path(self) -> str:
        return f"{self.collection_name}/{self.id}"

    def _store(self) -> dict:
        return self._db.store.setdefault(self.collection_name, {})

    def get(self) -> FakeSnapshot:
        return FakeSnapshot(self, self._store().get(self.id))

    def set(self, data: dict, merge: bool = False) -> None:
        store = self._store()
        if merge and self.id in store:
            _apply(store[self.id], data)
        else:
            store[self.id] = _apply({}, data)

    def update(self, data: dict) -> None:
        store = self._store()
        if self.id not in store:
            raise NotFound(f"No document to update: {self.path}")
        _apply(store[self.id], data)

    def delete(self) -> None:
        self._store().pop(self.id, None)

    def __eq__(self, other) -> bool:
        return isinstance(other, FakeDocumentRef) and other.path == self.path

    def __hash__(self) -> int:
        return hash(self.path)


class FakeQuery:
    def __init__(self, db: "FakeFirestore", collection: str, filters=None, limit_count=None):
        self._db = db
        self._collection = collection
        self._filters = list(filters or [])
        self._limit = limit_count

    def where(self, field_path=None, op_string=None, value=None, *, filter=None):
        if filter is not None:
            field_path, op_string, value = filter.field_path, filter.op_string, filter.value
        return FakeQuery(self._db, self._collection, [*self._filters, (field_path, op_string, value)], self._limit)

    def limit(self, count: int):
        return FakeQuery(self._db, self._collection, self._filters, count)

    def stream(self):
        self._db.reads += 1
        snapshots = []
        for doc_id, data in list(self._db.store.get(self._collection, {}).items()):
            if all(_matches(data, f, op, v) for f, op, v in self._filters):
                snapshots.append(FakeSnapshot(FakeDocumentRef(self._db, self._collection, doc_id), data))
        if self._limit is not None:
            snapshots = snapshots[: self._limit]
        return iter(snapshots)

    def get(self):
        return list(self.stream())


class FakeCollection(FakeQuery):
    def __init__(self, db: "FakeFirestore", name: str):
        super().__init__(db, name)
        self.id = name

    def document(self, doc_id: str | None = None) -> FakeDocumentRef:
        return FakeDocumentRef(self._db, self._collection, doc_id or uuid.uuid4().hex[:20])


class FakeBatch:
    def __init__(self, db: "FakeFirestore"):
        self._db = db
        self._ops = []

    def set(self, ref, data, merge=False):
        self._ops.append(("set", ref, data, merge))

    def update(self, ref, data):
        self._ops.append(("update", ref, data, False))

    def delete(self, ref):
        self._ops.append(("delete", ref, None, False))

    def commit(self):
        if len(self._ops) > 500:
            raise ValueError("Batch exceeds 500 writes")
        for kind, ref, data, merge in self._ops:
            if kind == "set":
                ref.set(data, merge=merge)
            elif kind == "update":
                ref.update(data)
            else:
                ref.delete()
        self._db.commits.append(len(self._ops))
        return []


class FakeFirestore:
    """In-memory stand-in for google.cloud.firestore.Client."""

    def __init__(self):
        self.store: dict[str, dict[str, dict]] = {}
        self.commits: list[int] = []
        self.reads = 0

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self, name)

    def batch(self) -> FakeBatch:
        return FakeBatch(self)

    def seed(self, collection: str, docs: dict[str, dict]) -> None:
        for doc_id, data in docs.items():
            self.store.setdefault(collection, {})[doc_id] = dict(data)

    def docs(self, collection: str) -> dict[str, dict]:
        return self.store.get(collection, {})

    def doc(self, collection: str, doc_id: str) -> dict | None:
        return self.store.get(collection, {}).get(doc_id)


@pytest.fixture
def db() -> FakeFirestore:
    return FakeFirestore()


@pytest.fixture
def org_id() -> str:
    return "org-1"


@pytest.fixture
def sample_org(db, org_id) -> FakeFirestore:
    """
    One organization: an owner, three team members and four licenses.

    - alice holds two licenses (BASIC and ENTERPRISE)
    - bob holds none
    - carol holds one via the flat assignee fields
    - one ENTERPRISE license is assigned to someone who left the team
    - one PRO license is free
    """
    db.seed(
        "organizations",
        {org_id: {"name": "Enterprise Media", "tier": "ENTERPRISE", "status": "ACTIVE"}},
    )
    db.seed(
        "users",
        {
            "owner-uid": {"email": "owner@example.com", "organizationId": org_id, "role": "OWNER"},
        },
    )
    db.seed(
        "teamMembers",
        {
            "tm-alice": {"email": "alice@example.com", "name": "Alice", "userId": "u-alice", "organizationId": org_id},
            "tm-bob": {"email": "bob@example.com", "firstName": "Bob", "lastName": "B", "organizationId": org_id},
            "tm-carol": {"email": "Carol@Example.com", "name": "Carol", "organizationId": org_id},
        },
    )
    db.seed(
        "licenses",
        {
            "lic-basic": {
                "key": "BAS-AAAA-AAAA-AAAA",
                "tier": "BASIC",
                "status": "ACTIVE",
                "organizationId": org_id,
                "assignedTo": {"userId": "u-alice", "email": "alice@example.com", "name": "Alice"},
            },
            "lic-ent": {
                "key": "ENT-BBBB-BBBB-BBBB",
                "tier": "ENTERPRISE",
                "status": "ACTIVE",
                "organizationId": org_id,
                "assignedToEmail": "alice@example.com",
            },
            "lic-carol": {
                "key": "PRO-CCCC-CCCC-CCCC",
                "tier": "PRO",
                "status": "ACTIVE",
                "organizationId": org_id,
                "assignedToUserId": "someone-else",
                "assignedToEmail": "carol@example.com",
            },
            "lic-orphan": {
                "key": "ENT-DDDD-DDDD-DDDD",
                "tier": "ENTERPRISE",
                "status": "ACTIVE",
                "organizationId": org_id,
                "assignedTo": {"userId": "u-gone", "email": "gone@example.com"},
            },
            "lic-free": {
                "key": "PRO-EEEE-EEEE-EEEE",
                "tier": "PRO",
                "status": "PENDING",
                "organizationId": org_id,
            },
        },
    )
    return db
