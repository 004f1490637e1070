from collections import defaultdict
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from google.cloud import firestore

from app.api_service import create_app
from app.dependencies import get_subscription_service
from repos.subscription_repo import plan_subscribe, utc_now_iso
from storage.firestore_client import FirestoreConnector
from subscriptions.service import SubscriptionService
from utils.ids import subscription_id


class FakeSubscriptionRepo:
    """In-memory stand-in keyed the same way as the Firestore repository."""

    def __init__(self):
        self.docs: Dict[str, Dict[str, Any]] = {}
        self.writes = 0

    def get(self, email, product_id):
        d = self.docs.get(subscription_id(email, product_id))
        return dict(d) if d else None

    def subscribe(self, email, product_id, telegram_username=None):
        doc_id = subscription_id(email, product_id)
        existing = self.docs.get(doc_id)
        outcome, fields = plan_subscribe(existing, email, product_id, telegram_username, utc_now_iso())
        if fields is not None:
            self.writes += 1
            self.docs[doc_id] = {**(existing or {}), **fields, "id": doc_id}
        return outcome

    def deactivate(self, email, product_id):
        doc = self.docs.get(subscription_id(email, product_id))
        if doc is None:
            return False
        self.writes += 1
        doc["isActive"] = False
        doc["updatedAt"] = utc_now_iso()
        return True

    def list_active(self, email):
        return [dict(d) for d in self.docs.values() if d["email"] == email and d["isActive"]]


class FakeProductRepo:
    def __init__(self, products: Optional[List[Dict[str, Any]]] = None):
        self.products = {p["productId"]: p for p in (products or [])}

    def get(self, product_id):
        p = self.products.get(product_id)
        return dict(p) if p else None


class FakeFirestoreClient:
    """Answers the connector's system/healthz probe."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.closed = False
        self.paths: List[str] = []

    def collection(self, name):
        self.paths.append(name)
        return self

    def document(self, doc_id):
        self.paths.append(doc_id)
        return self

    def get(self, timeout=None):
        if self.fail:
            raise RuntimeError("firestore unreachable")
        return object()

    def close(self):
        self.closed = True


@pytest.fixture
def sub_repo():
    return FakeSubscriptionRepo()


@pytest.fixture
def product_repo():
    return FakeProductRepo([
        {"productId": "P1", "name": "Amul Kool Protein Milkshake", "available": False},
        {"productId": "P2", "name": "Amul High Protein Paneer", "available": True},
    ])


@pytest.fixture
def service(sub_repo, product_repo):
    return SubscriptionService(subscriptions=sub_repo, products=product_repo)


@pytest.fixture
def fake_client():
    return FakeFirestoreClient()


@pytest.fixture
def client(service, fake_client):
    connector = FirestoreConnector(client_factory=lambda cfg: fake_client)
    connector.connect()
    app = create_app(connector)
    app.dependency_overrides[get_subscription_service] = lambda: service
    return TestClient(app, raise_server_exceptions=False)


class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeDocRef:
    def __init__(self, db, col, doc_id):
        self.db = db
        self.col = col
        self.id = doc_id

    def get(self, transaction=None, timeout=None):
        self.db.reads.append((self.col, self.id, transaction is not None))
        return FakeSnapshot(self.id, self.db.data[self.col].get(self.id))


class FakeQuery:
    def __init__(self, db, col, filters=(), limit_n=None):
        self.db = db
        self.col = col
        self.filters = filters
        self.limit_n = limit_n

    def where(self, filter):
        return FakeQuery(self.db, self.col, self.filters + (filter,), self.limit_n)

    def limit(self, n):
        return FakeQuery(self.db, self.col, self.filters, n)

    def stream(self):
        conds = [(f.field_path, f.op_string, f.value) for f in self.filters]
        self.db.queries.append((self.col, conds, self.limit_n))
        out = []
        for doc_id, data in self.db.data[self.col].items():
            if all(op == "==" and data.get(field) == value for field, op, value in conds):
                out.append(FakeSnapshot(doc_id, data))
        return iter(out[: self.limit_n] if self.limit_n is not None else out)


class FakeCollection(FakeQuery):
    def document(self, doc_id):
        return FakeDocRef(self.db, self.col, doc_id)


class FakeTransaction:
    """Writes land immediately; the tests run the transactional body once."""

    def __init__(self, db):
        self.db = db

    def create(self, ref, data):
        if ref.id in self.db.data[ref.col]:
            raise ValueError("already_exists")
        self.db.writes.append(("create", ref.col, ref.id, dict(data)))
        self.db.data[ref.col][ref.id] = dict(data)

    def set(self, ref, data, merge=False):
        self.db.writes.append(("set_merge" if merge else "set", ref.col, ref.id, dict(data)))
        base = self.db.data[ref.col].get(ref.id, {}) if merge else {}
        self.db.data[ref.col][ref.id] = {**base, **data}


class FakeFirestoreDb:
    """Recording stand-in for google.cloud.firestore.Client."""

    def __init__(self):
        self.data: Dict[str, Dict[str, Dict[str, Any]]] = defaultdict(dict)
        self.reads: List[Any] = []
        self.writes: List[Any] = []
        self.queries: List[Any] = []

    def collection(self, name):
        return FakeCollection(self, name)

    def transaction(self):
        return FakeTransaction(self)

    def put(self, col, doc_id, data):
        self.data[col][doc_id] = dict(data)


@pytest.fixture
def firestore_db(monkeypatch):
    # Run transactional bodies directly against FakeTransaction.
    monkeypatch.setattr(firestore, "transactional", lambda fn: fn)
    db = FakeFirestoreDb()
    db.put("products", "auto1", {"productId": "P1", "name": "Amul Kool Protein Milkshake"})
    db.put("products", "auto2", {"productId": "P2", "name": "Amul High Protein Paneer"})
    return db
