from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from main import create_app
from settings import Settings
from store import InMemoryAttendanceStore, MongoAttendanceStore


class FakeDatabase:
    name = "attendance"

    def __init__(self):
        self.down = False

    def command(self, cmd):
        if self.down:
            raise ServerSelectionTimeoutError("no servers available")
        return {"ok": 1.0}

    def list_collection_names(self):
        if self.down:
            raise ServerSelectionTimeoutError("no servers available")
        return ["student"]


class FakeCollection:
    """Implements the slice of pymongo.Collection the Mongo store uses."""

    def __init__(self):
        self.database = FakeDatabase()
        self.docs = []

    def _check(self):
        if self.database.down:
            raise ServerSelectionTimeoutError("no servers available")

    def _matches(self, doc, filt):
        return all(doc.get(k) == v for k, v in filt.items())

    def insert_one(self, doc):
        self._check()
        self.docs.append(dict(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    def find(self, filt=None):
        self._check()
        return list(dict(d) for d in self.docs if self._matches(d, filt or {}))

    def find_one_and_update(self, filt, update, return_document=None):
        self._check()
        for doc in self.docs:
            if self._matches(doc, filt):
                doc.update(update["$set"])
                return dict(doc)
        return None

    def delete_one(self, filt):
        self._check()
        for i, doc in enumerate(self.docs):
            if self._matches(doc, filt):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


@pytest.fixture
def fake_collection():
    return FakeCollection()


@pytest.fixture(params=["memory", "mongodb"])
def store(request):
    if request.param == "memory":
        return InMemoryAttendanceStore()
    return MongoAttendanceStore(FakeCollection())


@pytest.fixture
def app(store):
    return create_app(store=store, settings=Settings())


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
