"""
Parcel Delivery Server — Test Configuration (conftest.py)
===========================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mongo_client:   In-memory stand-in for AsyncMongoClient (no server needed)
    ├── store:          Real DocumentStore wrapping mongo_client
    ├── fake_verifier:  Token verifier accepting a fixed set of tokens
    ├── auth_headers:   Authorization header for alice@example.com
    └── test_client:    HTTPX AsyncClient wired to the app with the above injected

The in-memory client implements only the slice of the async collection API
that DocumentStore calls: insert_one, find().sort().to_list(), find_one,
update_one ($set, $setOnInsert, upsert), delete_one, create_index (unique
indexes are enforced), hello, sessions and transactions.
"""

import os

# Settings are read at import time; configure the environment first
os.environ["IDENTITY_PROJECT_ID"] = "test-project"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_not_real"
os.environ["AUTH_GATE_READS"] = "true"
os.environ["AUTH_GATE_WRITES"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from collections import defaultdict
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError
from pymongo.results import DeleteResult, InsertOneResult, UpdateResult

from parcel_server.database import DocumentStore, get_store
from parcel_server.dependencies import get_token_verifier
from parcel_server.exceptions import PermissionDeniedError
from parcel_server.services.auth_service import AuthenticatedUser


# ══════════════════════════════════════════════════════════════════════════
# In-memory MongoDB test double
# ══════════════════════════════════════════════════════════════════════════

def _matches(document: Dict[str, Any], filter: Dict[str, Any]) -> bool:
    return all(document.get(key) == value for key, value in filter.items())


class FakeCursor:
    def __init__(self, documents: List[Dict[str, Any]]):
        self._documents = documents

    def sort(self, key_or_list, direction=None):
        keys = key_or_list if isinstance(key_or_list, list) else [(key_or_list, direction or 1)]
        # Stable sorts applied from the least significant key
        for field, order in reversed(keys):
            self._documents.sort(
                key=lambda doc: (doc.get(field) is None, doc.get(field)),
                reverse=order == -1,
            )
        return self

    async def to_list(self, length=None):
        return [dict(doc) for doc in self._documents]


class FakeCollection:
    def __init__(self, name: str):
        self.name = name
        self.documents: List[Dict[str, Any]] = []
        self.indexes: List[Any] = []
        self.fail_with: Optional[Exception] = None

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    def _check_unique(self, document):
        for keys, options in self.indexes:
            if not options.get("unique"):
                continue
            fields = [field for field, _ in keys]
            for existing in self.documents:
                if all(existing.get(f) == document.get(f) for f in fields):
                    raise DuplicateKeyError(f"E11000 duplicate key error on {fields}")

    async def insert_one(self, document, session=None):
        self._check()
        if "_id" not in document:
            document["_id"] = ObjectId()
        self._check_unique(document)
        self.documents.append(dict(document))
        return InsertOneResult(document["_id"], True)

    def find(self, filter=None):
        self._check()
        return FakeCursor([dict(d) for d in self.documents if _matches(d, filter or {})])

    async def find_one(self, filter=None):
        self._check()
        for document in self.documents:
            if _matches(document, filter or {}):
                return dict(document)
        return None

    async def update_one(self, filter, update, session=None, upsert=False):
        self._check()
        for document in self.documents:
            if _matches(document, filter):
                changes = update.get("$set", {})
                modified = any(document.get(k) != v for k, v in changes.items())
                document.update(changes)
                return UpdateResult({"n": 1, "nModified": int(modified)}, True)
        if upsert:
            document = dict(filter)
            document.update(update.get("$setOnInsert", {}))
            document.update(update.get("$set", {}))
            document["_id"] = ObjectId()
            self._check_unique(document)
            self.documents.append(document)
            return UpdateResult({"n": 1, "nModified": 0, "upserted": document["_id"]}, True)
        return UpdateResult({"n": 0, "nModified": 0}, True)

    async def delete_one(self, filter, session=None):
        self._check()
        for i, document in enumerate(self.documents):
            if _matches(document, filter):
                del self.documents[i]
                return DeleteResult({"n": 1}, True)
        return DeleteResult({"n": 0}, True)

    async def create_index(self, keys, **options):
        self.indexes.append((keys, options))
        return "_".join(f"{field}_{order}" for field, order in keys)


class FakeDatabase:
    def __init__(self):
        self.collections: Dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]


class FakeTransaction:
    def __init__(self, session: "FakeSession"):
        self.session = session

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.session.committed += 1
        else:
            self.session.aborted += 1
        return False


class FakeSession:
    def __init__(self):
        self.committed = 0
        self.aborted = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def start_transaction(self):
        return FakeTransaction(self)


class FakeAdmin:
    def __init__(self):
        self.reachable = True
        # A replica set member by default; clear setName to act as a standalone
        self.hello = {"isWritablePrimary": True, "setName": "rs0", "ok": 1.0}

    async def command(self, name):
        if not self.reachable:
            raise ServerSelectionTimeoutError("No servers found yet")
        if name == "hello":
            return dict(self.hello)
        return {"ok": 1.0}


class FakeMongoClient:
    def __init__(self):
        self.databases = defaultdict(FakeDatabase)
        self.admin = FakeAdmin()
        self.sessions: List[FakeSession] = []
        self.closed = False

    def __getitem__(self, name: str) -> FakeDatabase:
        return self.databases[name]

    def start_session(self):
        session = FakeSession()
        self.sessions.append(session)
        return session

    async def close(self):
        self.closed = True


# ══════════════════════════════════════════════════════════════════════════
# Identity test double
# ══════════════════════════════════════════════════════════════════════════

ALICE = AuthenticatedUser(uid="uid-alice", email="alice@example.com", claims={})
BOB = AuthenticatedUser(uid="uid-bob", email="bob@example.com", claims={})


class FakeVerifier:
    """Accepts exactly the tokens in `users`; anything else is forbidden."""

    def __init__(self):
        self.users = {"alice-token": ALICE, "bob-token": BOB}

    async def verify(self, token: str) -> AuthenticatedUser:
        if token not in self.users:
            raise PermissionDeniedError(message="Forbidden access")
        return self.users[token]


# ══════════════════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mongo_client():
    return FakeMongoClient()


@pytest.fixture
def store(mongo_client):
    """A real DocumentStore over the in-memory client, transactions enabled."""
    return DocumentStore(mongo_client, "parcelDB_test", use_transactions=True)


@pytest.fixture
def fake_verifier():
    return FakeVerifier()


@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer alice-token"}


@pytest_asyncio.fixture
async def test_client(store, fake_verifier):
    """
    HTTPX AsyncClient talking to a fresh app instance.

    The lifespan does not run under ASGITransport, so the store and the
    verifier are supplied through dependency overrides instead.
    """
    from parcel_server.main import create_app

    app = create_app()
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_token_verifier] = lambda: fake_verifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
