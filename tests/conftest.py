from __future__ import annotations

import itertools
import os
from pathlib import Path
import sys
from types import SimpleNamespace
from typing import Any

import pytest
from pymongo.errors import AutoReconnect


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

# ``stash.config.settings`` builds its singleton at import time and requires a password.
os.environ.setdefault("MONGO_PASSWORD", "test-password")


class FakeSession:
    """Stand-in for ``AsyncIOMotorClientSession``."""

    def __init__(self) -> None:
        self.ended = False

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.end_session()

    def end_session(self) -> None:
        self.ended = True


class FakeCollection:
    def __init__(self, docs: list[dict[str, Any]], ids: itertools.count) -> None:
        self.docs = docs
        self._ids = ids
        self.fail_with: Exception | None = None
        self.sessions_seen: list[FakeSession] = []

    def _touch(self, session: FakeSession | None) -> None:
        assert session is not None and not session.ended, "store call made outside a live session"
        self.sessions_seen.append(session)
        if self.fail_with is not None:
            raise self.fail_with

    async def insert_one(self, doc: dict[str, Any], session: FakeSession | None = None) -> SimpleNamespace:
        self._touch(session)
        stored = dict(doc, _id=next(self._ids))
        self.docs.append(stored)
        return SimpleNamespace(inserted_id=stored["_id"])

    async def find_one(self, filter: dict[str, Any], session: FakeSession | None = None) -> dict[str, Any] | None:
        self._touch(session)
        for doc in self.docs:
            if all(doc.get(k) == v for k, v in filter.items()):
                return dict(doc)
        return None

    async def count_documents(self, filter: dict[str, Any], session: FakeSession | None = None) -> int:
        self._touch(session)
        return sum(1 for doc in self.docs if all(doc.get(k) == v for k, v in filter.items()))


class FakeDatabase:
    def __init__(self, client: "FakeMotorClient", name: str) -> None:
        self._client = client
        self._name = name

    def __getitem__(self, collection: str) -> FakeCollection:
        return self._client.collection(self._name, collection)

    async def command(self, name: str) -> dict[str, Any]:
        if self._client.ping_error is not None:
            raise self._client.ping_error
        return {"ok": 1.0}


class FakeMotorClient:
    """In-memory stand-in for ``AsyncIOMotorClient``."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.args = args
        self.kwargs = kwargs
        self.closed = False
        self.ping_error: Exception | None = None
        self.sessions: list[FakeSession] = []
        self._collections: dict[tuple[str, str], FakeCollection] = {}
        self._ids = itertools.count(1)

    @property
    def admin(self) -> FakeDatabase:
        return FakeDatabase(self, "admin")

    def __getitem__(self, database: str) -> FakeDatabase:
        return FakeDatabase(self, database)

    def collection(self, database: str, collection: str) -> FakeCollection:
        key = (database, collection)
        if key not in self._collections:
            self._collections[key] = FakeCollection([], self._ids)
        return self._collections[key]

    async def start_session(self) -> FakeSession:
        session = FakeSession()
        self.sessions.append(session)
        return session

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_client() -> FakeMotorClient:
    return FakeMotorClient()


@pytest.fixture
def connector(fake_client: FakeMotorClient):
    from stash.src.database.store_connector import StoreConnector

    return StoreConnector(fake_client, "test", "data")


@pytest.fixture
def payloads(fake_client: FakeMotorClient) -> FakeCollection:
    """The backing collection of the ``connector`` fixture."""
    return fake_client.collection("test", "data")


@pytest.fixture
def broken_store(payloads: FakeCollection) -> FakeCollection:
    payloads.fail_with = AutoReconnect("connection reset by peer")
    return payloads
