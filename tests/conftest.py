from __future__ import annotations

import asyncio
import copy
from types import SimpleNamespace
from typing import Any

import pytest
from pymongo.errors import PyMongoError

from mongomap import MongoProvider


class FakeCursor:
    def __init__(self, documents: list[dict]):
        self._documents = iter(documents)

    def __aiter__(self):
        return self

    async def __anext__(self) -> dict:
        try:
            return next(self._documents)
        except StopIteration:
            raise StopAsyncIteration


class FakeChangeStream:
    """Change stream fed by tests through push()."""

    def __init__(self):
        self.queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def push(self, change: dict | BaseException) -> None:
        self.queue.put_nowait(change)

    def end(self) -> None:
        self.queue.put_nowait(None)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.closed = True

    def __aiter__(self):
        return self

    async def __anext__(self) -> dict:
        change = await self.queue.get()
        if change is None:
            raise StopAsyncIteration
        if isinstance(change, BaseException):
            raise change
        return change


class FakeCollection:
    """In-memory stand-in for an AsyncCollection. Counts every write."""

    def __init__(self, name: str):
        self.name = name
        self.documents: dict[Any, dict] = {}
        self.indexes: list[tuple[list, dict]] = []
        self.write_count = 0
        self.fail_writes = False
        self.index_error: Exception | None = None
        self.stream: FakeChangeStream | None = None

    def seed(self, documents: list[dict]) -> None:
        for document in documents:
            self.documents[document["_id"]] = copy.deepcopy(document)

    async def create_index(self, keys, **kwargs) -> str:
        if self.index_error is not None:
            error, self.index_error = self.index_error, None
            raise error
        self.indexes.append((keys, kwargs))
        return "_".join(f"{field}_{direction}" for field, direction in keys)

    def find(self, query: dict) -> FakeCursor:
        assert query == {}
        return FakeCursor([copy.deepcopy(d) for d in self.documents.values()])

    async def find_one(self, query: dict) -> dict | None:
        document = self.documents.get(query["_id"])
        return copy.deepcopy(document) if document is not None else None

    async def replace_one(self, query: dict, replacement: dict, upsert: bool = False):
        self._write()
        self.documents[query["_id"]] = copy.deepcopy(replacement)
        return SimpleNamespace(matched_count=1, upserted_id=query["_id"])

    async def delete_one(self, query: dict):
        self._write()
        removed = self.documents.pop(query["_id"], None)
        return SimpleNamespace(deleted_count=0 if removed is None else 1)

    async def delete_many(self, query: dict):
        self._write()
        count = len(self.documents)
        self.documents.clear()
        return SimpleNamespace(deleted_count=count)

    async def watch(self) -> FakeChangeStream:
        self.stream = FakeChangeStream()
        return self.stream

    def _write(self) -> None:
        self.write_count += 1
        if self.fail_writes:
            raise PyMongoError("write refused")


class FakeDatabase:
    def __init__(self):
        self.collections: dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]


class FakeAdmin:
    def __init__(self, client: "FakeClient"):
        self._client = client

    async def command(self, name: str) -> dict:
        self._client.commands.append(name)
        if FakeClient.ping_error is not None:
            raise FakeClient.ping_error
        return {"ok": 1.0}


class FakeClient:
    # set by tests to make every ping fail
    ping_error: Exception | None = None
    instances: list["FakeClient"] = []

    def __init__(self, url: str | None = None):
        self.url = url
        self.databases: dict[str, FakeDatabase] = {}
        self.commands: list[str] = []
        self.closed = False
        self.admin = FakeAdmin(self)
        FakeClient.instances.append(self)

    def __getitem__(self, name: str) -> FakeDatabase:
        if name not in self.databases:
            self.databases[name] = FakeDatabase()
        return self.databases[name]

    async def close(self) -> None:
        self.closed = True


async def _settle(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def settle():
    """Awaitable that lets scheduled tasks (writes, change consumers) run."""
    return _settle


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def owned_clients(monkeypatch: pytest.MonkeyPatch) -> list[FakeClient]:
    """Replace the driver client class; returns every client the provider builds."""
    import mongomap.provider as provider_module

    monkeypatch.setattr(FakeClient, "instances", [])
    monkeypatch.setattr(FakeClient, "ping_error", None)
    monkeypatch.setattr(provider_module, "AsyncMongoClient", FakeClient)
    return FakeClient.instances


@pytest.fixture
def refuse_ping(owned_clients):
    """Setter making every ping of a provider-built client fail (None restores it)."""

    def _refuse(error: Exception | None) -> None:
        FakeClient.ping_error = error

    return _refuse


@pytest.fixture
def make_provider(fake_client: FakeClient):
    def _make(name: str = "settings", **options) -> MongoProvider:
        return MongoProvider(name=name, client=fake_client, **options)

    return _make


@pytest.fixture
def collection_of(fake_client: FakeClient):
    def _get(provider: MongoProvider) -> FakeCollection:
        return fake_client[provider.config.db_name][provider.name]

    return _get
