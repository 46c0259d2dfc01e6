"""Dictionary-like map persisted through a MongoProvider."""

from __future__ import annotations

from collections.abc import Iterator, MutableMapping
from datetime import datetime, timedelta
from typing import Any

from mongomap.provider import MongoProvider
from mongomap.types import Key


class PersistentMap(MutableMapping):
    """
    In-memory map whose public mutations are forwarded to a provider.

    ``m[key] = value``, ``m.set(...)`` and ``del m[key]`` update local state and
    schedule the matching store write. The ``raw_*`` methods only touch local
    state; the provider uses them for hydration and change-stream events.
    """

    def __init__(self, provider: MongoProvider, *, fetch_all: bool = False) -> None:
        self.provider = provider
        self.fetch_all = fetch_all
        self._data: dict[Key, Any] = {}

    async def open(self) -> None:
        self.provider.fetch_all = self.fetch_all
        await self.provider.init(self)

    async def close(self) -> None:
        await self.provider.close()

    async def __aenter__(self) -> "PersistentMap":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # Public surface, persisted

    def set(self, key: Key, value: Any, ttl: datetime | timedelta | None = None) -> None:
        # provider validates the key before anything changes locally
        self.provider.set(key, value, ttl)
        self._data[key] = value

    def __setitem__(self, key: Key, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: Key) -> None:
        if key not in self._data:
            raise KeyError(key)
        self.provider.delete(key)
        del self._data[key]

    def __getitem__(self, key: Key) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[Key]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    async def clear_all(self) -> None:
        """Empty the collection with one bulk delete, then the local map."""
        await self.provider.bulk_delete()
        self._data.clear()

    async def refresh(self, key: Key) -> Any:
        """Reload ``key`` from the store into local state and return its value."""
        record = await self.provider.fetch(key)
        if record is None:
            self.raw_delete(key)
            return None
        self.raw_set(key, record.value)
        return record.value

    # Raw surface, local only

    def raw_get(self, key: Key) -> Any:
        return self._data.get(key)

    def raw_set(self, key: Key, value: Any) -> None:
        self._data[key] = value

    def raw_delete(self, key: Key) -> None:
        self._data.pop(key, None)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.provider.name!r}, size={len(self._data)})"


__all__ = [
    "PersistentMap",
]
