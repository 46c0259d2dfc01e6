"""
MongoDB persistence provider for in-memory maps.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from importlib.metadata import PackageNotFoundError, version
from typing import Any, Coroutine

from opentelemetry.trace import SpanKind
from pymongo import ASCENDING, AsyncMongoClient
from pymongo.asynchronous.change_stream import AsyncChangeStream
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError

from mongomap.changes import apply_change
from mongomap.config import DEFAULT_DB_NAME, DEFAULT_HOST, DEFAULT_PORT, FETCH_ALL
from mongomap.exceptions import (
    ConfigurationError,
    KeyValidationError,
    NotInitializedError,
    ProviderError,
)
from mongomap.protocols import RawMapProtocol
from mongomap.tracing import CustomSpanKinds, trace_operation
from mongomap.types import AdapterConfig, Key, StoredRecord, is_valid_key
from mongomap.utils.general import build_connection_uri, sanitize_name

logger = logging.getLogger(__name__)

TTL_FIELD = "expireAt"


class MongoProvider:
    """
    Backs a map with one MongoDB collection.

    The provider is built with connection options, then ``init``-ed with the map it
    must populate. After that the map's public mutations call ``set``/``delete``,
    which are fire-and-forget: the write is scheduled on the running event loop and
    the call returns immediately. Failed background writes are logged, never raised.

    Store-origin data (hydration and change-stream events) is written through the
    map's raw surface so it is never persisted back.

    Example:
        ```python
        provider = MongoProvider(name="guild settings", monitor_changes=True)
        settings = PersistentMap(provider, fetch_all=True)
        await settings.open()
        settings["prefix"] = "!"
        ```
    """

    def __init__(
        self,
        *,
        name: str | None = None,
        user: str | None = None,
        password: str | None = None,
        db_name: str | None = None,
        port: int | None = None,
        host: str | None = None,
        url: str | None = None,
        client: AsyncMongoClient | None = None,
        document_ttl: bool = False,
        monitor_changes: bool = False,
    ) -> None:
        if not name:
            raise ConfigurationError("Must provide options.name")

        resolved_db_name = db_name or DEFAULT_DB_NAME
        resolved_url = url or build_connection_uri(
            host=host or DEFAULT_HOST,
            port=port or DEFAULT_PORT,
            db_name=resolved_db_name,
            user=user,
            password=password,
        )
        self._config = AdapterConfig(
            name=sanitize_name(name),
            url=resolved_url,
            db_name=resolved_db_name,
            document_ttl=document_ttl,
            monitor_changes=monitor_changes,
        )

        # Set by the owning map before init(), not a constructor option
        self.fetch_all: bool = FETCH_ALL

        self._client: AsyncMongoClient | None = client
        self._owns_client = client is None
        self._collection: AsyncCollection | None = None
        self._container: RawMapProtocol | None = None
        self._ready = asyncio.Event()
        self._watch_task: asyncio.Task | None = None
        self._pending: set[asyncio.Task] = set()

    @property
    def config(self) -> AdapterConfig:
        return self._config

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    async def wait_until_ready(self) -> None:
        """Block until ``init`` has finished loading."""
        await self._ready.wait()

    @trace_operation(
        kind=SpanKind.CLIENT,
        open_inference_kind=CustomSpanKinds.INIT.value,
        capture_input=False,
        capture_output=False,
    )
    async def init(self, container: RawMapProtocol) -> None:
        """
        Connect, prepare the collection and optionally hydrate ``container``.

        Args:
            container: The map to populate. Must implement ``RawMapProtocol``.

        Store errors propagate; nothing is retried. Input is not captured on the
        span since the client carries credentials.
        """
        if not isinstance(container, RawMapProtocol):
            raise TypeError("init(container=...) must implement raw_get, raw_set and raw_delete.")
        if self._collection is not None:
            raise ProviderError(f"Provider '{self.name}' is already initialized.")

        client = self._client if self._client is not None else AsyncMongoClient(self._config.url)
        try:
            if self._owns_client:
                await client.admin.command("ping")
            collection = client[self._config.db_name][self._config.name]
            if self._config.document_ttl:
                await collection.create_index([(TTL_FIELD, ASCENDING)], expireAfterSeconds=0)

            self._client = client
            self._collection = collection
            self._container = container

            if self.fetch_all:
                await self.fetch_everything()
            self._ready.set()
            logger.debug("Provider '%s' ready (fetch_all=%s)", self.name, self.fetch_all)

            if self._config.monitor_changes:
                stream = await collection.watch()
                self._watch_task = asyncio.create_task(
                    self._consume_changes(stream),
                    name=f"mongomap-watch-{self.name}",
                )
        except Exception:
            # leave the provider as constructed so init() can be retried
            self._ready.clear()
            self._collection = None
            self._container = None
            if self._owns_client:
                self._client = None
                await client.close()
            raise

    @trace_operation(
        kind=SpanKind.CLIENT,
        open_inference_kind=CustomSpanKinds.DATABASE.value,
        capture_input=True,
        capture_output=True,
    )
    async def fetch(self, key: Key) -> StoredRecord | None:
        """Look up one record in the store. The local map is not touched."""
        document = await self._require_collection().find_one({"_id": key})
        if document is None:
            return None
        return StoredRecord.from_document(document)

    @trace_operation(
        kind=SpanKind.CLIENT,
        open_inference_kind=CustomSpanKinds.DATABASE.value,
    )
    async def fetch_everything(self) -> None:
        """Load every stored record into the map through its raw setter."""
        collection = self._require_collection()
        container = self._require_container()
        count = 0
        async for document in collection.find({}):
            container.raw_set(document["_id"], document.get("value"))
            count += 1
        logger.debug("Hydrated %s records from '%s'", count, self.name)

    def set(self, key: Key, value: Any, ttl: datetime | timedelta | None = None) -> None:
        """
        Upsert ``{_id: key, value: value}`` without waiting for the store.

        Args:
            key: A string or a number
            value: Any BSON-encodable value
            ttl: Expiration instant (or offset from now); needs ``document_ttl`` to be enforced
        """
        if not is_valid_key(key):
            raise KeyValidationError(
                "Keys should be strings or numbers.",
                details=f"Got key of type {type(key).__name__}",
            )
        collection = self._require_collection()

        document: dict[str, Any] = {"_id": key, "value": value}
        if ttl:
            if isinstance(ttl, timedelta):
                ttl = datetime.now(timezone.utc) + ttl
            document[TTL_FIELD] = ttl
        self._schedule(collection.replace_one({"_id": key}, document, upsert=True), f"set {key!r}")

    def delete(self, key: Key) -> None:
        """Remove the record for ``key`` without waiting for the store."""
        collection = self._require_collection()
        self._schedule(collection.delete_one({"_id": key}), f"delete {key!r}")

    @trace_operation(
        kind=SpanKind.CLIENT,
        open_inference_kind=CustomSpanKinds.DATABASE.value,
    )
    async def bulk_delete(self) -> None:
        """Remove every record in the collection. Indexes are kept."""
        result = await self._require_collection().delete_many({})
        logger.info("Deleted %s records from '%s'", result.deleted_count, self.name)

    async def flush(self) -> None:
        """Wait for all scheduled writes. Failures were already logged."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @trace_operation(
        kind=SpanKind.INTERNAL,
        open_inference_kind=CustomSpanKinds.DATABASE.value,
    )
    async def close(self) -> None:
        """
        Stop the change stream, drain pending writes and close the client.

        A client passed in through ``client=`` belongs to the caller and stays open.
        """
        try:
            if self._watch_task is not None:
                self._watch_task.cancel()
                try:
                    await self._watch_task
                except asyncio.CancelledError:
                    current = asyncio.current_task()
                    if current is not None and current.cancelling():
                        raise
        finally:
            self._watch_task = None
            await self.flush()
            if self._client is not None and self._owns_client:
                await self._client.close()
            self._client = None
            self._collection = None
        logger.debug("Provider '%s' closed", self.name)

    @staticmethod
    def get_version() -> str:
        """Installed version of the mongomap distribution."""
        try:
            return version("mongomap")
        except PackageNotFoundError:
            return "0.0.0"

    def _require_collection(self) -> AsyncCollection:
        if self._collection is None:
            raise NotInitializedError(
                f"Provider '{self.name}' is not connected. Call init() first."
            )
        return self._collection

    def _require_container(self) -> RawMapProtocol:
        if self._container is None:
            raise NotInitializedError(f"Provider '{self.name}' has no map. Call init() first.")
        return self._container

    def _schedule(self, operation: Coroutine[Any, Any, Any], description: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            operation.close()
            raise ProviderError(
                "set() and delete() must be called while an event loop is running.",
                details=description,
            ) from None
        task = loop.create_task(operation, name=description)
        self._pending.add(task)
        task.add_done_callback(self._on_write_done)

    def _on_write_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background %s on '%s' failed: %s", task.get_name(), self.name, exc)

    async def _consume_changes(self, stream: AsyncChangeStream) -> None:
        container = self._require_container()
        try:
            async with stream:
                async for change in stream:
                    apply_change(container, change)
        except PyMongoError as exc:
            logger.error("Change stream on '%s' stopped: %s", self.name, exc)
        except Exception:
            logger.exception("Change stream on '%s' stopped while applying an event", self.name)
        else:
            logger.info("Change stream on '%s' ended", self.name)


__all__ = [
    "MongoProvider",
]
