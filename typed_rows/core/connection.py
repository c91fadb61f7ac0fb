"""Connection configuration and management.

ConnectionConfig is a Pydantic model for type-safe connection config.
ConnectionManager and AsyncConnectionManager use adapter protocols for
pool-based connection lifecycle.
"""

from __future__ import annotations

import importlib
from contextlib import asynccontextmanager, contextmanager
from typing import Any

from pydantic import BaseModel, Field

from typed_rows.core.exceptions import AdapterError


class ConnectionConfig(BaseModel):
    """Configuration for an embedded database file.

    ``database`` is a file path or ``":memory:"``. Every pooled connection
    to ``":memory:"`` opens its own private database, so keep
    ``pool_size=1`` there.
    """

    driver: str = "sqlite"
    database: str
    busy_timeout: int = Field(default=5000, ge=0)  # milliseconds
    journal_mode: str | None = "WAL"
    pool_size: int = Field(default=1, ge=1)
    extra: dict[str, Any] = {}


# Adapter module mapping: driver name → (module_path, sync_class, async_class)
_ADAPTER_MAP: dict[str, tuple[str, str, str]] = {
    "sqlite": ("typed_rows.adapters.sqlite", "SqliteSyncAdapter", "SqliteAsyncAdapter"),
}


def _load_adapter(driver: str, kind: str) -> Any:
    """Load a sync or async adapter by driver name."""
    driver_lower = driver.lower()
    if driver_lower not in _ADAPTER_MAP:
        raise AdapterError(f"Unsupported database driver: {driver}")

    module_path, sync_cls_name, async_cls_name = _ADAPTER_MAP[driver_lower]
    cls_name = sync_cls_name if kind == "sync" else async_cls_name

    try:
        module = importlib.import_module(module_path)
        adapter = getattr(module, cls_name)()
    except (ImportError, AttributeError) as e:
        raise AdapterError(f"Failed to load {kind} adapter for '{driver}': {e}") from e

    # Synthesized statements only ever use :name placeholders.
    if adapter.paramstyle != "named":
        raise AdapterError(f"Adapter for '{driver}' does not accept named parameters")
    return adapter


class ConnectionManager:
    """Synchronous connection manager using SyncAdapter protocol."""

    def __init__(self, config: ConnectionConfig) -> None:
        self.config = config
        self._adapter = _load_adapter(config.driver, "sync")
        self._pool: Any = None

    @property
    def adapter(self) -> Any:
        return self._adapter

    def initialize_pool(self) -> Any:
        """Initialize the connection pool."""
        if self._pool is None:
            self._pool = self._adapter.create_pool(self.config)
        return self._pool

    def acquire(self) -> Any:
        """Take a connection out of the pool. Pair with release()."""
        pool = self.initialize_pool()
        return self._adapter.acquire_connection(pool)

    def release(self, connection: Any) -> None:
        """Return a connection taken with acquire()."""
        self._adapter.release_connection(connection, self._pool)

    @contextmanager
    def get_connection(self):  # type: ignore[no-untyped-def]
        """Get a connection from the pool as a context manager."""
        connection = self.acquire()
        try:
            yield connection
        finally:
            self.release(connection)

    def close_pool(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            self._adapter.close_pool(self._pool)
            self._pool = None


class AsyncConnectionManager:
    """Asynchronous connection manager using AsyncAdapter protocol."""

    def __init__(self, config: ConnectionConfig) -> None:
        self.config = config
        self._adapter = _load_adapter(config.driver, "async")
        self._pool: Any = None

    @property
    def adapter(self) -> Any:
        return self._adapter

    async def initialize_pool(self) -> Any:
        """Initialize the async connection pool."""
        if self._pool is None:
            self._pool = await self._adapter.create_pool_async(self.config)
        return self._pool

    async def acquire(self) -> Any:
        """Take a connection out of the pool. Pair with release()."""
        pool = await self.initialize_pool()
        return await self._adapter.acquire_connection_async(pool)

    async def release(self, connection: Any) -> None:
        """Return a connection taken with acquire()."""
        await self._adapter.release_connection_async(connection, self._pool)

    @asynccontextmanager
    async def get_connection(self):  # type: ignore[no-untyped-def]
        """Get an async connection from the pool as an async context manager."""
        connection = await self.acquire()
        try:
            yield connection
        finally:
            await self.release(connection)

    async def close_pool(self) -> None:
        """Close the async connection pool."""
        if self._pool is not None:
            await self._adapter.close_pool_async(self._pool)
            self._pool = None
