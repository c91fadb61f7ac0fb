"""Row store adapter protocols.

Every adapter module MUST implement these protocols so the engines can
treat drivers interchangeably.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from typed_rows.core.connection import ConnectionConfig


@runtime_checkable
class SyncAdapter(Protocol):
    """Synchronous row store adapter protocol."""

    @property
    def paramstyle(self) -> str:
        """Placeholder style the driver accepts; synthesized SQL uses 'named'."""
        ...

    def create_pool(self, config: ConnectionConfig) -> Any:
        """Create a connection pool."""
        ...

    def acquire_connection(self, pool: Any) -> Any:
        """Acquire a connection from the pool."""
        ...

    def release_connection(self, connection: Any, pool: Any) -> None:
        """Release a connection back to the pool."""
        ...

    def close_pool(self, pool: Any) -> None:
        """Close the pool and release all connections."""
        ...

    def begin(self, connection: Any) -> None:
        """Start an explicit transaction on *connection*."""
        ...

    def execute(
        self,
        connection: Any,
        sql: str,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        """Execute SQL with a parameter bag and return a cursor-like object."""
        ...


@runtime_checkable
class AsyncAdapter(Protocol):
    """Asynchronous row store adapter protocol."""

    @property
    def paramstyle(self) -> str:
        ...

    async def create_pool_async(self, config: ConnectionConfig) -> Any:
        """Create an async connection pool."""
        ...

    async def acquire_connection_async(self, pool: Any) -> Any:
        """Acquire a connection from the async pool."""
        ...

    async def release_connection_async(self, connection: Any, pool: Any) -> None:
        """Release a connection back to the async pool."""
        ...

    async def close_pool_async(self, pool: Any) -> None:
        """Close the async pool."""
        ...

    async def begin_async(self, connection: Any) -> None:
        """Start an explicit transaction on *connection*."""
        ...

    async def execute_async(
        self,
        connection: Any,
        sql: str,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        """Execute SQL asynchronously and return a cursor-like object."""
        ...
