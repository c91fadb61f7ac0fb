"""SQLite adapter - sync (sqlite3 stdlib) and async (aiosqlite)."""

from __future__ import annotations

import sqlite3
from collections.abc import Mapping
from typing import Any

import aiosqlite

from typed_rows.core.connection import ConnectionConfig
from typed_rows.core.exceptions import ConnectionError, PoolError  # noqa: A004
from typed_rows.core.params import bind_params


def _pragmas(config: ConnectionConfig) -> list[str]:
    statements = [f"PRAGMA busy_timeout={int(config.busy_timeout)}"]
    if config.journal_mode:
        statements.append(f"PRAGMA journal_mode={config.journal_mode}")
    return statements


class SqliteSyncAdapter:
    """Synchronous SQLite adapter using stdlib sqlite3."""

    @property
    def paramstyle(self) -> str:
        return "named"

    def create_pool(self, config: ConnectionConfig) -> list[sqlite3.Connection]:
        """Create a 'pool' (list of connections) for SQLite."""
        pool: list[sqlite3.Connection] = []
        try:
            for _ in range(config.pool_size):
                conn = sqlite3.connect(
                    config.database, timeout=config.busy_timeout / 1000, **config.extra
                )
                conn.row_factory = sqlite3.Row
                for pragma in _pragmas(config):
                    conn.execute(pragma)
                pool.append(conn)
        except sqlite3.Error as e:
            self.close_pool(pool)
            raise ConnectionError(f"Cannot open '{config.database}': {e}") from e
        return pool

    def acquire_connection(self, pool: list[sqlite3.Connection]) -> sqlite3.Connection:
        """Acquire a connection from the pool."""
        if not pool:
            raise PoolError("No connections available in pool")
        return pool.pop()

    def release_connection(
        self, connection: sqlite3.Connection, pool: list[sqlite3.Connection] | None
    ) -> None:
        """Release a connection back to the pool."""
        if pool is None:
            connection.close()
            return
        pool.append(connection)

    def close_pool(self, pool: list[sqlite3.Connection]) -> None:
        """Close all connections in the pool."""
        for conn in pool:
            conn.close()
        pool.clear()

    def begin(self, connection: sqlite3.Connection) -> None:
        """Start an explicit transaction."""
        connection.execute("BEGIN")

    def execute(
        self,
        connection: sqlite3.Connection,
        sql: str,
        params: Mapping[str, Any] | None = None,
    ) -> sqlite3.Cursor:
        """Execute SQL and return a cursor."""
        return connection.execute(sql, bind_params(params))


class SqliteAsyncAdapter:
    """Asynchronous SQLite adapter using aiosqlite."""

    @property
    def paramstyle(self) -> str:
        return "named"

    async def create_pool_async(self, config: ConnectionConfig) -> list[aiosqlite.Connection]:
        """Create async SQLite connection pool."""
        pool: list[aiosqlite.Connection] = []
        try:
            for _ in range(config.pool_size):
                conn = await aiosqlite.connect(
                    config.database, timeout=config.busy_timeout / 1000, **config.extra
                )
                conn.row_factory = aiosqlite.Row
                for pragma in _pragmas(config):
                    await conn.execute(pragma)
                pool.append(conn)
        except sqlite3.Error as e:
            await self.close_pool_async(pool)
            raise ConnectionError(f"Cannot open '{config.database}': {e}") from e
        return pool

    async def acquire_connection_async(self, pool: list[aiosqlite.Connection]) -> Any:
        """Acquire an async connection from the pool."""
        if not pool:
            raise PoolError("No connections available in pool")
        return pool.pop()

    async def release_connection_async(
        self, connection: aiosqlite.Connection, pool: list[aiosqlite.Connection] | None
    ) -> None:
        """Release an async connection back to the pool."""
        if pool is None:
            await connection.close()
            return
        pool.append(connection)

    async def close_pool_async(self, pool: list[aiosqlite.Connection]) -> None:
        """Close all async connections."""
        for conn in pool:
            await conn.close()
        pool.clear()

    async def begin_async(self, connection: aiosqlite.Connection) -> None:
        """Start an explicit transaction."""
        await connection.execute("BEGIN")

    async def execute_async(
        self,
        connection: aiosqlite.Connection,
        sql: str,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        """Execute SQL asynchronously and return a cursor."""
        return await connection.execute(sql, bind_params(params))
