"""Contract tests for adapter protocol compliance."""

from __future__ import annotations

from pathlib import Path

import pytest

from typed_rows.adapters.protocol import AsyncAdapter, SyncAdapter
from typed_rows.adapters.sqlite import SqliteAsyncAdapter, SqliteSyncAdapter
from typed_rows.core.connection import ConnectionConfig, ConnectionManager
from typed_rows.core.exceptions import AdapterError, ConnectionError, PoolError  # noqa: A004


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    return ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)


class TestConnectionConfig:
    def test_defaults(self) -> None:
        config = ConnectionConfig(database="app.db")
        assert config.driver == "sqlite"
        assert config.busy_timeout == 5000
        assert config.journal_mode == "WAL"
        assert config.pool_size == 1

    def test_rejects_empty_pool(self) -> None:
        with pytest.raises(ValueError):
            ConnectionConfig(database="app.db", pool_size=0)

    def test_unknown_driver(self) -> None:
        with pytest.raises(AdapterError, match="Unsupported"):
            ConnectionManager(ConnectionConfig(driver="postgresql", database="x"))


class TestSqliteSyncAdapterProtocol:
    def test_implements_sync_protocol(self) -> None:
        adapter = SqliteSyncAdapter()
        assert isinstance(adapter, SyncAdapter)

    def test_paramstyle(self) -> None:
        assert SqliteSyncAdapter().paramstyle == "named"

    def test_lifecycle(self, sqlite_config: ConnectionConfig) -> None:
        adapter = SqliteSyncAdapter()
        pool = adapter.create_pool(sqlite_config)
        assert len(pool) == 1

        conn = adapter.acquire_connection(pool)
        assert len(pool) == 0

        cursor = adapter.execute(conn, "SELECT :val AS val", {":val": 1})
        row = cursor.fetchone()
        assert row["val"] == 1

        adapter.release_connection(conn, pool)
        assert len(pool) == 1

        adapter.close_pool(pool)
        assert len(pool) == 0

    def test_empty_pool_raises(self) -> None:
        with pytest.raises(PoolError):
            SqliteSyncAdapter().acquire_connection([])

    def test_busy_timeout_applied(self, sqlite_config: ConnectionConfig) -> None:
        adapter = SqliteSyncAdapter()
        pool = adapter.create_pool(sqlite_config)
        try:
            assert pool[0].execute("PRAGMA busy_timeout").fetchone()[0] == 5000
        finally:
            adapter.close_pool(pool)

    def test_wal_journal_on_file_database(self, tmp_path: Path) -> None:
        adapter = SqliteSyncAdapter()
        pool = adapter.create_pool(ConnectionConfig(database=str(tmp_path / "wal.db")))
        try:
            assert pool[0].execute("PRAGMA journal_mode").fetchone()[0] == "wal"
        finally:
            adapter.close_pool(pool)

    def test_journal_mode_can_be_left_alone(self, tmp_path: Path) -> None:
        adapter = SqliteSyncAdapter()
        config = ConnectionConfig(database=str(tmp_path / "plain.db"), journal_mode=None)
        pool = adapter.create_pool(config)
        try:
            assert pool[0].execute("PRAGMA journal_mode").fetchone()[0] == "delete"
        finally:
            adapter.close_pool(pool)

    def test_unopenable_database(self, tmp_path: Path) -> None:
        config = ConnectionConfig(database=str(tmp_path / "no" / "such" / "dir.db"))
        with pytest.raises(ConnectionError):
            SqliteSyncAdapter().create_pool(config)


class TestSqliteAsyncAdapterProtocol:
    def test_implements_async_protocol(self) -> None:
        adapter = SqliteAsyncAdapter()
        assert isinstance(adapter, AsyncAdapter)

    def test_paramstyle(self) -> None:
        assert SqliteAsyncAdapter().paramstyle == "named"

    async def test_lifecycle(self, sqlite_config: ConnectionConfig) -> None:
        adapter = SqliteAsyncAdapter()
        pool = await adapter.create_pool_async(sqlite_config)
        assert len(pool) == 1

        conn = await adapter.acquire_connection_async(pool)
        assert conn is not None

        cursor = await adapter.execute_async(conn, "SELECT 1 AS val")
        row = await cursor.fetchone()
        assert row["val"] == 1

        await adapter.release_connection_async(conn, pool)
        assert len(pool) == 1

        await adapter.close_pool_async(pool)
        assert len(pool) == 0

    async def test_empty_pool_raises(self) -> None:
        with pytest.raises(PoolError):
            await SqliteAsyncAdapter().acquire_connection_async([])
