"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from typed_rows.core.connection import ConnectionConfig
from typed_rows.core.engine import RowStore


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    """SQLite in-memory connection config."""
    return ConnectionConfig(database=":memory:")


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path for a throwaway database file."""
    return tmp_path / "store.db"


@pytest.fixture
def store(sqlite_config: ConnectionConfig):
    """Empty in-memory row store, closed after the test."""
    row_store = RowStore.from_config(sqlite_config)
    yield row_store
    row_store.close()


@pytest.fixture
def create_table(store: RowStore):
    """Helper to create tables on the shared in-memory store.

    Usage:
        create_table("CREATE TABLE Person (id TEXT, age INTEGER)")
    """

    def _create(ddl: str) -> None:
        store.execute(ddl)

    return _create
