"""Unit tests for RowStore against in-memory SQLite."""

from __future__ import annotations

import sqlite3
import uuid
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import pytest

from typed_rows.core.connection import ConnectionConfig
from typed_rows.core.engine import RowStore
from typed_rows.core.exceptions import (
    InvalidSelectorError,
    StatementExecutionError,
    StrictModeViolation,
)
from typed_rows.mapping.rows import RowMapper
from typed_rows.query.columns import fields_of


class Role(Enum):
    ADMIN = "admin"
    GUEST = "guest"


@dataclass
class Member:
    id: uuid.UUID
    name: str
    age: int
    role: Role | None = None


DDL = "CREATE TABLE Member (id TEXT PRIMARY KEY, name TEXT, age INTEGER, role TEXT)"


@pytest.fixture
def members(store: RowStore, create_table) -> RowStore:
    create_table(DDL)
    for i, (name, age) in enumerate([("Alice", 30), ("Bob", 25), ("Carol", 41)], start=1):
        store.insert(Member(uuid.UUID(int=i), name, age, Role.GUEST))
    return store


class TestRawStatements:
    def test_execute_returns_rowcount(self, store: RowStore, create_table) -> None:
        create_table("CREATE TABLE t (x INTEGER)")
        assert store.execute("INSERT INTO t (x) VALUES (:x)", {"x": 1}) == 1

    def test_execute_scalar(self, members: RowStore) -> None:
        assert members.execute_scalar("SELECT COUNT(*) FROM Member") == 3

    def test_execute_scalar_no_rows(self, members: RowStore) -> None:
        sql = "SELECT age FROM Member WHERE name = :name"
        assert members.execute_scalar(sql, {"name": "nobody"}) is None

    def test_execute_query_returns_dicts(self, members: RowStore) -> None:
        rows = members.execute_query("SELECT name, age FROM Member ORDER BY age")
        assert rows[0] == {"name": "Bob", "age": 25}

    def test_prefixed_param_names(self, members: RowStore) -> None:
        sql = "SELECT name FROM Member WHERE age > :age"
        assert members.execute_scalar(sql, {"@age": 35}) == "Carol"

    def test_execute_query_with_mapper(self, members: RowStore) -> None:
        people = members.execute_query(
            "SELECT * FROM Member ORDER BY name", mapper=RowMapper(Member)
        )
        assert [p.name for p in people] == ["Alice", "Bob", "Carol"]

    def test_write_through_read_call_committed(self, db_path: Path) -> None:
        with RowStore.open(str(db_path)) as file_store:
            file_store.execute("CREATE TABLE t (id INTEGER PRIMARY KEY, x INTEGER)")
            rows = file_store.execute_query("INSERT INTO t (x) VALUES (1) RETURNING id")
            new_id = file_store.execute_scalar("INSERT INTO t (x) VALUES (2) RETURNING id")
            assert rows == [{"id": 1}]
            assert new_id == 2

            other = sqlite3.connect(str(db_path), timeout=0)
            try:
                other.execute("INSERT INTO t (x) VALUES (3)")
                other.commit()
                assert other.execute("SELECT COUNT(*) FROM t").fetchone()[0] == 3
            finally:
                other.close()

    def test_bad_sql_wrapped(self, store: RowStore) -> None:
        with pytest.raises(StatementExecutionError, match="no such table") as exc_info:
            store.execute_query("SELECT * FROM missing")
        assert isinstance(exc_info.value.__cause__, sqlite3.OperationalError)
        assert exc_info.value.sql == "SELECT * FROM missing"


class TestInsert:
    def test_insert_stores_converted_values(self, members: RowStore) -> None:
        row = members.execute_query("SELECT * FROM Member WHERE name = 'Alice'")[0]
        assert row["id"] == str(uuid.UUID(int=1))
        assert row["role"] == "GUEST"

    def test_insert_with_columns(self, store: RowStore, create_table) -> None:
        create_table(DDL)
        store.insert(Member(uuid.UUID(int=9), "Dan", 50), columns="id, name")
        assert store.execute_scalar("SELECT age FROM Member") is None

    def test_insert_with_extra_params(self, store: RowStore, create_table) -> None:
        create_table("CREATE TABLE Member (id TEXT, name TEXT, age INTEGER, role TEXT, org TEXT)")
        store.insert(
            Member(uuid.UUID(int=9), "Dan", 50),
            columns="id, name, org",
            extra_params={"@org": "acme", "name": "ignored"},
        )
        row = store.execute_query("SELECT name, org FROM Member")[0]
        assert row == {"name": "Dan", "org": "acme"}

    def test_none_stored_as_null(self, store: RowStore, create_table) -> None:
        create_table(DDL)
        store.insert(Member(uuid.UUID(int=9), "Dan", 50, None))
        assert store.execute_scalar("SELECT role IS NULL FROM Member") == 1


class TestSelect:
    def test_select_all(self, members: RowStore) -> None:
        people = list(members.select(Member))
        assert sorted(p.name for p in people) == ["Alice", "Bob", "Carol"]
        assert all(p.role is Role.GUEST for p in people)

    def test_returns_iterator(self, members: RowStore) -> None:
        assert isinstance(members.select(Member), Iterator)

    def test_where_and_params(self, members: RowStore) -> None:
        people = list(members.select(Member, where="WHERE age >= :age", params={"age": 30}))
        assert sorted(p.name for p in people) == ["Alice", "Carol"]

    def test_limit(self, members: RowStore) -> None:
        assert len(list(members.select(Member, limit=2))) == 2

    def test_selectors_leave_other_fields_at_zero(self, members: RowStore) -> None:
        m = fields_of(Member)
        people = list(members.select(Member, [m.name], where="WHERE age = 25"))
        assert len(people) == 1
        assert people[0].name == "Bob"
        assert people[0].age == 0
        assert people[0].id == uuid.UUID(int=0)

    def test_raw_columns(self, members: RowStore) -> None:
        (person,) = members.select(Member, raw_columns="name, age", where="WHERE age = 41")
        assert (person.name, person.age) == ("Carol", 41)

    def test_bad_selector_raises_before_query(self, store: RowStore) -> None:
        with pytest.raises(InvalidSelectorError):
            store.select(Member, [lambda m: m.nope])

    def test_missing_table_raises(self, store: RowStore) -> None:
        with pytest.raises(StatementExecutionError):
            store.select(Member)

    def test_bad_value_left_at_default(self, members: RowStore) -> None:
        members.execute("UPDATE Member SET role = 'owner' WHERE name = 'Bob'")
        (bob,) = members.select(Member, where="WHERE name = 'Bob'")
        assert bob.role is None
        assert bob.age == 25

    def test_strict_select_raises(self, members: RowStore) -> None:
        members.execute("UPDATE Member SET role = 'owner' WHERE name = 'Bob'")
        with pytest.raises(StrictModeViolation):
            list(members.select(Member, strict=True))


class TestLifecycle:
    def test_connection_ok(self, store: RowStore) -> None:
        assert store.test_connection() is True

    def test_connection_fails_for_unreachable_path(self, tmp_path: Path) -> None:
        bad = RowStore.open(str(tmp_path / "missing" / "dir" / "x.db"))
        assert bad.test_connection() is False

    def test_open_file_database(self, db_path: Path) -> None:
        with RowStore.open(str(db_path)) as file_store:
            file_store.execute("CREATE TABLE t (x INTEGER)")
            file_store.execute("INSERT INTO t VALUES (1)")
        with RowStore.open(str(db_path)) as reopened:
            assert reopened.execute_scalar("SELECT x FROM t") == 1

    def test_from_config(self, sqlite_config: ConnectionConfig) -> None:
        row_store = RowStore.from_config(sqlite_config)
        assert row_store.connection_manager.config is sqlite_config
        row_store.close()
