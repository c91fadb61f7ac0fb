"""Integration test for the SQLite workflow.

Covers: record insert and select, lenient mapping of damaged rows, stored
tick timestamps, transactions and the async store against real SQLite
databases.
"""

from __future__ import annotations

import datetime
import uuid
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path

import pytest
from pydantic import BaseModel

from typed_rows import (
    AsyncRowStore,
    Int32,
    RowMapper,
    RowStore,
    StatementExecutionError,
    fields_of,
)

# --- Test records ---


class Status(Enum):
    ACTIVE = "active"
    BANNED = "banned"


@dataclass
class Person:
    id: uuid.UUID
    age: Int32
    created: datetime.datetime
    status: Status | None = None


@dataclass
class Invoice:
    id: uuid.UUID
    number: int
    issued: datetime.date
    total: Decimal
    paid: bool
    memo: str | None = None


class Note(BaseModel):
    id: int
    body: str
    pinned: bool = False


PERSON_DDL = "CREATE TABLE Person (id TEXT, age INTEGER, created TEXT, status TEXT)"
INVOICE_DDL = (
    "CREATE TABLE Invoice (id TEXT, number INTEGER, issued TEXT, total TEXT, "
    "paid INTEGER, memo TEXT)"
)
NOTE_DDL = "CREATE TABLE Note (id INTEGER PRIMARY KEY, body TEXT, pinned INTEGER)"

GUID = uuid.UUID("3fa85f64-5717-4562-b3fc-2c963f66afa6")


# --- Fixtures ---


@pytest.fixture
def file_store(db_path: Path):
    with RowStore.open(str(db_path)) as row_store:
        row_store.execute(PERSON_DDL)
        row_store.execute(INVOICE_DDL)
        yield row_store


# --- Integration Tests ---


@pytest.mark.integration
class TestSqliteRecordRoundTrip:
    def test_insert_then_select(self, file_store: RowStore) -> None:
        file_store.insert(Person(GUID, 30, datetime.datetime(2024, 1, 1)))

        (person,) = file_store.select(Person)
        assert person.id == GUID
        assert person.age == 30
        assert type(person.age) is int
        assert person.created == datetime.datetime(2024, 1, 1)
        assert person.status is None

    def test_every_category_survives(self, file_store: RowStore) -> None:
        invoice = Invoice(
            id=uuid.uuid4(),
            number=2**40,
            issued=datetime.date(2023, 12, 31),
            total=Decimal("1999.95"),
            paid=True,
        )
        file_store.insert(invoice)
        (loaded,) = file_store.select(Invoice)
        assert loaded == invoice

    def test_unparseable_enum_keeps_row(self, file_store: RowStore) -> None:
        file_store.execute(
            "INSERT INTO Person VALUES (:id, :age, :created, :status)",
            {"id": str(GUID), "age": 30, "created": "2024-01-01 00:00:00", "status": "zombie"},
        )
        people = list(file_store.select(Person))
        assert len(people) == 1
        assert people[0].id == GUID
        assert people[0].age == 30
        assert people[0].created == datetime.datetime(2024, 1, 1)
        assert people[0].status is None

    def test_diagnostics_for_damaged_row(self, file_store: RowStore) -> None:
        file_store.execute(
            "INSERT INTO Person VALUES ('not-a-guid', 5000000000, 'later', 'ACTIVE')"
        )
        rows = file_store.execute_query("SELECT * FROM Person")
        (mapped,) = RowMapper(Person).map_with_diagnostics(rows)
        assert mapped.record.status is Status.ACTIVE
        assert sorted(d.field for d in mapped.diagnostics) == ["age", "created", "id"]

    def test_tick_timestamps(self, file_store: RowStore) -> None:
        file_store.execute(
            "INSERT INTO Person (id, age, created) VALUES (:id, 1, :ticks)",
            {"id": str(GUID), "ticks": 638396640000000000},
        )
        (person,) = file_store.select(Person)
        assert person.created == datetime.datetime(2024, 1, 1)

    def test_selectors_and_limit(self, file_store: RowStore) -> None:
        for age in (20, 30, 40):
            file_store.insert(Person(uuid.uuid4(), age, datetime.datetime(2024, 1, 1)))
        p = fields_of(Person)
        ages = [
            person.age
            for person in file_store.select(
                Person, [p.age], where="WHERE age > :min ORDER BY age", params={"min": 25}, limit=1
            )
        ]
        assert ages == [30]

    def test_failed_transaction_leaves_no_rows(self, file_store: RowStore) -> None:
        with pytest.raises(StatementExecutionError), file_store.transaction() as tx:
            tx.insert(Person(GUID, 1, datetime.datetime(2024, 1, 1)))
            tx.execute("INSERT INTO Nowhere VALUES (1)")
        assert file_store.execute_scalar("SELECT COUNT(*) FROM Person") == 0


@pytest.mark.integration
class TestAsyncRowStore:
    async def test_async_flow(self, db_path: Path) -> None:
        async with AsyncRowStore.open(str(db_path)) as row_store:
            assert await row_store.test_connection() is True
            await row_store.execute(NOTE_DDL)
            await row_store.insert(Note(id=1, body="first"))
            await row_store.insert(Note(id=2, body="second", pinned=True))

            pinned = list(await row_store.select(Note, where="WHERE pinned = :p", params={"p": 1}))
            assert [n.body for n in pinned] == ["second"]
            assert pinned[0].pinned is True

            assert await row_store.execute_scalar("SELECT COUNT(*) FROM Note") == 2

    async def test_async_transaction_rollback(self, db_path: Path) -> None:
        async with AsyncRowStore.open(str(db_path)) as row_store:
            await row_store.execute(NOTE_DDL)
            with pytest.raises(RuntimeError):
                async with row_store.transaction() as tx:
                    await tx.insert(Note(id=1, body="lost"))
                    raise RuntimeError("boom")
            assert await row_store.execute_scalar("SELECT COUNT(*) FROM Note") == 0

    async def test_async_transaction_commit(self, db_path: Path) -> None:
        async with AsyncRowStore.open(str(db_path)) as row_store:
            await row_store.execute(NOTE_DDL)
            async with row_store.transaction() as tx:
                await tx.insert(Note(id=1, body="kept"))
                (note,) = await tx.select(Note)
                assert note.body == "kept"
            rows = await row_store.execute_query("SELECT body FROM Note")
            assert rows == [{"body": "kept"}]
