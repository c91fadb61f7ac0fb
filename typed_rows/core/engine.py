"""Row store engines.

RowStore and AsyncRowStore execute raw parameterized statements and the
statements synthesized from record types, mapping SELECT results back onto
those types.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import Any, TypeVar

from typed_rows.core.connection import (
    AsyncConnectionManager,
    ConnectionConfig,
    ConnectionManager,
)
from typed_rows.core.cursor import (
    first_value,
    rows_to_dicts,
    rows_to_dicts_async,
    run_statement,
    run_statement_async,
)
from typed_rows.core.transaction import AsyncTransactionManager, TransactionManager
from typed_rows.mapping.protocol import Mapper
from typed_rows.mapping.rows import RowMapper
from typed_rows.query.columns import Selector
from typed_rows.query.synthesizer import build_select, synthesize_insert

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _commit_pending(conn: Any) -> None:
    # A write sent through a read call (e.g. INSERT ... RETURNING) opens an
    # implicit transaction; it must not go back to the pool holding the lock.
    if conn.in_transaction:
        conn.commit()


async def _commit_pending_async(conn: Any) -> None:
    if conn.in_transaction:
        await conn.commit()


class RowStore:
    """Synchronous row store.

    Each call takes a pooled connection for its duration and returns it
    before yielding results; query results are fully fetched first, so the
    iterators returned by select() never hold a connection open.
    A write sent through execute_scalar() or execute_query() is committed
    before the connection goes back to the pool.
    """

    def __init__(self, connection_manager: ConnectionManager) -> None:
        self._connection_manager = connection_manager
        self._adapter = connection_manager.adapter

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> RowStore:
        """Create a RowStore from a ConnectionConfig."""
        return cls(ConnectionManager(config))

    @classmethod
    def open(cls, database: str, **options: Any) -> RowStore:
        """Create a RowStore for a database file; *options* go to ConnectionConfig."""
        return cls.from_config(ConnectionConfig(database=database, **options))

    @property
    def connection_manager(self) -> ConnectionManager:
        return self._connection_manager

    def execute(self, sql: str, params: Mapping[str, Any] | None = None) -> int:
        """Execute a write statement and commit. Returns affected row count."""
        with self._connection_manager.get_connection() as conn:
            cursor = run_statement(self._adapter, conn, sql, params)
            conn.commit()
            return int(cursor.rowcount)

    def execute_scalar(self, sql: str, params: Mapping[str, Any] | None = None) -> Any:
        """Return the first column of the first row, or None."""
        with self._connection_manager.get_connection() as conn:
            cursor = run_statement(self._adapter, conn, sql, params)
            row = cursor.fetchone()
            cursor.close()
            _commit_pending(conn)
            return first_value(row)

    def execute_query(
        self,
        sql: str,
        params: Mapping[str, Any] | None = None,
        *,
        mapper: Mapper[Any] | None = None,
    ) -> Any:
        """Fetch all rows as dicts, or pass them through *mapper*."""
        with self._connection_manager.get_connection() as conn:
            cursor = run_statement(self._adapter, conn, sql, params)
            rows = rows_to_dicts(cursor)
            _commit_pending(conn)

        if mapper is not None:
            return mapper.map_many(rows)
        return rows

    def insert(
        self,
        record: Any,
        columns: str | None = None,
        extra_params: Mapping[str, Any] | None = None,
    ) -> int:
        """Insert *record* into the table named after its class.

        Args:
            record: Record instance.
            columns: Comma-separated columns replacing the default of all
                fields.
            extra_params: Parameters for columns that are not fields. Never
                override a field value.

        Returns:
            Affected row count.
        """
        statement = synthesize_insert(record, columns, extra_params)
        return self.execute(statement.sql, statement.params)

    def select(
        self,
        record_type: type[T],
        selectors: Sequence[Selector] | None = None,
        raw_columns: str | None = None,
        where: str | None = None,
        params: Mapping[str, Any] | None = None,
        limit: int = 0,
        *,
        strict: bool = False,
    ) -> Iterator[T]:
        """Select rows from *record_type*'s table as records.

        Args:
            record_type: Record class; its name is the table name.
            selectors: Field references, e.g. ``[fields_of(User).name]``.
            raw_columns: Comma-separated columns, used when no selectors.
            where: Clause appended verbatim, e.g. ``"WHERE age > :age"``.
            params: Parameter bag for *where*.
            limit: Row cap; 0 or less means unbounded.
            strict: Raise instead of leaving unconvertible fields at zero.

        Returns:
            Lazy iterator of new record instances, one per row.
        """
        mapper = RowMapper(record_type, strict=strict)
        sql = build_select(record_type, selectors, raw_columns, where, limit)
        return self.execute_query(sql, params, mapper=mapper)  # type: ignore[no-any-return]

    def transaction(self) -> TransactionManager:
        """Create a new transaction context manager."""
        return TransactionManager(self._connection_manager)

    def test_connection(self) -> bool:
        """Return True if the database can be opened and queried."""
        try:
            return self.execute_scalar("SELECT 1") == 1
        except Exception:
            logger.warning(
                "Connection test failed for %s",
                self._connection_manager.config.database,
                exc_info=True,
            )
            return False

    def close(self) -> None:
        """Close all pooled connections."""
        self._connection_manager.close_pool()

    def __enter__(self) -> RowStore:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class AsyncRowStore:
    """Asynchronous row store."""

    def __init__(self, connection_manager: AsyncConnectionManager) -> None:
        self._connection_manager = connection_manager
        self._adapter = connection_manager.adapter

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> AsyncRowStore:
        """Create an AsyncRowStore from a ConnectionConfig."""
        return cls(AsyncConnectionManager(config))

    @classmethod
    def open(cls, database: str, **options: Any) -> AsyncRowStore:
        """Create an AsyncRowStore for a database file."""
        return cls.from_config(ConnectionConfig(database=database, **options))

    @property
    def connection_manager(self) -> AsyncConnectionManager:
        return self._connection_manager

    async def execute(self, sql: str, params: Mapping[str, Any] | None = None) -> int:
        """Execute a write statement asynchronously and commit."""
        async with self._connection_manager.get_connection() as conn:
            cursor = await run_statement_async(self._adapter, conn, sql, params)
            await conn.commit()
            return int(cursor.rowcount)

    async def execute_scalar(self, sql: str, params: Mapping[str, Any] | None = None) -> Any:
        """Return the first column of the first row, or None."""
        async with self._connection_manager.get_connection() as conn:
            cursor = await run_statement_async(self._adapter, conn, sql, params)
            row = await cursor.fetchone()
            await cursor.close()
            await _commit_pending_async(conn)
            return first_value(row)

    async def execute_query(
        self,
        sql: str,
        params: Mapping[str, Any] | None = None,
        *,
        mapper: Mapper[Any] | None = None,
    ) -> Any:
        """Fetch all rows asynchronously as dicts, or pass them through *mapper*."""
        async with self._connection_manager.get_connection() as conn:
            cursor = await run_statement_async(self._adapter, conn, sql, params)
            rows = await rows_to_dicts_async(cursor)
            await _commit_pending_async(conn)

        if mapper is not None:
            return mapper.map_many(rows)
        return rows

    async def insert(
        self,
        record: Any,
        columns: str | None = None,
        extra_params: Mapping[str, Any] | None = None,
    ) -> int:
        """Insert *record* into the table named after its class."""
        statement = synthesize_insert(record, columns, extra_params)
        return await self.execute(statement.sql, statement.params)

    async def select(
        self,
        record_type: type[T],
        selectors: Sequence[Selector] | None = None,
        raw_columns: str | None = None,
        where: str | None = None,
        params: Mapping[str, Any] | None = None,
        limit: int = 0,
        *,
        strict: bool = False,
    ) -> Iterator[T]:
        """Select rows from *record_type*'s table as records."""
        mapper = RowMapper(record_type, strict=strict)
        sql = build_select(record_type, selectors, raw_columns, where, limit)
        return await self.execute_query(sql, params, mapper=mapper)  # type: ignore[no-any-return]

    def transaction(self) -> AsyncTransactionManager:
        """Create a new async transaction context manager."""
        return AsyncTransactionManager(self._connection_manager)

    async def test_connection(self) -> bool:
        """Return True if the database can be opened and queried."""
        try:
            return await self.execute_scalar("SELECT 1") == 1
        except Exception:
            logger.warning(
                "Connection test failed for %s",
                self._connection_manager.config.database,
                exc_info=True,
            )
            return False

    async def close(self) -> None:
        """Close all pooled connections."""
        await self._connection_manager.close_pool()

    async def __aenter__(self) -> AsyncRowStore:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
