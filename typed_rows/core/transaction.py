"""Transaction management.

Provides context managers for executing multiple statements atomically on
one pooled connection. Auto-commits on success, auto-rolls-back on
exception. Transactions do not nest.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from enum import Enum
from typing import Any, TypeVar

from typed_rows.core.cursor import (
    first_value,
    rows_to_dicts,
    rows_to_dicts_async,
    run_statement,
    run_statement_async,
)
from typed_rows.core.exceptions import TransactionError, TransactionStateError
from typed_rows.mapping.protocol import Mapper
from typed_rows.mapping.rows import RowMapper
from typed_rows.query.columns import Selector
from typed_rows.query.synthesizer import build_select, synthesize_insert

T = TypeVar("T")


class _TxState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class _StateMixin:
    _state: _TxState

    def _check_active(self) -> None:
        if self._state != _TxState.ACTIVE:
            raise TransactionStateError(self._state.value, "execute")

    def _check_can_commit(self) -> None:
        if self._state != _TxState.ACTIVE:
            raise TransactionStateError(self._state.value, "commit")

    def _check_can_rollback(self) -> None:
        if self._state in (_TxState.IDLE, _TxState.COMMITTED):
            raise TransactionStateError(self._state.value, "rollback")


class TransactionManager(_StateMixin):
    """Synchronous transaction context manager.

    The connection is held until the context exits, so other calls on the
    same store cannot use it meanwhile.
    """

    def __init__(self, connection_manager: Any) -> None:
        self._connection_manager = connection_manager
        self._adapter = connection_manager.adapter
        self._connection: Any = None
        self._state = _TxState.IDLE

    def __enter__(self) -> TransactionManager:
        if self._state != _TxState.IDLE:
            raise TransactionStateError(self._state.value, "begin")
        self._connection = self._connection_manager.acquire()
        try:
            self._adapter.begin(self._connection)
        except Exception as e:
            self._connection_manager.release(self._connection)
            self._connection = None
            raise TransactionError(f"Cannot begin transaction: {e}") from e
        self._state = _TxState.ACTIVE
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        try:
            if self._state == _TxState.ACTIVE:
                if exc_type is not None:
                    self._connection.rollback()
                    self._state = _TxState.ROLLED_BACK
                else:
                    self._connection.commit()
                    self._state = _TxState.COMMITTED
        finally:
            self._connection_manager.release(self._connection)
            self._connection = None

    def execute(self, sql: str, params: Mapping[str, Any] | None = None) -> int:
        """Execute a write statement within this transaction."""
        self._check_active()
        cursor = run_statement(self._adapter, self._connection, sql, params)
        return int(cursor.rowcount)

    def execute_scalar(self, sql: str, params: Mapping[str, Any] | None = None) -> Any:
        """Return the first column of the first row, or None."""
        self._check_active()
        cursor = run_statement(self._adapter, self._connection, sql, params)
        return first_value(cursor.fetchone())

    def execute_query(
        self,
        sql: str,
        params: Mapping[str, Any] | None = None,
        *,
        mapper: Mapper[Any] | None = None,
    ) -> Any:
        """Fetch all rows within transaction context."""
        self._check_active()
        cursor = run_statement(self._adapter, self._connection, sql, params)
        rows = rows_to_dicts(cursor)
        if mapper is not None:
            return mapper.map_many(rows)
        return rows

    def insert(
        self,
        record: Any,
        columns: str | None = None,
        extra_params: Mapping[str, Any] | None = None,
    ) -> int:
        """Insert *record* into its table within this transaction."""
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
        """Select records of *record_type* within this transaction."""
        mapper = RowMapper(record_type, strict=strict)
        sql = build_select(record_type, selectors, raw_columns, where, limit)
        return self.execute_query(sql, params, mapper=mapper)  # type: ignore[no-any-return]

    def commit(self) -> None:
        """Explicitly commit the transaction."""
        self._check_can_commit()
        self._connection.commit()
        self._state = _TxState.COMMITTED

    def rollback(self) -> None:
        """Explicitly rollback the transaction."""
        self._check_can_rollback()
        if self._state == _TxState.ACTIVE:
            self._connection.rollback()
        self._state = _TxState.ROLLED_BACK


class AsyncTransactionManager(_StateMixin):
    """Asynchronous transaction context manager.

    The connection is acquired in __aenter__, allowing usage as:
    ``async with store.transaction() as tx:``
    """

    def __init__(self, connection_manager: Any) -> None:
        self._connection_manager = connection_manager
        self._adapter = connection_manager.adapter
        self._connection: Any = None
        self._state = _TxState.IDLE

    async def __aenter__(self) -> AsyncTransactionManager:
        if self._state != _TxState.IDLE:
            raise TransactionStateError(self._state.value, "begin")
        self._connection = await self._connection_manager.acquire()
        try:
            await self._adapter.begin_async(self._connection)
        except Exception as e:
            await self._connection_manager.release(self._connection)
            self._connection = None
            raise TransactionError(f"Cannot begin transaction: {e}") from e
        self._state = _TxState.ACTIVE
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        try:
            if self._state == _TxState.ACTIVE:
                if exc_type is not None:
                    await self._connection.rollback()
                    self._state = _TxState.ROLLED_BACK
                else:
                    await self._connection.commit()
                    self._state = _TxState.COMMITTED
        finally:
            await self._connection_manager.release(self._connection)
            self._connection = None

    async def execute(self, sql: str, params: Mapping[str, Any] | None = None) -> int:
        """Execute a write statement within this async transaction."""
        self._check_active()
        cursor = await run_statement_async(self._adapter, self._connection, sql, params)
        return int(cursor.rowcount)

    async def execute_scalar(self, sql: str, params: Mapping[str, Any] | None = None) -> Any:
        """Return the first column of the first row, or None."""
        self._check_active()
        cursor = await run_statement_async(self._adapter, self._connection, sql, params)
        return first_value(await cursor.fetchone())

    async def execute_query(
        self,
        sql: str,
        params: Mapping[str, Any] | None = None,
        *,
        mapper: Mapper[Any] | None = None,
    ) -> Any:
        """Fetch all rows within async transaction context."""
        self._check_active()
        cursor = await run_statement_async(self._adapter, self._connection, sql, params)
        rows = await rows_to_dicts_async(cursor)
        if mapper is not None:
            return mapper.map_many(rows)
        return rows

    async def insert(
        self,
        record: Any,
        columns: str | None = None,
        extra_params: Mapping[str, Any] | None = None,
    ) -> int:
        """Insert *record* into its table within this transaction."""
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
        """Select records of *record_type* within this transaction."""
        mapper = RowMapper(record_type, strict=strict)
        sql = build_select(record_type, selectors, raw_columns, where, limit)
        return await self.execute_query(sql, params, mapper=mapper)  # type: ignore[no-any-return]

    async def commit(self) -> None:
        """Explicitly commit the async transaction."""
        self._check_can_commit()
        await self._connection.commit()
        self._state = _TxState.COMMITTED

    async def rollback(self) -> None:
        """Explicitly rollback the async transaction."""
        self._check_can_rollback()
        if self._state == _TxState.ACTIVE:
            await self._connection.rollback()
        self._state = _TxState.ROLLED_BACK
