"""typed-rows - typed record CRUD over an embedded SQLite store."""

from __future__ import annotations

from typed_rows.core.connection import (
    AsyncConnectionManager,
    ConnectionConfig,
    ConnectionManager,
)
from typed_rows.core.engine import AsyncRowStore, RowStore
from typed_rows.core.enums import FieldCategory
from typed_rows.core.exceptions import (
    AdapterError,
    CoercionError,
    ConnectionError,  # noqa: A004
    ConversionError,
    ExecutionError,
    InvalidSelectorError,
    MappingError,
    ParameterBindingError,
    PoolError,
    SelectorError,
    StatementExecutionError,
    StrictModeViolation,
    TransactionError,
    TransactionStateError,
    TypedRowsError,
    UnsupportedRecordTypeError,
)
from typed_rows.core.params import SQL_NULL
from typed_rows.core.transaction import AsyncTransactionManager, TransactionManager
from typed_rows.mapping.descriptor import Int32, describe
from typed_rows.mapping.rows import FieldDiagnostic, MappedRecord, RowMapper, map_rows
from typed_rows.query.columns import FieldRef, fields_of
from typed_rows.query.synthesizer import Statement, synthesize_insert, synthesize_select

__all__ = [
    # Connection
    "ConnectionConfig",
    "ConnectionManager",
    "AsyncConnectionManager",
    # Row store
    "RowStore",
    "AsyncRowStore",
    # Transaction
    "TransactionManager",
    "AsyncTransactionManager",
    # Query
    "Statement",
    "synthesize_insert",
    "synthesize_select",
    "FieldRef",
    "fields_of",
    # Mapping
    "RowMapper",
    "MappedRecord",
    "FieldDiagnostic",
    "map_rows",
    "describe",
    "Int32",
    "FieldCategory",
    "SQL_NULL",
    # Exceptions
    "TypedRowsError",
    "SelectorError",
    "InvalidSelectorError",
    "ExecutionError",
    "StatementExecutionError",
    "ParameterBindingError",
    "MappingError",
    "CoercionError",
    "ConversionError",
    "StrictModeViolation",
    "UnsupportedRecordTypeError",
    "TransactionError",
    "TransactionStateError",
    "AdapterError",
    "ConnectionError",
    "PoolError",
]
