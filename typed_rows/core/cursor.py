"""Statement execution and cursor conversion shared by engines and transactions."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from typed_rows.core.exceptions import StatementExecutionError, TypedRowsError

logger = logging.getLogger(__name__)


def run_statement(
    adapter: Any,
    connection: Any,
    sql: str,
    params: Mapping[str, Any] | None = None,
) -> Any:
    """Execute *sql* through *adapter* and return the cursor.

    Raises:
        StatementExecutionError: If the driver rejects or fails the statement.
    """
    logger.debug("Executing: %s", sql)
    try:
        return adapter.execute(connection, sql, params)
    except TypedRowsError:
        raise
    except Exception as e:
        raise StatementExecutionError(sql, str(e)) from e


async def run_statement_async(
    adapter: Any,
    connection: Any,
    sql: str,
    params: Mapping[str, Any] | None = None,
) -> Any:
    """Async variant of run_statement."""
    logger.debug("Executing: %s", sql)
    try:
        return await adapter.execute_async(connection, sql, params)
    except TypedRowsError:
        raise
    except Exception as e:
        raise StatementExecutionError(sql, str(e)) from e


def _columns(cursor: Any) -> list[str]:
    return [desc[0] for desc in cursor.description]


def _as_dicts(columns: list[str], rows: list[Any]) -> list[dict[str, Any]]:
    if rows and isinstance(rows[0], dict):
        return [dict(row) for row in rows]
    return [dict(zip(columns, row, strict=True)) for row in rows]


def rows_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Fetch all remaining rows of *cursor* as column -> value dicts.

    Column names keep the case reported by the store.
    """
    if cursor.description is None:
        return []
    return _as_dicts(_columns(cursor), cursor.fetchall())


async def rows_to_dicts_async(cursor: Any) -> list[dict[str, Any]]:
    """Async variant of rows_to_dicts."""
    if cursor.description is None:
        return []
    return _as_dicts(_columns(cursor), list(await cursor.fetchall()))


def first_value(row: Any) -> Any:
    """Return the first column of a fetched row, or None for no row."""
    if row is None:
        return None
    if isinstance(row, dict):
        return next(iter(row.values()), None)
    return row[0]
