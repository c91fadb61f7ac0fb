"""INSERT and SELECT synthesis from a record type's shape.

Table name is the record class name, verbatim. Column and parameter names
are field names. Placeholders use the ``:name`` style.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from typed_rows.core.params import split_columns, strip_prefix
from typed_rows.mapping.coercion import to_scalar
from typed_rows.mapping.descriptor import describe
from typed_rows.query.columns import WILDCARD, Selector, resolve_columns

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Statement:
    """SQL text plus the parameter bag to bind with it."""

    sql: str
    params: dict[str, Any] = field(default_factory=dict)


def synthesize_insert(
    record: Any,
    columns: str | None = None,
    extra_params: Mapping[str, Any] | None = None,
) -> Statement:
    """Build an INSERT for *record*.

    Args:
        record: Record instance; its class name is the table name.
        columns: Comma-separated column list replacing the default set of
            all field names. Columns need not be fields; their values can
            come from *extra_params*.
        extra_params: Additional parameters. A name already taken by a
            field-derived parameter is ignored.

    Returns:
        Statement with one ``:column`` placeholder per column.

    Raises:
        ConversionError: If a field value has no scalar representation.
    """
    descriptor = describe(type(record))
    column_names = split_columns(columns) or descriptor.field_names
    selected = set(column_names)

    params: dict[str, Any] = {}
    for f in descriptor.fields:
        if f.name in selected:
            params[f.name] = to_scalar(getattr(record, f.name, None), f)

    if extra_params:
        for key, value in extra_params.items():
            name = strip_prefix(key)
            if name not in params:
                params[name] = to_scalar(value, name=name)

    placeholders = ", ".join(f":{name}" for name in column_names)
    sql = f"INSERT INTO {descriptor.name} ({', '.join(column_names)}) VALUES ({placeholders})"
    logger.debug("Synthesized insert: %s", sql)
    return Statement(sql, params)


def synthesize_select(
    record_type: type,
    columns: Sequence[str] | None = None,
    where: str | None = None,
    limit: int = 0,
) -> str:
    """Build a SELECT on *record_type*'s table.

    The where clause is appended verbatim (leading whitespace stripped) and
    must include its own keyword, e.g. ``"WHERE age > :age"``. Values belong
    in the parameter bag, never in the clause text.
    """
    descriptor = describe(record_type)
    projection = ", ".join(columns) if columns else WILDCARD
    sql = f"SELECT {projection} FROM {descriptor.name}"

    if where is not None and where.strip():
        sql += " " + where.lstrip()
    if limit > 0:
        sql += f" LIMIT {int(limit)}"

    logger.debug("Synthesized select: %s", sql)
    return sql


def build_select(
    record_type: type,
    selectors: Sequence[Selector] | None = None,
    raw_columns: str | None = None,
    where: str | None = None,
    limit: int = 0,
) -> str:
    """Resolve the projection for *record_type* and synthesize its SELECT.

    Raises:
        InvalidSelectorError: If a selector does not name exactly one field.
    """
    columns = resolve_columns(record_type, selectors, raw_columns)
    return synthesize_select(record_type, columns, where, limit)
