"""Mapping layer - record descriptors, coercion, and row mapping."""

from __future__ import annotations

from typed_rows.mapping.coercion import to_field_value, to_scalar, zero_value
from typed_rows.mapping.descriptor import (
    FieldDescriptor,
    Int32,
    IntWidth,
    RecordDescriptor,
    describe,
)
from typed_rows.mapping.rows import FieldDiagnostic, MappedRecord, RowMapper, map_rows

__all__ = [
    "RowMapper",
    "MappedRecord",
    "FieldDiagnostic",
    "map_rows",
    "RecordDescriptor",
    "FieldDescriptor",
    "describe",
    "Int32",
    "IntWidth",
    "to_field_value",
    "to_scalar",
    "zero_value",
]
