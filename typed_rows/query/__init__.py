"""Query layer - column resolution and statement synthesis."""

from __future__ import annotations

from typed_rows.query.columns import WILDCARD, FieldProxy, FieldRef, fields_of, resolve_columns
from typed_rows.query.synthesizer import (
    Statement,
    build_select,
    synthesize_insert,
    synthesize_select,
)

__all__ = [
    "WILDCARD",
    "FieldRef",
    "FieldProxy",
    "fields_of",
    "resolve_columns",
    "Statement",
    "synthesize_insert",
    "synthesize_select",
    "build_select",
]
