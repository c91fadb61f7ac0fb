"""Field coercion categories."""

from __future__ import annotations

from enum import Enum


class FieldCategory(Enum):
    """How a field's declared type is converted to and from store scalars."""

    PLAIN = "plain"
    ENUM = "enum"
    IDENTIFIER = "identifier"
    INTEGER = "integer"
    TIMESTAMP = "timestamp"
