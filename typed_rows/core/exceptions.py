"""typed-rows exception hierarchy.

Driver exceptions are wrapped before they reach callers; the original
error is kept as ``__cause__``.
"""

from __future__ import annotations

from typing import Any


class TypedRowsError(Exception):
    """Base exception for all typed-rows errors."""


# --- Selectors ---


class SelectorError(TypedRowsError):
    """Base for column selector errors."""


class InvalidSelectorError(SelectorError):
    """Raised when a column selector cannot be reduced to a single field name."""

    def __init__(self, record_type: str, selector: Any, detail: str) -> None:
        self.record_type = record_type
        self.selector = selector
        super().__init__(f"Invalid column selector {selector!r} for {record_type}: {detail}")


# --- Execution ---


class ExecutionError(TypedRowsError):
    """Base for statement execution errors."""


class StatementExecutionError(ExecutionError):
    """Raised when the row store rejects or fails a statement."""

    def __init__(self, sql: str, detail: str) -> None:
        self.sql = sql
        super().__init__(f"Statement failed: {detail} [sql: {sql}]")


class ParameterBindingError(ExecutionError):
    """Raised when a parameter bag cannot be bound to a statement."""

    def __init__(self, name: str, detail: str) -> None:
        self.name = name
        super().__init__(f"Cannot bind parameter '{name}': {detail}")


# --- Mapping ---


class MappingError(TypedRowsError):
    """Base for mapping errors."""


class UnsupportedRecordTypeError(MappingError):
    """Raised when a class exposes no mappable fields."""

    def __init__(self, record_type: str, detail: str) -> None:
        self.record_type = record_type
        super().__init__(f"Cannot map record type {record_type}: {detail}")


class CoercionError(MappingError):
    """Raised when a stored scalar cannot be converted to a field's type.

    The row mapper catches this per field; it only escapes in strict mode
    (wrapped in StrictModeViolation) or when coercion is called directly.
    """

    def __init__(self, field_name: str, value: Any, detail: str) -> None:
        self.field_name = field_name
        self.value = value
        super().__init__(f"Cannot convert {value!r} for field '{field_name}': {detail}")


class ConversionError(MappingError):
    """Raised when a field value cannot be expressed as a store scalar."""

    def __init__(self, field_name: str, value: Any) -> None:
        self.field_name = field_name
        self.value = value
        super().__init__(
            f"Field '{field_name}' holds {type(value).__name__} {value!r}, "
            "which is not a storable scalar"
        )


class StrictModeViolation(MappingError):
    """Raised in strict mode when a row cannot be mapped cleanly."""


# --- Transaction ---


class TransactionError(TypedRowsError):
    """Base for transaction errors."""


class TransactionStateError(TransactionError):
    """Raised on invalid transaction state transitions."""

    def __init__(self, current_state: str, attempted_action: str) -> None:
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} transaction in state '{current_state}'")


# --- Adapter ---


class AdapterError(TypedRowsError):
    """Base for adapter errors."""


class ConnectionError(AdapterError):  # noqa: A001
    """Raised on connection failures."""


class PoolError(AdapterError):
    """Raised on connection pool failures."""
