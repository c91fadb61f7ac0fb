"""Row-to-record mapper.

Turns untyped row dicts into freshly constructed record instances. Columns
bind to fields by case-insensitive name; the first matching column in row
order wins. A value that cannot be converted leaves its field at the zero
value and the rest of the row is still mapped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from typed_rows.core.exceptions import (
    CoercionError,
    StrictModeViolation,
    UnsupportedRecordTypeError,
)
from typed_rows.mapping.coercion import to_field_value, zero_value
from typed_rows.mapping.descriptor import RecordDescriptor, describe

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors a conversion may raise for a single value. Anything else is a bug
# and propagates.
_FIELD_ERRORS = (CoercionError, TypeError, ValueError, ArithmeticError)


@dataclass(frozen=True)
class FieldDiagnostic:
    """A problem met while mapping one field of one row."""

    field: str
    column: str | None
    value: Any
    reason: str


@dataclass(frozen=True)
class MappedRecord(Generic[T]):
    """A mapped record together with the problems met while building it."""

    record: T
    diagnostics: list[FieldDiagnostic] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not self.diagnostics


class RowMapper(Generic[T]):
    """Maps row dicts onto a record type.

    Args:
        record_type: Dataclass, Pydantic model, or plain annotated class.
        strict: Raise StrictModeViolation instead of leaving a field at its
            zero value when a column cannot be mapped cleanly.
    """

    def __init__(self, record_type: type[T], *, strict: bool = False) -> None:
        self._descriptor: RecordDescriptor = describe(record_type)
        self._strict = strict

    @property
    def record_type(self) -> type[T]:
        return self._descriptor.record_type

    @property
    def descriptor(self) -> RecordDescriptor:
        return self._descriptor

    def _bind_columns(
        self, row: Mapping[str, Any]
    ) -> tuple[dict[str, str], list[FieldDiagnostic]]:
        """Match fields to row columns, ignoring case."""
        wanted = {f.name.casefold(): f.name for f in self._descriptor.fields}
        bindings: dict[str, str] = {}
        diagnostics: list[FieldDiagnostic] = []

        for column in row:
            field_name = wanted.get(column.casefold())
            if field_name is None:
                continue
            if field_name in bindings:
                diagnostics.append(
                    FieldDiagnostic(
                        field=field_name,
                        column=column,
                        value=row[column],
                        reason=f"ignored, column '{bindings[field_name]}' already bound",
                    )
                )
                continue
            bindings[field_name] = column

        return bindings, diagnostics

    def _map_row(self, row: Mapping[str, Any]) -> MappedRecord[T]:
        fields = self._descriptor.fields
        values = {f.name: zero_value(f) for f in fields}
        bindings, diagnostics = self._bind_columns(row)

        for f in fields:
            column = bindings.get(f.name)
            if column is None:
                continue
            raw = row[column]

            def warn(
                reason: str, _field: str = f.name, _column: str = column, _raw: Any = raw
            ) -> None:
                diagnostics.append(FieldDiagnostic(_field, _column, _raw, reason))

            try:
                values[f.name] = to_field_value(raw, f, warn)
            except _FIELD_ERRORS as e:
                logger.debug(
                    "Leaving %s.%s unset: %s", self._descriptor.name, f.name, e
                )
                diagnostics.append(FieldDiagnostic(f.name, column, raw, str(e)))

        if self._strict and diagnostics:
            first = diagnostics[0]
            raise StrictModeViolation(
                f"Cannot map column '{first.column}' to "
                f"{self._descriptor.name}.{first.field}: {first.reason}"
            )

        try:
            record = self._descriptor.build(values)
        except (TypeError, ValueError) as e:
            raise UnsupportedRecordTypeError(self._descriptor.name, str(e)) from e
        return MappedRecord(record, diagnostics)

    def map_one(self, row: Mapping[str, Any]) -> T:
        """Map a single row to a new record instance."""
        return self._map_row(row).record

    def map_many(self, rows: Iterable[Mapping[str, Any]]) -> Iterator[T]:
        """Lazily map rows, one record per row, in order."""
        for row in rows:
            yield self._map_row(row).record

    def map_with_diagnostics(
        self, rows: Iterable[Mapping[str, Any]]
    ) -> Iterator[MappedRecord[T]]:
        """Like map_many, but yield each record with its field diagnostics."""
        for row in rows:
            yield self._map_row(row)


def map_rows(
    record_type: type[T],
    rows: Iterable[Mapping[str, Any]],
    *,
    strict: bool = False,
) -> Iterator[T]:
    """Lazily map *rows* onto *record_type*."""
    return RowMapper(record_type, strict=strict).map_many(rows)
