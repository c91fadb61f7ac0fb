"""Column resolution for SELECT projections.

Columns can be named three ways, checked in this order:

* typed selectors: ``fields_of(User).age`` or ``lambda u: u.age``
* a raw comma-separated string, copied verbatim
* nothing, meaning ``*``
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Union

from typed_rows.core.exceptions import InvalidSelectorError
from typed_rows.core.params import split_columns
from typed_rows.mapping.descriptor import RecordDescriptor, describe

WILDCARD = "*"


@dataclass(frozen=True)
class FieldRef:
    """A checked reference to one field of a record type."""

    record_type: type
    name: str

    def __str__(self) -> str:
        return self.name


class FieldProxy:
    """Stand-in for a record whose attributes are FieldRefs.

    Unknown attribute names raise AttributeError, so a typo in a selector
    fails when the selector is resolved rather than when SQL runs.
    """

    __slots__ = ("_descriptor",)

    def __init__(self, record_type: type) -> None:
        self._descriptor = describe(record_type)

    def __getattr__(self, name: str) -> FieldRef:
        if name.startswith("__"):
            raise AttributeError(name)
        if self._descriptor.get_field(name) is None:
            raise AttributeError(f"{self._descriptor.name} has no field '{name}'")
        return FieldRef(self._descriptor.record_type, name)

    def __repr__(self) -> str:
        return f"fields_of({self._descriptor.name})"


def fields_of(record_type: type) -> FieldProxy:
    """Return a proxy whose attributes are field references of *record_type*."""
    return FieldProxy(record_type)


Selector = Union[FieldRef, Callable[[FieldProxy], Any]]


def _selector_name(descriptor: RecordDescriptor, selector: Selector) -> str:
    if isinstance(selector, FieldRef):
        ref = selector
    elif callable(selector) and not isinstance(selector, type):
        try:
            ref = selector(FieldProxy(descriptor.record_type))
        except (AttributeError, TypeError) as e:
            raise InvalidSelectorError(descriptor.name, selector, str(e)) from e
        if not isinstance(ref, FieldRef):
            raise InvalidSelectorError(
                descriptor.name, selector, f"resolved to {ref!r}, not a field reference"
            )
    else:
        raise InvalidSelectorError(
            descriptor.name, selector, "expected a field reference or a callable returning one"
        )

    if ref.record_type is not descriptor.record_type:
        raise InvalidSelectorError(
            descriptor.name, selector, f"refers to a field of {ref.record_type.__name__}"
        )
    if descriptor.get_field(ref.name) is None:
        raise InvalidSelectorError(descriptor.name, selector, f"no field named '{ref.name}'")
    return ref.name


def resolve_columns(
    record_type: type,
    selectors: Sequence[Selector] | None = None,
    raw_columns: str | None = None,
) -> list[str]:
    """Resolve the column list for a SELECT on *record_type*.

    Raw columns are not checked against the record type.

    Raises:
        InvalidSelectorError: If a selector does not name exactly one field.
    """
    if selectors:
        descriptor = describe(record_type)
        return [_selector_name(descriptor, s) for s in selectors]

    columns = split_columns(raw_columns)
    if columns:
        return columns

    return [WILDCARD]
