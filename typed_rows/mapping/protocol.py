"""Mapper protocol.

All mappers implement this interface. The row store calls map_many on
query results; map_many is lazy and single-pass.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Protocol, TypeVar

T = TypeVar("T")


class Mapper(Protocol[T]):
    """Base mapper protocol."""

    def map_one(self, row: Mapping[str, Any]) -> T:
        """Map a single row dict to a target object."""
        ...

    def map_many(self, rows: Iterable[Mapping[str, Any]]) -> Iterator[T]:
        """Map row dicts to target objects, one per row, on demand."""
        ...
