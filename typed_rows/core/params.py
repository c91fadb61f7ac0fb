"""Parameter bag handling.

A parameter bag maps unprefixed names to scalars. SQL NULL is the explicit
``SQL_NULL`` sentinel so that "bound to NULL" and "not supplied" stay
distinguishable until the bag reaches the driver.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Final

from typed_rows.core.exceptions import ParameterBindingError

# Placeholder prefixes accepted on caller-supplied keys. SQLite understands
# all three in SQL text, but the driver wants bare names in the mapping.
_PARAM_PREFIXES = (":", "@", "$")


class _SqlNull:
    """Singleton marker for an explicit SQL NULL parameter."""

    _instance: _SqlNull | None = None

    def __new__(cls) -> _SqlNull:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SQL_NULL"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "SQL_NULL"


SQL_NULL: Final = _SqlNull()


def is_null(value: Any) -> bool:
    """True for ``None`` and ``SQL_NULL``."""
    return value is None or value is SQL_NULL


def strip_prefix(name: str) -> str:
    """Drop a single leading ``:``, ``@`` or ``$`` from a parameter name."""
    if name.startswith(_PARAM_PREFIXES):
        return name[1:]
    return name


def split_columns(csv: str | None) -> list[str]:
    """Split a comma-separated column list, trimming each entry.

    Entries are copied verbatim; nothing is checked against a record type.
    """
    if csv is None or not csv.strip():
        return []
    return [part.strip() for part in csv.split(",") if part.strip()]


def bind_params(params: Mapping[str, Any] | None) -> dict[str, Any]:
    """Translate a parameter bag into the mapping sqlite3 expects.

    ``SQL_NULL`` becomes ``None`` and placeholder prefixes are removed from
    the keys.

    Raises:
        ParameterBindingError: If two keys name the same parameter once
            their prefixes are removed.
    """
    if not params:
        return {}
    bound: dict[str, Any] = {}
    for key, value in params.items():
        name = strip_prefix(key)
        if not name:
            raise ParameterBindingError(key, "empty parameter name")
        if name in bound:
            raise ParameterBindingError(name, f"supplied more than once (as '{key}')")
        bound[name] = None if value is SQL_NULL else value
    return bound
