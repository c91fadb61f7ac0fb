"""Type coercion between store scalars and record field values.

The read path (``to_field_value``) turns an untyped scalar returned by the
store into a value of the field's declared type, raising ``CoercionError``
when it cannot. The write path (``to_scalar``) turns a field value into
something the driver can bind, raising ``ConversionError`` when it cannot.

Read-path rules, in priority order:

1. ``None`` / ``SQL_NULL`` -> the field's absent value (see ``zero_value``).
2. Enum fields -> member looked up by name, then by value.
3. Identifier fields -> ``uuid.UUID`` parsed from text (or 16 raw bytes).
4. Integer fields -> 32-bit fields wrap wide ints; otherwise ``int()``.
5. Timestamp fields -> ISO text or .NET-style tick counts.
6. Everything else -> generic conversion to the declared type.
"""

from __future__ import annotations

import datetime
import uuid
from collections.abc import Callable
from decimal import Decimal
from enum import Enum
from typing import Any, get_origin

from typed_rows.core.enums import FieldCategory
from typed_rows.core.exceptions import CoercionError, ConversionError
from typed_rows.core.params import SQL_NULL, is_null
from typed_rows.mapping.descriptor import FieldDescriptor

# Tick counts are 100ns intervals since 0001-01-01T00:00:00.
TICKS_EPOCH = datetime.datetime(1, 1, 1)
TICKS_PER_MICROSECOND = 10

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1

# Tried in order after datetime.fromisoformat().
_DATETIME_FORMATS = (
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%d.%m.%Y %H:%M:%S",
    "%d.%m.%Y",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
)

_TRUE_TEXT = frozenset({"true", "1", "yes", "y", "t"})
_FALSE_TEXT = frozenset({"false", "0", "no", "n", "f"})

_ZERO_VALUES: dict[type, Callable[[], Any]] = {
    str: str,
    float: float,
    bool: bool,
    bytes: bytes,
    Decimal: Decimal,
}

Warn = Callable[[str], None]


def zero_value(field: FieldDescriptor) -> Any:
    """Return the value a field holds when nothing was read into it.

    Declared defaults win, then ``None`` for nullable fields, then the zero
    value of the declared type. Enum fields and unknown types fall back to
    ``None``.
    """
    if field.has_default:
        return field.get_default()
    if field.nullable:
        return None

    category = field.category
    if category is FieldCategory.INTEGER:
        return 0
    if category is FieldCategory.IDENTIFIER:
        return uuid.UUID(int=0)
    if category is FieldCategory.TIMESTAMP:
        if issubclass(field.declared_type, datetime.datetime):
            return datetime.datetime.min
        return datetime.date.min
    if category is FieldCategory.PLAIN:
        factory = _ZERO_VALUES.get(field.declared_type)
        if factory is not None:
            return factory()
    return None


def wrap_int32(value: int) -> int:
    """Truncate *value* to its low 32 bits as a signed integer."""
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value > _INT32_MAX else value


def ticks_to_datetime(ticks: int) -> datetime.datetime:
    """Convert a .NET tick count to a naive datetime."""
    return TICKS_EPOCH + datetime.timedelta(microseconds=ticks // TICKS_PER_MICROSECOND)


def parse_datetime(text: str) -> datetime.datetime:
    """Parse a date/time string.

    Raises:
        ValueError: If no supported format matches.
    """
    text = text.strip()
    try:
        return datetime.datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in _DATETIME_FORMATS:
        try:
            return datetime.datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValueError(f"unrecognised date/time format: {text!r}")


def _as_text(value: Any) -> str:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8")
    return str(value)


def _to_enum(value: Any, field: FieldDescriptor) -> Enum:
    enum_type: type[Enum] = field.declared_type
    text = _as_text(value).strip()
    member = enum_type.__members__.get(text)
    if member is not None:
        return member
    for candidate in enum_type:
        if candidate.value == value or str(candidate.value) == text:
            return candidate
    raise CoercionError(field.name, value, f"not a member of {enum_type.__name__}")


def _to_identifier(value: Any, field: FieldDescriptor) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)) and len(value) == 16:
        return uuid.UUID(bytes=bytes(value))
    try:
        return uuid.UUID(_as_text(value).strip())
    except ValueError as e:
        raise CoercionError(field.name, value, "malformed identifier") from e


def _to_int(value: Any, field: FieldDescriptor, warn: Warn | None) -> int:
    if field.int_bits == 32 and isinstance(value, int) and not isinstance(value, bool):
        result = wrap_int32(value)
        if result != value and warn is not None:
            warn(f"{value} does not fit in 32 bits; truncated to {result}")
    else:
        if isinstance(value, bool):
            raise CoercionError(field.name, value, "bool is not an integer")
        if isinstance(value, (bytes, bytearray, memoryview)):
            raise CoercionError(field.name, value, "binary value is not an integer")
        try:
            result = int(value.strip()) if isinstance(value, str) else int(value)
        except (TypeError, ValueError, OverflowError) as e:
            raise CoercionError(field.name, value, str(e)) from e
        if field.int_bits == 32 and not _INT32_MIN <= result <= _INT32_MAX:
            raise CoercionError(field.name, value, "out of range for a 32-bit integer")

    declared = field.declared_type
    if isinstance(declared, type) and declared is not int:
        return declared(result)  # type: ignore[no-any-return]
    return result


def _ticks(value: int, field: FieldDescriptor) -> datetime.datetime:
    try:
        return ticks_to_datetime(value)
    except OverflowError as e:
        raise CoercionError(field.name, value, "tick count out of range") from e


def _to_timestamp(value: Any, field: FieldDescriptor) -> datetime.date:
    if isinstance(value, datetime.datetime):
        result = value
    elif isinstance(value, datetime.date):
        result = datetime.datetime.combine(value, datetime.time())
    elif isinstance(value, str):
        try:
            result = parse_datetime(value)
        except ValueError as e:
            # A tick count stored in a TEXT-affinity column comes back as digits.
            if not value.strip().isdigit():
                raise CoercionError(field.name, value, str(e)) from e
            result = _ticks(int(value), field)
    elif isinstance(value, int) and not isinstance(value, bool):
        result = _ticks(value, field)
    else:
        raise CoercionError(field.name, value, "cannot convert to a timestamp")

    if issubclass(field.declared_type, datetime.datetime):
        return result
    return result.date()


def _to_bool(value: Any, field: FieldDescriptor) -> bool:
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_TEXT:
            return True
        if text in _FALSE_TEXT:
            return False
    raise CoercionError(field.name, value, "cannot convert to bool")


def _to_plain(value: Any, field: FieldDescriptor) -> Any:
    target = field.declared_type
    if not isinstance(target, type) or get_origin(target) is not None or target is object:
        return value
    if target is bool:
        return _to_bool(value, field)
    if isinstance(value, target):
        return value

    try:
        if target is str:
            return _as_text(value)
        if target is bytes:
            if isinstance(value, str):
                return value.encode("utf-8")
            if isinstance(value, (bytearray, memoryview)):
                return bytes(value)
            raise CoercionError(field.name, value, "cannot convert to bytes")
        if target is float:
            return float(value)
        if target is Decimal:
            return Decimal(str(value))
    except (TypeError, ValueError, ArithmeticError) as e:
        raise CoercionError(field.name, value, str(e)) from e

    # Arbitrary field types may raise anything from their constructor.
    try:
        return target(value)
    except Exception as e:
        raise CoercionError(field.name, value, f"{type(e).__name__}: {e}") from e


def to_field_value(value: Any, field: FieldDescriptor, warn: Warn | None = None) -> Any:
    """Convert a store scalar to a value of *field*'s declared type.

    Args:
        value: Scalar as returned by the driver.
        field: Target field descriptor.
        warn: Called with a message when the conversion succeeds but loses
            information (32-bit truncation).

    Raises:
        CoercionError: If the scalar cannot be converted.
    """
    if is_null(value):
        return zero_value(field)

    category = field.category
    if category is FieldCategory.ENUM:
        return _to_enum(value, field)
    if category is FieldCategory.IDENTIFIER:
        return _to_identifier(value, field)
    if category is FieldCategory.INTEGER:
        return _to_int(value, field, warn)
    if category is FieldCategory.TIMESTAMP:
        return _to_timestamp(value, field)
    return _to_plain(value, field)


def to_scalar(value: Any, field: FieldDescriptor | None = None, name: str | None = None) -> Any:
    """Convert a field value to a scalar the driver can bind.

    ``None`` becomes ``SQL_NULL``. Identifiers become their canonical text,
    enums their member name, timestamps ISO-8601 text.

    Raises:
        ConversionError: If the value has no scalar representation.
    """
    if is_null(value):
        return SQL_NULL
    if field is not None and field.category is FieldCategory.IDENTIFIER:
        return str(value)
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, datetime.datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, datetime.date):
        return value.isoformat()
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (int, float, str, bytes)):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    raise ConversionError(field.name if field is not None else name or "<param>", value)
