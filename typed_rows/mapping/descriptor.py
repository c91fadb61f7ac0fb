"""Record and field descriptors.

A descriptor is the static mapping table for one record type: table name,
ordered fields, and the coercion category of each field. Descriptors are
built once per type and reused.

Supports dataclasses, Pydantic models, and plain annotated classes.
"""

from __future__ import annotations

import copy
import dataclasses
import datetime
import types
import typing
import uuid
from collections.abc import Callable
from enum import Enum
from functools import lru_cache
from typing import Annotated, Any, ClassVar, Union, get_args, get_origin

from pydantic import BaseModel

from typed_rows.core.enums import FieldCategory
from typed_rows.core.exceptions import UnsupportedRecordTypeError


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


@dataclasses.dataclass(frozen=True)
class IntWidth:
    """Annotation marker declaring a fixed integer width in bits."""

    bits: int


Int32 = Annotated[int, IntWidth(32)]
"""A 32-bit integer field. Wide stored integers are truncated on read."""


@dataclasses.dataclass(frozen=True)
class FieldDescriptor:
    """Per-field mapping metadata."""

    name: str
    annotation: Any
    declared_type: Any  # annotation with one level of Optional removed
    nullable: bool
    category: FieldCategory
    int_bits: int | None = None
    default: Any = MISSING
    default_factory: Callable[[], Any] | None = None
    init: bool = True

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING or self.default_factory is not None

    def get_default(self) -> Any:
        """Return a fresh copy of the declared default.

        Calls the factory if there is one. A plain default is deep-copied so
        mutable defaults are never shared between records.
        """
        if self.default_factory is not None:
            return self.default_factory()
        return copy.deepcopy(self.default)


@dataclasses.dataclass(frozen=True)
class RecordDescriptor:
    """Mapping metadata for a record type.

    ``name`` is the class name, used verbatim as the table name.
    """

    record_type: type
    name: str
    fields: tuple[FieldDescriptor, ...]
    kind: str  # "pydantic", "dataclass" or "plain"

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def get_field(self, name: str) -> FieldDescriptor | None:
        """Look up a field by exact name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def build(self, values: dict[str, Any]) -> Any:
        """Construct a fresh instance from already-converted field values."""
        cls = self.record_type
        if self.kind == "pydantic":
            return cls.model_construct(**values)  # type: ignore[attr-defined]

        if self.kind == "dataclass":
            init_names = {f.name for f in self.fields if f.init}
            instance = cls(**{k: v for k, v in values.items() if k in init_names})
            for key, value in values.items():
                if key not in init_names:
                    object.__setattr__(instance, key, value)
            return instance

        instance = cls()
        for key, value in values.items():
            setattr(instance, key, value)
        return instance


def _unwrap_annotated(annotation: Any) -> tuple[Any, list[Any]]:
    if get_origin(annotation) is Annotated:
        base, *metadata = get_args(annotation)
        return base, list(metadata)
    return annotation, []


def unwrap_annotation(annotation: Any) -> tuple[Any, bool, list[Any]]:
    """Strip ``Annotated`` and one level of ``Optional``.

    Returns:
        Tuple of (declared_type, nullable, annotated_metadata).
    """
    annotation, metadata = _unwrap_annotated(annotation)
    nullable = False

    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = get_args(annotation)
        non_none = [a for a in args if a is not type(None)]
        if len(non_none) == 1 and len(non_none) < len(args):
            nullable = True
            annotation, more = _unwrap_annotated(non_none[0])
            metadata.extend(more)

    return annotation, nullable, metadata


def categorize(declared_type: Any) -> FieldCategory:
    """Classify an unwrapped declared type."""
    if not isinstance(declared_type, type) or get_origin(declared_type) is not None:
        return FieldCategory.PLAIN
    if issubclass(declared_type, Enum):
        return FieldCategory.ENUM
    if issubclass(declared_type, uuid.UUID):
        return FieldCategory.IDENTIFIER
    if issubclass(declared_type, bool):
        return FieldCategory.PLAIN
    if issubclass(declared_type, int):
        return FieldCategory.INTEGER
    if issubclass(declared_type, datetime.date):  # datetime is a date subclass
        return FieldCategory.TIMESTAMP
    return FieldCategory.PLAIN


def _make_field(
    name: str,
    annotation: Any,
    *,
    default: Any = MISSING,
    default_factory: Callable[[], Any] | None = None,
    init: bool = True,
    extra_metadata: list[Any] | None = None,
) -> FieldDescriptor:
    declared_type, nullable, metadata = unwrap_annotation(annotation)
    metadata.extend(extra_metadata or [])
    if annotation is type(None) or annotation is None:
        nullable = True
    int_bits = next((m.bits for m in metadata if isinstance(m, IntWidth)), None)
    return FieldDescriptor(
        name=name,
        annotation=annotation,
        declared_type=declared_type,
        nullable=nullable,
        category=categorize(declared_type),
        int_bits=int_bits,
        default=default,
        default_factory=default_factory,
        init=init,
    )


def _type_hints(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls, include_extras=True)
    except (NameError, TypeError):
        # Unresolvable forward references; fall back to raw annotations.
        hints: dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            hints.update(getattr(klass, "__annotations__", {}))
        return hints


def _pydantic_fields(cls: type[BaseModel]) -> list[FieldDescriptor]:
    result = []
    for name, info in cls.model_fields.items():
        default: Any = MISSING
        factory = None
        if not info.is_required():
            if info.default_factory is not None:
                factory = info.default_factory
            else:
                default = info.default
        result.append(
            _make_field(
                name,
                info.annotation,
                default=default,
                default_factory=factory,  # type: ignore[arg-type]
                extra_metadata=list(info.metadata),
            )
        )
    return result


def _dataclass_fields(cls: type) -> list[FieldDescriptor]:
    hints = _type_hints(cls)
    result = []
    for f in dataclasses.fields(cls):
        default: Any = MISSING if f.default is dataclasses.MISSING else f.default
        factory = None if f.default_factory is dataclasses.MISSING else f.default_factory
        result.append(
            _make_field(
                f.name,
                hints.get(f.name, f.type),
                default=default,
                default_factory=factory,
                init=f.init,
            )
        )
    return result


def _plain_fields(cls: type) -> list[FieldDescriptor]:
    result = []
    for name, annotation in _type_hints(cls).items():
        if name.startswith("_") or get_origin(annotation) is ClassVar or annotation is ClassVar:
            continue
        default = getattr(cls, name, MISSING)
        if callable(default) or isinstance(default, (property, staticmethod, classmethod)):
            default = MISSING
        result.append(_make_field(name, annotation, default=default))
    return result


@lru_cache(maxsize=256)
def describe(record_type: type) -> RecordDescriptor:
    """Build (or fetch the cached) descriptor for *record_type*.

    Raises:
        UnsupportedRecordTypeError: If the type has no mappable fields.
    """
    if not isinstance(record_type, type):
        raise UnsupportedRecordTypeError(repr(record_type), "not a class")

    if issubclass(record_type, BaseModel):
        kind = "pydantic"
        fields = _pydantic_fields(record_type)
    elif dataclasses.is_dataclass(record_type):
        kind = "dataclass"
        fields = _dataclass_fields(record_type)
    else:
        kind = "plain"
        fields = _plain_fields(record_type)

    if not fields:
        raise UnsupportedRecordTypeError(record_type.__name__, "no annotated fields found")

    return RecordDescriptor(
        record_type=record_type,
        name=record_type.__name__,
        fields=tuple(fields),
        kind=kind,
    )
