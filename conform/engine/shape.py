"""Per-type field tables.

A record type is described once per (type, tag key, separator) and the
result is cached. The table only depends on the class declaration, never on
an instance's values.
"""

from __future__ import annotations

import collections.abc
import dataclasses
import enum
import types
import typing
from functools import lru_cache
from typing import Any, Iterable

from conform.core.settings import DEFAULT_SEPARATOR, DEFAULT_TAG_KEY
from conform.core.types import FieldKind, FieldSpec, RecordShape
from conform.observability.logger import get_logger

logger = get_logger(__name__)

# Bounded so dynamically created record types can be garbage collected once evicted.
SHAPE_CACHE_SIZE = 512

_SEQUENCE_ORIGINS = (
    list,
    tuple,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
)

_UNION_ORIGINS: tuple[Any, ...] = (typing.Union,)
if hasattr(types, "UnionType"):
    _UNION_ORIGINS += (types.UnionType,)


def parse_annotation(raw: str | Iterable[str] | None, separator: str = DEFAULT_SEPARATOR) -> tuple[str, ...]:
    """Turn an annotation into an ordered tuple of identifiers.

    "trim, lower,,ucfirst" -> ("trim", "lower", "ucfirst")

    A list/tuple of identifiers is accepted as already split.
    """
    if isinstance(raw, str):
        parts = raw.split(separator)
    elif isinstance(raw, (list, tuple)):
        parts = list(raw)
    else:
        return ()
    return tuple(p.strip() for p in parts if isinstance(p, str) and p.strip())


def conform_field(annotation: str, *, tag_key: str = DEFAULT_TAG_KEY, **kwargs: Any) -> Any:
    """`dataclasses.field()` carrying a conform annotation.

    Existing `metadata` entries (e.g. a form decoder's key) are kept.

        email: str = conform_field("email", default="")
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[tag_key] = annotation
    return dataclasses.field(metadata=metadata, **kwargs)


def is_record(value: Any) -> bool:
    """True for dataclass instances, False for dataclass types and everything else."""
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def _unwrap(tp: Any) -> Any:
    if typing.get_origin(tp) is typing.Annotated:
        tp = typing.get_args(tp)[0]
    # typing.NewType("Name", str) -> str
    while hasattr(tp, "__supertype__"):
        tp = tp.__supertype__
    return tp


def _element_kind(tp: Any) -> FieldKind:
    kind = classify(tp)
    if kind is FieldKind.RECORD:
        return FieldKind.RECORD_SEQUENCE
    if kind is FieldKind.TEXT:
        return FieldKind.TEXT_SEQUENCE
    if kind is FieldKind.DYNAMIC:
        return FieldKind.DYNAMIC
    return FieldKind.OTHER


def classify(tp: Any) -> FieldKind:
    """Map a resolved type hint to a FieldKind."""
    tp = _unwrap(tp)

    if tp is Any or isinstance(tp, (str, typing.ForwardRef)):
        return FieldKind.DYNAMIC

    origin = typing.get_origin(tp)

    if origin in _UNION_ORIGINS:
        members = [a for a in typing.get_args(tp) if a is not type(None)]
        kinds = {classify(a) for a in members}
        if len(kinds) == 1:
            return kinds.pop()
        return FieldKind.DYNAMIC

    if origin in _SEQUENCE_ORIGINS:
        args = [a for a in typing.get_args(tp) if a is not Ellipsis]
        if not args:
            return FieldKind.DYNAMIC
        kinds = {_element_kind(a) for a in args}
        if len(kinds) == 1:
            return kinds.pop()
        return FieldKind.DYNAMIC

    if not isinstance(tp, type):
        return FieldKind.OTHER
    if issubclass(tp, enum.Enum):
        return FieldKind.OTHER
    if issubclass(tp, str):
        return FieldKind.TEXT
    if dataclasses.is_dataclass(tp):
        return FieldKind.RECORD
    if tp in (list, tuple):
        return FieldKind.DYNAMIC
    return FieldKind.OTHER


def _resolve_hints(record_type: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(record_type, include_extras=True)
    except (NameError, TypeError) as e:
        logger.debug(
            "Type hints of %s not resolvable (%s); unresolved fields are inspected at runtime",
            record_type.__qualname__,
            e,
        )
        return {}


@lru_cache(maxsize=SHAPE_CACHE_SIZE)
def describe(
    record_type: type,
    tag_key: str = DEFAULT_TAG_KEY,
    separator: str = DEFAULT_SEPARATOR,
) -> RecordShape:
    """Build the field table of a dataclass type."""
    if not (isinstance(record_type, type) and dataclasses.is_dataclass(record_type)):
        raise TypeError(f"{record_type!r} is not a dataclass type")

    hints = _resolve_hints(record_type)
    specs: list[FieldSpec] = []

    for f in dataclasses.fields(record_type):
        kind = classify(hints.get(f.name, f.type))
        identifiers = parse_annotation(f.metadata.get(tag_key), separator)
        specs.append(FieldSpec(name=f.name, kind=kind, identifiers=identifiers))

    params = getattr(record_type, "__dataclass_params__", None)
    shape = RecordShape(
        record_type=record_type,
        fields=tuple(specs),
        frozen=bool(getattr(params, "frozen", False)),
    )
    logger.debug("Described %s: %s", shape.qualname, shape.to_dict()["fields"])
    return shape
