"""Core data types shared by the engine and the registry.

Rules:
- a RecordShape is built once per record type and never mutated afterwards
- identifiers are kept in annotation order; that order is the application order
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

TransformFunc = Callable[[str], str]


class FieldKind(str, Enum):
    """How the engine treats a declared field."""

    TEXT = "text"
    RECORD = "record"
    RECORD_SEQUENCE = "record_sequence"
    TEXT_SEQUENCE = "text_sequence"
    DYNAMIC = "dynamic"
    OTHER = "other"


@dataclass(frozen=True)
class FieldSpec:
    """One field of a record shape."""

    name: str
    kind: FieldKind
    identifiers: tuple[str, ...] = ()

    @property
    def annotated(self) -> bool:
        return bool(self.identifiers)

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "identifiers": list(self.identifiers),
        }


@dataclass(frozen=True)
class RecordShape:
    """Static field table of a record type."""

    record_type: type
    fields: tuple[FieldSpec, ...]
    frozen: bool = False

    @property
    def qualname(self) -> str:
        return f"{self.record_type.__module__}.{self.record_type.__qualname__}"

    def field(self, name: str) -> FieldSpec | None:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    def to_dict(self) -> dict[str, object]:
        return {
            "record_type": self.qualname,
            "frozen": self.frozen,
            "fields": [spec.to_dict() for spec in self.fields],
        }
