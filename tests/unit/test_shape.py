"""Tests for annotation parsing and per-type field tables."""

from __future__ import annotations

import gc
import weakref
from dataclasses import dataclass, field, make_dataclass
from enum import Enum
from typing import Any, List, NewType, Optional, Sequence, Tuple

import pytest

from conform.core.types import FieldKind
from conform.engine.shape import (
    SHAPE_CACHE_SIZE,
    classify,
    conform_field,
    describe,
    is_record,
    parse_annotation,
)

Nickname = NewType("Nickname", str)


class Color(str, Enum):
    RED = "red"


@dataclass
class Address:
    street: str = conform_field("trim,title", default="")


@dataclass
class Profile:
    name: str = conform_field("name", default="")
    nickname: Nickname = conform_field("lower", default=Nickname(""))
    bio: Optional[str] = None
    age: int = conform_field("trim", default=0)
    color: Color = Color.RED
    home: Optional[Address] = None
    addresses: List[Address] = field(default_factory=list)
    maybe_addresses: Sequence[Optional[Address]] = ()
    pair: Tuple[Address, ...] = ()
    tags: list[str] = conform_field("trim", default_factory=list)
    extra: Any = None
    form_only: str = field(default="", metadata={"form": "first_name"})


@dataclass(frozen=True)
class Frozen:
    value: str = conform_field("trim", default="")


@pytest.mark.unit
class TestParseAnnotation:
    def test_split_and_trim(self) -> None:
        assert parse_annotation(" trim , lower,,ucfirst ") == ("trim", "lower", "ucfirst")

    def test_order_preserved(self) -> None:
        assert parse_annotation("upper,trim,lower") == ("upper", "trim", "lower")

    def test_empty_and_none(self) -> None:
        assert parse_annotation("") == ()
        assert parse_annotation(" , ,") == ()
        assert parse_annotation(None) == ()

    def test_custom_separator(self) -> None:
        assert parse_annotation("trim|lower", separator="|") == ("trim", "lower")

    def test_sequence_accepted(self) -> None:
        assert parse_annotation(["trim", " lower ", ""]) == ("trim", "lower")


@pytest.mark.unit
class TestConformField:
    def test_keeps_other_metadata(self) -> None:
        f = conform_field("trim", default="", metadata={"form": "email"})
        assert f.metadata["conform"] == "trim"
        assert f.metadata["form"] == "email"

    def test_custom_tag_key(self) -> None:
        f = conform_field("trim", tag_key="clean", default="")
        assert f.metadata == {"clean": "trim"}


@pytest.mark.unit
class TestClassify:
    @pytest.mark.parametrize(
        ("hint", "kind"),
        [
            (str, FieldKind.TEXT),
            (Optional[str], FieldKind.TEXT),
            (Nickname, FieldKind.TEXT),
            (Address, FieldKind.RECORD),
            (Optional[Address], FieldKind.RECORD),
            (List[Address], FieldKind.RECORD_SEQUENCE),
            (list[Optional[Address]], FieldKind.RECORD_SEQUENCE),
            (Tuple[Address, ...], FieldKind.RECORD_SEQUENCE),
            (List[str], FieldKind.TEXT_SEQUENCE),
            (int, FieldKind.OTHER),
            (bool, FieldKind.OTHER),
            (Color, FieldKind.OTHER),
            (dict, FieldKind.OTHER),
            (Any, FieldKind.DYNAMIC),
            (list, FieldKind.DYNAMIC),
            (Optional[Any], FieldKind.DYNAMIC),
            ("Unresolved", FieldKind.DYNAMIC),
        ],
    )
    def test_classify(self, hint: Any, kind: FieldKind) -> None:
        assert classify(hint) is kind


@pytest.mark.unit
class TestDescribe:
    def test_field_table(self) -> None:
        shape = describe(Profile)
        by_name = {spec.name: spec for spec in shape.fields}

        assert by_name["name"].kind is FieldKind.TEXT
        assert by_name["name"].identifiers == ("name",)
        assert by_name["nickname"].kind is FieldKind.TEXT
        assert by_name["bio"].annotated is False
        assert by_name["age"].kind is FieldKind.OTHER
        assert by_name["age"].identifiers == ("trim",)
        assert by_name["home"].kind is FieldKind.RECORD
        assert by_name["addresses"].kind is FieldKind.RECORD_SEQUENCE
        assert by_name["maybe_addresses"].kind is FieldKind.RECORD_SEQUENCE
        assert by_name["pair"].kind is FieldKind.RECORD_SEQUENCE
        assert by_name["tags"].kind is FieldKind.TEXT_SEQUENCE
        assert by_name["extra"].kind is FieldKind.DYNAMIC
        assert by_name["form_only"].annotated is False

    def test_field_order_follows_declaration(self) -> None:
        names = [spec.name for spec in describe(Profile).fields]
        assert names[:3] == ["name", "nickname", "bio"]

    def test_described_once(self) -> None:
        assert describe(Address) is describe(Address)

    def test_evicted_types_can_be_collected(self) -> None:
        first = make_dataclass("Temp0", [("value", str)])
        describe(first)
        ref = weakref.ref(first)
        del first

        for i in range(1, SHAPE_CACHE_SIZE + 1):
            describe(make_dataclass(f"Temp{i}", [("value", str)]))
        gc.collect()

        assert ref() is None
        assert describe.cache_info().maxsize == SHAPE_CACHE_SIZE

    def test_other_tag_key(self) -> None:
        shape = describe(Profile, tag_key="form")
        assert shape.field("form_only").identifiers == ("first_name",)
        assert shape.field("name").identifiers == ()

    def test_frozen_flag(self) -> None:
        assert describe(Frozen).frozen is True
        assert describe(Address).frozen is False

    def test_rejects_non_dataclass(self) -> None:
        with pytest.raises(TypeError, match="not a dataclass"):
            describe(dict)

    def test_to_dict(self) -> None:
        data = describe(Address).to_dict()
        assert data["record_type"].endswith("Address")
        assert data["fields"] == [
            {"name": "street", "kind": "text", "identifiers": ["trim", "title"]}
        ]


@pytest.mark.unit
def test_is_record() -> None:
    assert is_record(Address())
    assert not is_record(Address)
    assert not is_record("text")
    assert not is_record({"street": "x"})
