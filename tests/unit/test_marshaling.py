"""
Unit tests for Transmog load and save.

Tests cover:
- Scalar conversion, including enums, datetimes and typed keys
- Null handling for scalars and tuples
- Unknown and legacy properties on load
- Embedded objects: lazy creation, partial loads, absent objects on save
- Unindexed flags in the produced bag
- Conversion errors and strict mode
- Optional element types and set-valued stored properties
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Annotated, ClassVar, Optional

import pytest

from transmog import (
    ConversionError,
    Embedded,
    Id,
    Key,
    OldName,
    Parent,
    PropertyBag,
    RawKey,
    TransmogRegistry,
    TransmogSettings,
    Unindexed,
)


class Color(enum.Enum):
    RED = "r"
    GREEN = "g"


@dataclass
class Owner:
    id: Annotated[Optional[int], Id()] = None
    name: Optional[str] = None


@dataclass
class Everything:
    id: Annotated[Optional[int], Id()] = None
    parent: Annotated[Optional[Key[Owner]], Parent()] = None

    count: Optional[int] = None
    ratio: float = 0.0
    flag: bool = False
    label: Annotated[Optional[str], OldName("title")] = None
    color: Optional[Color] = None
    when: Optional[datetime] = None
    owner: Optional[Key[Owner]] = None
    notes: Annotated[Optional[str], Unindexed()] = None
    scores: Optional[tuple[int, ...]] = None
    colors: tuple[Color, ...] = ()


class Counted:
    created: ClassVar[int] = 0

    first: Optional[str]
    second: Optional[str]
    third: int

    def __init__(self):
        Counted.created += 1
        self.first = None
        self.second = "default"
        self.third = 3


@dataclass
class Holder:
    title: Optional[str] = None
    counted: Annotated[Optional[Counted], Embedded()] = None


@dataclass
class Inner:
    value: Optional[int] = None
    tags: list[str] = field(default_factory=list)


@dataclass
class Middle:
    inner: Annotated[Optional[Inner], Embedded()] = None
    note: Annotated[Optional[str], Unindexed()] = None


@dataclass
class Outer:
    name: Optional[str] = None
    middle: Annotated[Optional[Middle], Embedded(), Unindexed()] = None


@dataclass
class Refs:
    owners: list[Optional[Key[Owner]]] = field(default_factory=list)
    colors: tuple[Optional[Color], ...] = ()
    raw: set = field(default_factory=set)
    numbers: Optional[list[int]] = None


@pytest.fixture
def registry():
    """Registry with the marshaling entities registered."""
    registry = TransmogRegistry(TransmogSettings())
    for cls in (Owner, Everything, Holder, Outer, Refs):
        registry.register(cls)
    return registry


class TestScalars:
    """Tests for scalar attributes."""

    def test_round_trip(self, registry):
        """Every scalar kind survives save and load."""
        when = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
        obj = Everything(
            count=5,
            ratio=0.5,
            flag=True,
            label="hello",
            color=Color.GREEN,
            when=when,
            owner=Key.create(Owner, "ada"),
            notes="long text",
        )

        fetched = registry.load(registry.save(obj), Everything())

        assert fetched.count == 5
        assert fetched.ratio == 0.5
        assert fetched.flag is True
        assert fetched.label == "hello"
        assert fetched.color is Color.GREEN
        assert fetched.when == when
        assert fetched.owner == Key.create(Owner, "ada")
        assert fetched.notes == "long text"

    def test_null_scalars_are_stored(self, registry):
        """Scalars are stored even when None."""
        bag = registry.save(Everything())
        assert "count" in bag
        assert bag["count"] is None
        assert bag["owner"] is None

    def test_id_and_parent_not_stored(self, registry):
        """Id and Parent attributes never reach the bag."""
        bag = registry.save(Everything(id=7, parent=Key.create(Owner, 1)))
        assert "id" not in bag
        assert "parent" not in bag

    def test_id_and_parent_not_loaded(self, registry):
        """Properties named like Id/Parent attributes are ignored."""
        target = Everything(id=7)
        registry.load({"id": 99, "parent": "x"}, target)
        assert target.id == 7
        assert target.parent is None

    def test_enum_stored_by_name(self, registry):
        """Enums are stored by member name."""
        bag = registry.save(Everything(color=Color.RED))
        assert bag["color"] == "RED"

    def test_key_stored_raw(self, registry):
        """Typed keys are stored as RawKeys with kind names."""
        bag = registry.save(Everything(owner=Key.create(Owner, 3)))
        assert bag["owner"] == RawKey(kind="Owner", id=3)

    def test_lax_coercion(self, registry):
        """Without strict mode, compatible values are coerced."""
        target = registry.load({"count": "12", "ratio": 2}, Everything())
        assert target.count == 12
        assert target.ratio == 2.0

    def test_strict_conversion(self):
        """Strict mode rejects values that need coercion."""
        registry = TransmogRegistry(TransmogSettings(strict_conversion=True))
        registry.register(Owner)
        registry.register(Everything)

        with pytest.raises(ConversionError):
            registry.load({"count": "12"}, Everything())

    def test_conversion_error_names_path(self, registry):
        """Conversion failures report the property path."""
        with pytest.raises(ConversionError) as exc_info:
            registry.load({"count": "not a number"}, Everything())
        assert exc_info.value.path == "count"
        assert exc_info.value.code == "CONVERSION_ERROR"
        assert "count" in str(exc_info.value)

    def test_unknown_enum_member(self, registry):
        """Stored names that are not members fail to convert."""
        with pytest.raises(ConversionError, match="not a member"):
            registry.load({"color": "BLUE"}, Everything())

    def test_key_of_unregistered_kind(self, registry):
        """A stored key whose kind is unknown fails to convert."""
        with pytest.raises(ConversionError, match="No class registered"):
            registry.load({"owner": RawKey(kind="Ghost", id=1)}, Everything())

    def test_key_of_wrong_kind(self, registry):
        """A stored key of another registered kind cannot be assigned."""
        with pytest.raises(ConversionError, match="cannot be assigned"):
            registry.load({"owner": RawKey(kind="Holder", id=1)}, Everything())

    def test_saving_non_key_fails(self, registry):
        """A non-key value in a key attribute cannot be stored."""
        with pytest.raises(ConversionError, match="expected a key"):
            registry.save(Everything(owner="Owner:3"))


class TestTuples:
    """Tests for fixed-size sequence attributes."""

    def test_round_trip_keeps_order(self, registry):
        """Tuples come back as tuples, in order."""
        obj = Everything(scores=(3, 1, 2), colors=(Color.GREEN, Color.RED))

        bag = registry.save(obj)
        assert bag["scores"] == [3, 1, 2]
        assert bag["colors"] == ["GREEN", "RED"]

        fetched = registry.load(bag, Everything())
        assert fetched.scores == (3, 1, 2)
        assert fetched.colors == (Color.GREEN, Color.RED)

    def test_null_and_empty_not_stored(self, registry):
        """None and empty tuples produce no property."""
        bag = registry.save(Everything(scores=None, colors=()))
        assert "scores" not in bag
        assert "colors" not in bag

    def test_null_element_preserved(self, registry):
        """None elements keep their position."""
        fetched = registry.load(registry.save(Everything(scores=(1, None, 3))), Everything())
        assert fetched.scores == (1, None, 3)

    def test_single_stored_value(self, registry):
        """A lone stored scalar loads as a one-element tuple."""
        fetched = registry.load({"scores": 4}, Everything())
        assert fetched.scores == (4,)

    def test_element_conversion_error(self, registry):
        """Each element is converted with scalar rules."""
        with pytest.raises(ConversionError):
            registry.load({"scores": [1, "x"]}, Everything())


class TestLoadProperties:
    """Tests for how stored properties are matched."""

    def test_unknown_properties_ignored(self, registry):
        """Properties with no matching attribute are skipped."""
        target = registry.load({"removed_field": 1, "count": 2}, Everything())
        assert target.count == 2
        assert not hasattr(target, "removed_field")

    def test_legacy_name_loaded(self, registry):
        """A property stored under an OldName loads into the attribute."""
        target = registry.load({"title": "old"}, Everything())
        assert target.label == "old"

    def test_legacy_name_not_saved(self, registry):
        """Saving only writes the current name."""
        bag = registry.save(Everything(label="new"))
        assert bag["label"] == "new"
        assert "title" not in bag

    def test_plain_dict_bag(self, registry):
        """save() accepts any mutable mapping."""
        bag = {}
        registry.get_transmog(Everything).save(Everything(count=1, scores=(1,)), bag)
        assert bag["count"] == 1
        assert bag["scores"] == [1]


class TestEmbedded:
    """Tests for embedded objects."""

    def test_partial_embedded_created_once(self, registry):
        """Matching some embedded paths creates the object exactly once."""
        Counted.created = 0
        target = Holder()

        registry.load({"counted.first": "a", "counted.third": 9}, target)

        assert Counted.created == 1
        assert target.counted.first == "a"
        assert target.counted.second == "default"
        assert target.counted.third == 9

    def test_absent_properties_create_nothing(self, registry):
        """No matching embedded path means no embedded object."""
        Counted.created = 0
        target = registry.load({"title": "x", "unrelated.first": "a"}, Holder())

        assert Counted.created == 0
        assert target.counted is None

    def test_existing_embedded_reused(self, registry):
        """An embedded object already present is filled, not replaced."""
        counted = Counted()
        target = Holder(counted=counted)

        registry.load({"counted.first": "a"}, target)

        assert target.counted is counted
        assert counted.first == "a"

    def test_nested_round_trip(self, registry):
        """Two levels of embedding flatten and rebuild."""
        obj = Outer(name="o", middle=Middle(inner=Inner(value=4, tags=["a", "b"]), note="n"))

        bag = registry.save(obj)
        assert dict(bag) == {
            "name": "o",
            "middle.inner.value": 4,
            "middle.inner.tags": ["a", "b"],
            "middle.note": "n",
        }

        fetched = registry.load(bag, Outer())
        assert fetched == obj

    def test_absent_embedded_not_stored(self, registry):
        """Leaves under a missing embedded object produce no properties."""
        bag = registry.save(Outer(name="o"))
        assert dict(bag) == {"name": "o"}

        fetched = registry.load(bag, Outer())
        assert fetched.middle is None

    def test_empty_collection_inside_embedded(self, registry):
        """Scalar None is stored, empty list is not, inside embedded objects."""
        bag = registry.save(Outer(middle=Middle(inner=Inner())))
        assert "middle.inner.value" in bag
        assert bag["middle.inner.value"] is None
        assert "middle.inner.tags" not in bag

    def test_unindexed_flags_in_bag(self, registry):
        """Unindexed leaves are stored unindexed."""
        bag = registry.save(Outer(name="o", middle=Middle(inner=Inner(value=1), note="n")))
        assert not bag.is_unindexed("name")
        assert bag.is_unindexed("middle.inner.value")
        assert bag.is_unindexed("middle.note")
        assert bag.indexed_names() == ["name"]

    def test_unindexed_scalar_flag(self, registry):
        """A marked scalar at the root is stored unindexed."""
        bag = registry.save(Everything(notes="x"))
        assert bag.is_unindexed("notes")
        assert not bag.is_unindexed("count")


class TestRoundTrip:
    """Save then load into a fresh instance."""

    def test_fresh_instance_defaults_kept(self, registry):
        """Null and empty aggregates leave the fresh instance's defaults."""
        source = Everything(count=1, scores=None, colors=())
        fresh = Everything(colors=(Color.RED,))

        registry.load(registry.save(source), fresh)

        assert fresh.count == 1
        assert fresh.scores is None
        assert fresh.colors == (Color.RED,)

    def test_bag_survives_dict_round_trip(self, registry):
        """A bag rebuilt from its dict form loads the same object."""
        obj = Outer(name="o", middle=Middle(inner=Inner(value=2, tags=["t"])))
        bag = PropertyBag.from_dict(registry.save(obj).to_dict())

        assert registry.load(bag, Outer()) == obj


class TestOptionalElements:
    """Element types wrapped in Optional convert like plain scalars."""

    def test_optional_key_elements_stored_raw(self, registry):
        """Typed keys inside a list of Optional keys are stored as RawKeys."""
        bag = registry.save(Refs(owners=[Key.create(Owner, 7), None]))
        assert bag["owners"] == [RawKey(kind="Owner", id=7), None]

    def test_optional_key_elements_loaded(self, registry):
        """Stored RawKeys load back as typed keys, None kept in place."""
        target = registry.load({"owners": [RawKey("Owner", 7), None]}, Refs())
        assert target.owners == [Key.create(Owner, 7), None]

    def test_optional_enum_elements(self, registry):
        """Enum members inside a tuple of Optional enums are stored by name."""
        bag = registry.save(Refs(colors=(Color.RED, None)))
        assert bag["colors"] == ["RED", None]

        fetched = registry.load(bag, Refs())
        assert fetched.colors == (Color.RED, None)


class TestStoredShapes:
    """Stored sequence values that are not lists."""

    def test_set_valued_property(self, registry):
        """A stored set loads as the collection's elements."""
        target = registry.load({"raw": {"foo", "bar"}}, Refs())
        assert target.raw == {"foo", "bar"}

    def test_frozenset_of_typed_elements(self, registry):
        """Elements of a stored frozenset are converted one by one."""
        target = registry.load({"numbers": frozenset({"1", "2"})}, Refs())
        assert sorted(target.numbers) == [1, 2]

    def test_stored_string_is_one_element(self, registry):
        """A stored string is a single element, not a sequence of characters."""
        target = registry.load({"raw": "foo"}, Refs())
        assert target.raw == {"foo"}
