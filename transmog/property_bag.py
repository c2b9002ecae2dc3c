"""
Flat property bag exchanged with the record store.

A PropertyBag is the persisted form of one object: a mapping from full
dotted property path to a stored value (a scalar, or a list of scalars for
sequences). Alongside the values it records two pieces of per-property
metadata the record store needs:

- unindexed: properties stored without a secondary index
- type tags: the concrete container class a collection was saved from,
  so an abstractly declared attribute is rebuilt with the same class

Invariants:
    - Metadata never outlives its property (deleting a property drops it)
    - Assigning through the mapping interface marks a property indexed
    - Type tags are "module:QualName" strings

Example:
    >>> bag = PropertyBag()
    >>> bag.set_property("address.city", "Oslo", indexed=False)
    >>> bag["address.city"]
    'Oslo'
    >>> bag.is_unindexed("address.city")
    True
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, MutableMapping
from typing import Any, Optional


class PropertyBag(MutableMapping[str, Any]):
    """Mapping of property path to stored value, with indexing and type metadata."""

    def __init__(self, properties: Optional[Mapping[str, Any]] = None) -> None:
        self._values: dict[str, Any] = {}
        self._unindexed: set[str] = set()
        self._type_tags: dict[str, str] = {}
        if properties:
            self.update(properties)

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self.set_property(name, value)

    def __delitem__(self, name: str) -> None:
        del self._values[name]
        self._unindexed.discard(name)
        self._type_tags.pop(name, None)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"PropertyBag({self._values!r})"

    def set_property(self, name: str, value: Any, indexed: bool = True) -> None:
        """Store a value, replacing any previous value and metadata."""
        self._values[name] = value
        self._type_tags.pop(name, None)
        if indexed:
            self._unindexed.discard(name)
        else:
            self._unindexed.add(name)

    def set_unindexed_property(self, name: str, value: Any) -> None:
        self.set_property(name, value, indexed=False)

    def is_unindexed(self, name: str) -> bool:
        return name in self._unindexed

    def indexed_names(self) -> list[str]:
        """Names of properties the store should index."""
        return [name for name in self._values if name not in self._unindexed]

    def set_type_tag(self, name: str, tag: str) -> None:
        if name not in self._values:
            raise KeyError(name)
        self._type_tags[name] = tag

    def type_tag(self, name: str) -> Optional[str]:
        return self._type_tags.get(name)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result: dict[str, Any] = {"properties": dict(self._values)}
        if self._unindexed:
            result["unindexed"] = sorted(self._unindexed)
        if self._type_tags:
            result["type_tags"] = dict(self._type_tags)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PropertyBag:
        """Create from dictionary representation."""
        bag = cls()
        unindexed = set(data.get("unindexed", ()))
        for name, value in data.get("properties", {}).items():
            bag.set_property(name, value, indexed=name not in unindexed)
        for name, tag in data.get("type_tags", {}).items():
            bag.set_type_tag(name, tag)
        return bag
