"""
Marshaling engine for one mapped class.

A Transmog introspects a class once and keeps the resulting path -> loader
mapping for its lifetime. load() copies a property bag into an object;
save() copies an object into a property bag. Neither touches the object's
Id or Parent attributes; those are resolved by the record store.

Invariants:
    - The mapping is built once and never modified afterwards
    - load() ignores stored properties with no matching path
    - save() is driven by the mapping, never by what the object holds,
      and never writes legacy (OldName) paths
    - load() and save() only touch the object and bag passed to them

How to change safely:
    - New loader variants must keep the null/empty rules in loaders.py
    - Anything that changes paths changes stored data; check fingerprint
"""

from __future__ import annotations

import collections.abc
import hashlib
import json
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Generic, Mapping, TypeVar

from ..property_bag import PropertyBag
from .loaders import Loader
from .visitor import Visitor

if TYPE_CHECKING:
    from ..registry import TransmogRegistry

T = TypeVar("T")


class Transmog(Generic[T]):
    """Loads property bags into objects of one class and saves them back.

    Example:
        >>> transmog = Transmog(registry, Person)
        >>> bag = PropertyBag()
        >>> transmog.save(person, bag)
        >>> fresh = Person()
        >>> transmog.load(bag, fresh)
    """

    def __init__(self, registry: TransmogRegistry, cls: type[T]) -> None:
        """Discover the mapping for cls.

        Raises:
            ConfigurationError: If cls cannot be mapped
        """
        self.cls = cls
        loaders: dict[str, Loader] = {}
        Visitor(registry, loaders, cls).visit_class(cls)
        self._loaders: Mapping[str, Loader] = MappingProxyType(loaders)
        self._savers: tuple[Loader, ...] = tuple(
            loader for path, loader in loaders.items() if path == loader.path
        )

    @property
    def loaders(self) -> Mapping[str, Loader]:
        """Read-only mapping of every accepted path (including aliases) to its loader."""
        return self._loaders

    @property
    def paths(self) -> list[str]:
        """Primary property paths, in discovery order."""
        return [loader.path for loader in self._savers]

    @property
    def aliases(self) -> dict[str, str]:
        """Legacy path -> primary path."""
        return {
            path: loader.path for path, loader in self._loaders.items() if path != loader.path
        }

    def load(self, bag: Mapping[str, Any], obj: T) -> None:
        """Load stored properties into obj.

        Args:
            bag: Stored properties (PropertyBag or any mapping)
            obj: Target object, already carrying its Id/Parent values

        Raises:
            ConversionError: If a stored value does not fit its attribute
        """
        tags = bag if isinstance(bag, PropertyBag) else None
        for name, value in bag.items():
            loader = self._loaders.get(name)
            if loader is None:
                continue
            loader.load(obj, value, tags.type_tag(name) if tags is not None else None)

    def save(self, obj: T, bag: collections.abc.MutableMapping) -> None:
        """Save obj's mapped attributes into bag.

        Null or empty tuples and collections produce no property, so bag
        should start empty rather than hold a previous save.

        Raises:
            ConversionError: If an attribute value cannot be stored
        """
        for loader in self._savers:
            loader.save(obj, bag)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "class": f"{self.cls.__module__}:{self.cls.__qualname__}",
            "properties": [loader.to_dict() for loader in self._savers],
            "aliases": dict(sorted(self.aliases.items())),
        }

    @property
    def fingerprint(self) -> str:
        """SHA-256 over the canonical mapping description."""
        canonical = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        return f"sha256:{hashlib.sha256(canonical.encode('utf-8')).hexdigest()}"

    def __repr__(self) -> str:
        return f"Transmog({self.cls.__qualname__}, {len(self._savers)} properties)"
