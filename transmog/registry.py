"""
Class registry for transmog.

The registry owns one Transmog per registered class and the kind names used
inside typed references. Registering a class runs schema discovery
immediately, so every configuration error surfaces at registration time.

Invariants:
    - Registration is idempotent per class
    - A kind name maps to exactly one class
    - A failed registration leaves the registry unchanged
    - Registered mappings are never rebuilt or modified

Example:
    >>> from transmog import get_registry, PropertyBag
    >>>
    >>> registry = get_registry()
    >>> registry.register(Person)
    >>> bag = registry.save(person)
    >>> registry.load(bag, Person())
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from collections.abc import Iterator
from typing import Any, Mapping, Optional, TypeVar

from .config import TransmogSettings
from .errors import ConfigurationError, NotRegisteredError
from .impl.transmog import Transmog
from .keys import Key, RawKey
from .property_bag import PropertyBag

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Global registry
_global_registry: TransmogRegistry | None = None
_registry_lock = threading.Lock()


class TransmogRegistry:
    """Registry of mapped classes and their kind names.

    Example:
        >>> registry = TransmogRegistry()
        >>> registry.register(Car)
        >>> registry.register(Wheel, kind="CarWheel")
        >>> registry.to_raw_key(Key.create(Wheel, 3))
        RawKey(kind='CarWheel', id=3, parent=None)
    """

    def __init__(self, settings: Optional[TransmogSettings] = None) -> None:
        """Initialize empty registry.

        Args:
            settings: Engine settings (read from the environment if omitted)
        """
        self.settings = settings or TransmogSettings()
        self._transmogs: dict[type, Transmog[Any]] = {}
        self._classes_by_kind: dict[str, type] = {}
        self._kinds_by_class: dict[type, str] = {}
        self._lock = threading.Lock()

    def register(self, cls: type[T], kind: Optional[str] = None) -> Transmog[T]:
        """Register a class, discovering its property mapping.

        Args:
            cls: Class to register
            kind: Kind name used in keys (defaults to the class name)

        Returns:
            The class's Transmog

        Raises:
            ConfigurationError: If the class cannot be mapped, or the kind
                name is already taken by another class
        """
        with self._lock:
            existing = self._transmogs.get(cls)
            if existing is not None:
                if kind is not None and kind != self._kinds_by_class[cls]:
                    raise ConfigurationError(
                        f"'{cls.__qualname__}' already registered as kind "
                        f"'{self._kinds_by_class[cls]}'",
                        cls=cls,
                        code="DUPLICATE_KIND",
                    )
                return existing

            kind = kind or cls.__name__
            taken = self._classes_by_kind.get(kind)
            if taken is not None:
                raise ConfigurationError(
                    f"kind '{kind}' already registered for '{taken.__qualname__}'",
                    cls=cls,
                    code="DUPLICATE_KIND",
                )

            transmog = Transmog(self, cls)
            self._transmogs[cls] = transmog
            self._classes_by_kind[kind] = cls
            self._kinds_by_class[cls] = kind

        logger.info(
            "Registered %s as kind '%s' with %d properties",
            cls.__qualname__,
            kind,
            len(transmog.paths),
        )
        return transmog

    def is_registered(self, cls: type) -> bool:
        return cls in self._transmogs

    def get_transmog(self, cls: type[T]) -> Transmog[T]:
        """Get the Transmog of a registered class.

        Raises:
            NotRegisteredError: If cls was never registered
        """
        transmog = self._transmogs.get(cls)
        if transmog is None:
            raise NotRegisteredError(cls.__qualname__)
        return transmog

    def classes(self) -> Iterator[type]:
        """Iterate over registered classes."""
        yield from self._transmogs.keys()

    # Kinds and keys

    def kind_of(self, cls: type) -> str:
        kind = self._kinds_by_class.get(cls)
        if kind is None:
            raise NotRegisteredError(cls.__qualname__)
        return kind

    def class_for_kind(self, kind: str) -> type:
        cls = self._classes_by_kind.get(kind)
        if cls is None:
            raise NotRegisteredError(kind)
        return cls

    def to_raw_key(self, key: Key[Any]) -> RawKey:
        """Convert a typed key (and its parents) to a store-level key."""
        parent = self.to_raw_key(key.parent) if key.parent is not None else None
        return RawKey(kind=self.kind_of(key.target), id=key.id, parent=parent)

    def to_key(self, raw: RawKey) -> Key[Any]:
        """Convert a store-level key (and its parents) to a typed key."""
        parent = self.to_key(raw.parent) if raw.parent is not None else None
        return Key(target=self.class_for_kind(raw.kind), id=raw.id, parent=parent)

    # Marshaling shortcuts

    def load(self, bag: Mapping[str, Any], obj: T) -> T:
        """Load bag into obj using its class's mapping; returns obj."""
        self.get_transmog(type(obj)).load(bag, obj)
        return obj

    def save(self, obj: Any, bag: Optional[PropertyBag] = None) -> PropertyBag:
        """Save obj into bag (a new PropertyBag if omitted); returns the bag."""
        if bag is None:
            bag = PropertyBag()
        self.get_transmog(type(obj)).save(obj, bag)
        return bag

    # Description

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "kinds": {
                kind: self._transmogs[cls].to_dict()
                for kind, cls in sorted(self._classes_by_kind.items())
            }
        }

    def fingerprint(self) -> str:
        """SHA-256 over all registered mappings."""
        canonical = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        return f"sha256:{hashlib.sha256(canonical.encode('utf-8')).hexdigest()}"


def get_registry() -> TransmogRegistry:
    """Get the global registry."""
    global _global_registry
    with _registry_lock:
        if _global_registry is None:
            _global_registry = TransmogRegistry()
        return _global_registry


def register(cls: type[T], kind: Optional[str] = None) -> Transmog[T]:
    """Register a class in the global registry."""
    return get_registry().register(cls, kind=kind)


def reset_registry() -> None:
    """Reset the global registry (for testing only)."""
    global _global_registry
    with _registry_lock:
        _global_registry = None
