"""
transmog - object graph <-> flat property marshaling.

This package maps typed Python objects to the flat key/value property bags
a record store persists, and back:
- Attribute markers (Id, Parent, Embedded, Unindexed, OldName, Ignore)
- Registry that discovers each class's mapping once, at registration
- Transmog engine with load() and save()
- Typed references (Key, RawKey) and the PropertyBag boundary type

Example:
    >>> from dataclasses import dataclass, field
    >>> from typing import Annotated
    >>> from transmog import Embedded, Id, PropertyBag, get_registry
    >>>
    >>> @dataclass
    ... class Address:
    ...     city: str | None = None
    >>>
    >>> @dataclass
    ... class Person:
    ...     id: Annotated[int | None, Id()] = None
    ...     name: str | None = None
    ...     tags: list[str] = field(default_factory=list)
    ...     address: Annotated[Address | None, Embedded()] = None
    >>>
    >>> registry = get_registry()
    >>> registry.register(Person)
    >>> bag = registry.save(Person(name="Ada", address=Address(city="London")))
    >>> dict(bag)
    {'name': 'Ada', 'address.city': 'London'}

Invariants:
    - Paths are dot-joined attribute names from the root object
    - A tuple or collection is ONE property holding a list
    - None or empty tuples and collections are never stored

Version: 1.0.0
"""

__version__ = "1.0.0"

from .annotations import Embedded, Id, Ignore, OldName, Parent, Unindexed
from .config import TransmogSettings, setup_logging
from .errors import (
    AmbiguousPathError,
    ConfigurationError,
    ConversionError,
    MissingConstructorError,
    NotRegisteredError,
    TransmogError,
    UnsupportedShapeError,
)
from .impl.transmog import Transmog
from .keys import Key, RawKey
from .property_bag import PropertyBag
from .registry import (
    TransmogRegistry,
    get_registry,
    register,
    reset_registry,
)

__all__ = [
    # Version
    "__version__",
    # Markers
    "Id",
    "Parent",
    "Embedded",
    "Unindexed",
    "OldName",
    "Ignore",
    # Engine
    "Transmog",
    "PropertyBag",
    "Key",
    "RawKey",
    # Registry
    "TransmogRegistry",
    "get_registry",
    "register",
    "reset_registry",
    # Configuration
    "TransmogSettings",
    "setup_logging",
    # Errors
    "TransmogError",
    "ConfigurationError",
    "AmbiguousPathError",
    "MissingConstructorError",
    "UnsupportedShapeError",
    "ConversionError",
    "NotRegisteredError",
]
