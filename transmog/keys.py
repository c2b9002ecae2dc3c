"""
Typed references between entities.

Two representations exist for a reference to another entity:
- RawKey: the store-level identifier (kind name, id, optional parent)
- Key[T]: the typed reference used on mapped classes, bound to the class

Conversion between them needs the kind names known to a registry, see
TransmogRegistry.to_raw_key() and TransmogRegistry.to_key().

Invariants:
    - Keys are immutable and hashable
    - A key's id is a positive int or a non-empty string
    - Parent chains are finite and acyclic (built bottom-up)

Example:
    >>> key = Key.create(Car, 7)
    >>> child = Key.create(Wheel, "front-left", parent=key)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

T = TypeVar("T")

KeyId = Union[int, str]


def _check_id(value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"Key id must be int or str, got {type(value).__name__}")
    if isinstance(value, int) and value <= 0:
        raise ValueError(f"Key id must be positive, got {value}")
    if isinstance(value, str) and not value:
        raise ValueError("Key id cannot be empty")


@dataclass(frozen=True)
class RawKey:
    """Store-level entity identifier.

    Attributes:
        kind: Registered kind name of the entity
        id: Numeric id or string name
        parent: Key of the parent entity, if any
    """

    kind: str
    id: KeyId
    parent: Optional[RawKey] = None

    def __post_init__(self) -> None:
        if not self.kind:
            raise ValueError("Key kind cannot be empty")
        _check_id(self.id)

    def path(self) -> tuple[tuple[str, KeyId], ...]:
        """(kind, id) pairs from the root ancestor down to this key."""
        pairs: list[tuple[str, KeyId]] = []
        key: Optional[RawKey] = self
        while key is not None:
            pairs.append((key.kind, key.id))
            key = key.parent
        return tuple(reversed(pairs))

    def __str__(self) -> str:
        return "/".join(f"{kind}({id!r})" for kind, id in self.path())


@dataclass(frozen=True)
class Key(Generic[T]):
    """Typed reference to an entity of class T.

    Attributes:
        target: Entity class the key points to
        id: Numeric id or string name
        parent: Typed key of the parent entity, if any
    """

    target: type
    id: KeyId
    parent: Optional[Key[Any]] = None

    def __post_init__(self) -> None:
        if not isinstance(self.target, type):
            raise ValueError(f"Key target must be a type, got {self.target!r}")
        _check_id(self.id)

    @classmethod
    def create(cls, target: type, id: KeyId, parent: Optional[Key[Any]] = None) -> Key[Any]:
        """Convenience constructor mirroring the store's key factory."""
        return cls(target=target, id=id, parent=parent)

    def __repr__(self) -> str:
        if self.parent is None:
            return f"Key({self.target.__name__}, {self.id!r})"
        return f"Key({self.parent!r}, {self.target.__name__}, {self.id!r})"
