"""
Attribute markers for mapped classes.

Markers are attached with ``typing.Annotated`` and read once, when a class
is registered:

    >>> @dataclass
    ... class Person:
    ...     id: Annotated[int | None, Id()] = None
    ...     name: str | None = None
    ...     bio: Annotated[str | None, Unindexed()] = None
    ...     address: Annotated[Address | None, Embedded()] = None
    ...     nickname: Annotated[str | None, OldName("nick")] = None

Invariants:
    - Markers are immutable and compare by value
    - An attribute may carry any combination of markers
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Id:
    """Identity attribute. Resolved by the record store, never mapped."""


@dataclass(frozen=True)
class Parent:
    """Parent-reference attribute. Resolved by the record store, never mapped."""


@dataclass(frozen=True)
class Ignore:
    """Transient attribute, neither loaded nor saved."""


@dataclass(frozen=True)
class Unindexed:
    """Store the property without a secondary index.

    On an embedded attribute, every leaf beneath it is unindexed too.
    """


@dataclass(frozen=True)
class Embedded:
    """Flatten the attribute's own attributes into the owner's paths."""


@dataclass(frozen=True)
class OldName:
    """Legacy property names that are still read on load.

    Attributes:
        names: Short names (relative to the owning object) to accept
    """

    names: tuple[str, ...]

    def __init__(self, *names: str) -> None:
        if not names:
            raise ValueError("OldName requires at least one name")
        for name in names:
            if not name or "." in name:
                raise ValueError(f"Invalid legacy name: {name!r}")
        object.__setattr__(self, "names", tuple(names))
