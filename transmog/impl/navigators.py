"""
Navigators locate the object that owns a leaf attribute.

Each nesting level of a mapped class gets one navigator. The root level
owns its leaves directly; an embedded level is reached through an attribute
of the level above it. Navigators hold no object references: they are
re-evaluated against the root object on every call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional


class Navigator(ABC):
    """Resolves the owner of a leaf attribute, starting from the root object."""

    @abstractmethod
    def navigate(self, root: Any) -> Any:
        """Owner object for this level, creating missing embedded objects."""

    @abstractmethod
    def peek(self, root: Any) -> Optional[Any]:
        """Owner object for this level, or None if any level is absent."""

    @property
    @abstractmethod
    def prefix(self) -> str:
        """Dotted path of this level ("" at the root)."""


@dataclass(frozen=True)
class RootNavigator(Navigator):
    def navigate(self, root: Any) -> Any:
        return root

    def peek(self, root: Any) -> Optional[Any]:
        return root

    @property
    def prefix(self) -> str:
        return ""


@dataclass(frozen=True)
class EmbeddedClassNavigator(Navigator):
    """Level reached through a single embedded object.

    Attributes:
        parent: Navigator of the enclosing level
        attribute: Attribute of the enclosing object holding the embedded one
        embedded_type: Class instantiated when the attribute is unset
    """

    parent: Navigator
    attribute: str
    embedded_type: type

    def navigate(self, root: Any) -> Any:
        owner = self.parent.navigate(root)
        embedded = getattr(owner, self.attribute, None)
        if embedded is None:
            embedded = self.embedded_type()
            setattr(owner, self.attribute, embedded)
        return embedded

    def peek(self, root: Any) -> Optional[Any]:
        owner = self.parent.peek(root)
        if owner is None:
            return None
        return getattr(owner, self.attribute, None)

    @property
    def prefix(self) -> str:
        if self.parent.prefix:
            return f"{self.parent.prefix}.{self.attribute}"
        return self.attribute
