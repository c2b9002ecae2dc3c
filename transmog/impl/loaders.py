"""
Loaders move one leaf attribute between an object and a property bag.

A loader is bound, at registration, to the navigator of its nesting level,
the attribute it owns, its primary property path and the conversion for
its declared (element) type. Three variants exist:

- BasicLoader: scalar attributes, including typed references
- ArrayLoader: fixed-size sequences, declared as ``tuple[X, ...]``
- CollectionLoader: dynamic sequences and sets (list, set, deque, ...)

Invariants:
    - Scalars always produce a property on save, even when None
    - Tuples and collections that are None or empty produce no property
    - Loading never touches an attribute whose stored value is absent,
      None, or an empty sequence
    - A sequence maps to ONE property holding a list of values
"""

from __future__ import annotations

import collections.abc
import inspect
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from ..conversion import Conversion, conversion_for
from ..property_bag import PropertyBag
from ..typeutils import (
    default_collection_type,
    element_type,
    is_abstract_collection,
    resolve_type_tag,
    runtime_class,
    split_annotation,
    type_tag,
)
from .navigators import Navigator

if TYPE_CHECKING:
    from ..registry import TransmogRegistry


class Loader(ABC):
    """Loads and saves one leaf attribute.

    Attributes:
        navigator: Resolves the object owning the attribute
        attribute: Attribute name on the owning object
        path: Primary (non-legacy) property path
        declared: Declared type, Optional and Annotated stripped
        indexed: Whether the property is indexed by the store
    """

    kind = "basic"

    def __init__(
        self,
        registry: TransmogRegistry,
        navigator: Navigator,
        attribute: str,
        path: str,
        declared: Any,
        indexed: bool = True,
    ) -> None:
        self.registry = registry
        self.navigator = navigator
        self.attribute = attribute
        self.path = path
        self.declared = declared
        self.indexed = indexed
        self.conversion: Conversion = conversion_for(
            self.value_type(), registry, strict=registry.settings.strict_conversion
        )

    def value_type(self) -> Any:
        """Type each stored value converts to."""
        return self.declared

    @abstractmethod
    def load(self, root: Any, value: Any, type_tag: Optional[str] = None) -> None:
        """Assign a stored value to the attribute reachable from root."""

    @abstractmethod
    def save(self, root: Any, bag: collections.abc.MutableMapping) -> None:
        """Write the attribute's property into bag, or nothing."""

    def current(self, root: Any) -> Any:
        """Attribute value, or None if an enclosing embedded object is absent."""
        owner = self.navigator.peek(root)
        if owner is None:
            return None
        return getattr(owner, self.attribute, None)

    def assign(self, root: Any, value: Any) -> None:
        setattr(self.navigator.navigate(root), self.attribute, value)

    def emit(self, bag: collections.abc.MutableMapping, value: Any) -> None:
        if isinstance(bag, PropertyBag):
            bag.set_property(self.path, value, indexed=self.indexed)
        else:
            bag[self.path] = value

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result: dict[str, Any] = {
            "kind": self.kind,
            "path": self.path,
            "attribute": self.attribute,
            "owner": self.navigator.prefix,
            "type": self.describe_type(),
        }
        if not self.indexed:
            result["unindexed"] = True
        return result

    def describe_type(self) -> str:
        return repr(self.declared)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path!r})"


class BasicLoader(Loader):
    """Scalar attribute stored as a single value."""

    def load(self, root: Any, value: Any, type_tag: Optional[str] = None) -> None:
        self.assign(root, self.conversion.from_store(value, self.path))

    def save(self, root: Any, bag: collections.abc.MutableMapping) -> None:
        owner = self.navigator.peek(root)
        if owner is None:
            # enclosing embedded object is absent; storing None here would
            # recreate it on the next load
            return
        value = getattr(owner, self.attribute, None)
        self.emit(bag, self.conversion.to_store(value, self.path))

    def describe_type(self) -> str:
        return self.conversion.describe()


class _SequenceLoader(Loader):
    """Shared element handling for tuples and collections."""

    def value_type(self) -> Any:
        return split_annotation(element_type(self.declared))[0]

    def stored_elements(self, value: Any) -> list[Any]:
        """Stored value as a list; a lone scalar counts as one element."""
        if value is None:
            return []
        if isinstance(value, collections.abc.Collection) and not isinstance(
            value, (str, bytes, bytearray, collections.abc.Mapping)
        ):
            return list(value)
        return [value]

    def convert_elements(self, stored: list[Any]) -> list[Any]:
        return [self.conversion.from_store(item, self.path) for item in stored]

    def store_elements(self, value: Any) -> list[Any]:
        return [self.conversion.to_store(item, self.path) for item in value]

    def save(self, root: Any, bag: collections.abc.MutableMapping) -> None:
        value = self.current(root)
        if value is None or len(value) == 0:
            return
        self.emit(bag, self.store_elements(value))
        self.after_emit(bag, value)

    def after_emit(self, bag: collections.abc.MutableMapping, value: Any) -> None:
        pass

    def describe_type(self) -> str:
        return f"{self.kind}[{self.conversion.describe()}]"


class ArrayLoader(_SequenceLoader):
    """Fixed-size sequence declared as ``tuple[X, ...]``."""

    kind = "array"

    def load(self, root: Any, value: Any, type_tag: Optional[str] = None) -> None:
        stored = self.stored_elements(value)
        if not stored:
            return
        self.assign(root, tuple(self.convert_elements(stored)))


class CollectionLoader(_SequenceLoader):
    """Dynamic sequence or set.

    The class rebuilt on load is the declared class when it is concrete.
    For abstract declarations (Sequence, MutableSet, ...) it is the class
    named by the property's type tag, falling back to list or set.
    """

    kind = "collection"

    def __init__(
        self,
        registry: TransmogRegistry,
        navigator: Navigator,
        attribute: str,
        path: str,
        declared: Any,
        indexed: bool = True,
    ) -> None:
        super().__init__(registry, navigator, attribute, path, declared, indexed)
        self.container = runtime_class(declared)
        self.abstract = is_abstract_collection(self.container)

    def target_type(self, tag: Optional[str]) -> type:
        if not self.abstract:
            return self.container
        if tag:
            resolved = resolve_type_tag(tag)
            if (
                resolved is not None
                and issubclass(resolved, self.container)
                and not inspect.isabstract(resolved)
            ):
                return resolved
        return default_collection_type(self.container)

    def load(self, root: Any, value: Any, type_tag: Optional[str] = None) -> None:
        stored = self.stored_elements(value)
        if not stored:
            return
        elements = self.convert_elements(stored)
        target = self.target_type(type_tag)

        owner = self.navigator.navigate(root)
        existing = getattr(owner, self.attribute, None)
        if existing is not None and type(existing) is target and _fill(existing, elements):
            return
        setattr(owner, self.attribute, _build(target, elements))

    def after_emit(self, bag: collections.abc.MutableMapping, value: Any) -> None:
        if isinstance(bag, PropertyBag) and self.registry.settings.record_container_types:
            bag.set_type_tag(self.path, type_tag(type(value)))

    def describe_type(self) -> str:
        return f"{self.container.__qualname__}[{self.conversion.describe()}]"


def _fill(container: Any, elements: list[Any]) -> bool:
    """Replace the contents of a mutable container in place."""
    if isinstance(container, collections.abc.MutableSet):
        container.clear()
        for item in elements:
            container.add(item)
        return True
    if isinstance(container, collections.abc.MutableSequence):
        container.clear()
        container.extend(elements)
        return True
    return False


def _build(target: type, elements: list[Any]) -> Any:
    if issubclass(target, (collections.abc.MutableSet, collections.abc.MutableSequence)):
        container = target()
        _fill(container, elements)
        return container
    return target(elements)
