"""
One-time discovery of how a class maps to flat property paths.

The visitor walks a class's annotated attributes (base classes first) and,
for each persistable one, either registers a leaf loader under its full
dotted path or recurses into an embedded class with an extended prefix.

Tuples and collections of plain values are leaves. A single embedded object
fans the path namespace out one more level; tuples and collections of
embedded objects are rejected.

An attribute is persistable unless it is a ClassVar or dataclass InitVar,
carries an Id, Parent or Ignore marker, or has a name starting with "_".
Private attributes are treated as object state, not stored data.

Invariants:
    - Every path maps to exactly one loader; collisions raise immediately
    - Legacy names map to the same loader object as the primary path
    - Unindexed propagates down through embedded objects, never back up
    - Id and Parent attributes are never mapped
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..annotations import Embedded, Id, Ignore, OldName, Parent, Unindexed
from ..errors import AmbiguousPathError, ConfigurationError, UnsupportedShapeError
from ..typeutils import (
    attribute_hints,
    check_for_no_arg_constructor,
    element_type,
    is_array,
    is_classvar,
    is_collection,
    is_initvar,
    runtime_class,
    split_annotation,
)
from .loaders import ArrayLoader, BasicLoader, CollectionLoader, Loader
from .navigators import EmbeddedClassNavigator, Navigator, RootNavigator

if TYPE_CHECKING:
    from ..registry import TransmogRegistry

logger = logging.getLogger(__name__)

_SKIP_MARKERS = (Id, Parent, Ignore)


class Visitor:
    """Visits one nesting level of a mapped class and builds its loaders.

    Args:
        registry: Registry used by loaders to convert typed references
        loaders: Shared path -> loader mapping being filled in
        root_cls: Class being registered (for error messages)
        navigator: Navigator of this level (root level if omitted)
        force_unindexed: Whether an enclosing embedded object was unindexed
        embedding: Classes embedded above this level, to detect cycles
    """

    def __init__(
        self,
        registry: TransmogRegistry,
        loaders: dict[str, Loader],
        root_cls: type,
        navigator: Navigator | None = None,
        force_unindexed: bool = False,
        embedding: tuple[type, ...] = (),
    ) -> None:
        self.registry = registry
        self.loaders = loaders
        self.root_cls = root_cls
        self.navigator = navigator or RootNavigator()
        self.force_unindexed = force_unindexed
        self.embedding = embedding

    def visit_class(self, cls: type) -> None:
        # get_type_hints() walks the MRO base-first, so inherited attributes
        # are registered before the ones the class declares itself
        for name, hint in attribute_hints(cls).items():
            self.visit_attribute(cls, name, hint)

    def visit_attribute(self, cls: type, name: str, hint: Any) -> None:
        declared, markers = split_annotation(hint)
        if (
            name.startswith("_")
            or is_classvar(declared)
            or is_initvar(declared)
            or any(isinstance(m, _SKIP_MARKERS) for m in markers)
        ):
            return

        unindexed = self.force_unindexed or any(isinstance(m, Unindexed) for m in markers)
        legacy = [n for m in markers if isinstance(m, OldName) for n in m.names]

        if any(isinstance(m, Embedded) for m in markers):
            if legacy:
                raise ConfigurationError(
                    f"OldName is only supported on leaf attributes, not embedded "
                    f"'{cls.__qualname__}.{name}'",
                    cls=self.root_cls,
                )
            self.visit_embedded(cls, name, declared, unindexed)
            return

        if is_array(declared):
            loader_cls: type[Loader] = ArrayLoader
        elif is_collection(declared):
            loader_cls = CollectionLoader
        else:
            loader_cls = BasicLoader

        path = self.full_path(name)
        loader = loader_cls(
            self.registry,
            self.navigator,
            name,
            path,
            declared,
            indexed=not unindexed,
        )
        self.add_loader(path, loader)
        for old_name in legacy:
            logger.debug("Aliasing %s to %s", self.full_path(old_name), path)
            self.add_loader(self.full_path(old_name), loader)

    def visit_embedded(self, cls: type, name: str, declared: Any, unindexed: bool) -> None:
        path = self.full_path(name)
        if is_array(declared) or is_collection(declared):
            check_for_no_arg_constructor(element_type(declared), path)
            raise UnsupportedShapeError(cls, name, declared)

        target = runtime_class(declared)
        if target is None:
            raise ConfigurationError(
                f"Embedded attribute '{cls.__qualname__}.{name}' must be declared "
                f"as a class, got {declared!r}",
                cls=self.root_cls,
            )
        if target in self.embedding or target is self.root_cls:
            raise ConfigurationError(
                f"Recursive embedding of '{target.__qualname__}' at '{path}'",
                cls=self.root_cls,
            )
        check_for_no_arg_constructor(target, path)

        logger.debug("Embedding %s at %s", target.__qualname__, path)
        navigator = EmbeddedClassNavigator(self.navigator, name, target)
        visitor = Visitor(
            self.registry,
            self.loaders,
            self.root_cls,
            navigator=navigator,
            force_unindexed=unindexed,
            embedding=self.embedding + (target,),
        )
        visitor.visit_class(target)

    def full_path(self, name: str) -> str:
        prefix = self.navigator.prefix
        return f"{prefix}.{name}" if prefix else name

    def add_loader(self, path: str, loader: Loader) -> None:
        if path in self.loaders:
            raise AmbiguousPathError(path, cls=self.root_cls)
        self.loaders[path] = loader
