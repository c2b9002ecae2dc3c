"""
Type introspection helpers used during class registration.

These functions answer the questions the visitor asks about one annotated
attribute: which markers it carries, whether it is a fixed-size sequence
(``tuple[X, ...]``), a dynamic collection (list, set, deque, abstract
collections.abc containers) or a scalar, and whether an embedded class can
be built without arguments.

Invariants:
    - Only called at registration time, never per load/save
    - str, bytes and mappings are always scalars
    - Type tags are "module:QualName" strings
"""

from __future__ import annotations

import collections.abc
import dataclasses
import functools
import inspect
import pkgutil
import types
import typing
from typing import Any, Annotated, ClassVar, Optional, Union, get_args, get_origin

from .errors import ConfigurationError, MissingConstructorError

_SCALAR_SEQUENCES = (str, bytes, bytearray, memoryview)


def split_annotation(hint: Any) -> tuple[Any, tuple[Any, ...]]:
    """Strip Annotated and Optional wrappers.

    Returns:
        Tuple of (bare declared type, markers found at any wrapper level)
    """
    markers: list[Any] = []
    current = hint
    while True:
        if get_origin(current) is Annotated:
            args = get_args(current)
            current = args[0]
            markers.extend(args[1:])
            continue
        unwrapped = unwrap_optional(current)
        if unwrapped is current:
            return current, tuple(markers)
        current = unwrapped


def unwrap_optional(tp: Any) -> Any:
    """Return X for Optional[X] / X | None, otherwise tp unchanged."""
    origin = get_origin(tp)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(tp) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return tp


def is_classvar(tp: Any) -> bool:
    return tp is ClassVar or get_origin(tp) is ClassVar


def is_initvar(tp: Any) -> bool:
    return isinstance(tp, dataclasses.InitVar) or tp is dataclasses.InitVar


def runtime_class(tp: Any) -> Optional[type]:
    """Runtime class behind a (possibly generic) declared type."""
    origin = get_origin(tp) or tp
    return origin if isinstance(origin, type) else None


def is_array(tp: Any) -> bool:
    """True for ``tuple[X, ...]`` and bare ``tuple``."""
    if tp is tuple:
        return True
    if get_origin(tp) is not tuple:
        return False
    args = get_args(tp)
    return len(args) == 2 and args[1] is Ellipsis


def is_collection(tp: Any) -> bool:
    """True for dynamic sequences and sets (list, set, deque, abc containers)."""
    cls = runtime_class(tp)
    if cls is None or cls is tuple or is_array(tp):
        return False
    if issubclass(cls, _SCALAR_SEQUENCES) or issubclass(cls, collections.abc.Mapping):
        return False
    if issubclass(cls, tuple):
        # NamedTuple and friends are opaque values
        return False
    return issubclass(cls, collections.abc.Collection)


def element_type(tp: Any) -> Any:
    args = get_args(tp)
    if not args:
        return Any
    return args[0]


def is_abstract_collection(cls: type) -> bool:
    return inspect.isabstract(cls) or cls.__module__ in ("collections.abc", "typing")


def default_collection_type(cls: type) -> type:
    """Concrete class used for an abstract declaration with no type tag."""
    if issubclass(cls, collections.abc.Set):
        return set
    return list


def check_for_no_arg_constructor(cls: Any, attribute: Optional[str] = None) -> None:
    """Raise MissingConstructorError if cls() would need arguments."""
    if not isinstance(cls, type):
        return
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        # builtins without introspectable signatures
        return
    for param in signature.parameters.values():
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        if param.default is inspect.Parameter.empty:
            raise MissingConstructorError(cls, attribute)


def attribute_hints(cls: type) -> dict[str, Any]:
    """Annotated attributes of cls, base classes first, in declaration order.

    A subclass re-declaring an inherited attribute keeps the base class
    position but takes the subclass's type.
    """
    try:
        return typing.get_type_hints(cls, include_extras=True)
    except NameError as e:
        raise ConfigurationError(
            f"Cannot resolve annotations of '{cls.__qualname__}': {e}",
            cls=cls,
        ) from e


def type_tag(cls: type) -> str:
    return f"{cls.__module__}:{cls.__qualname__}"


@functools.lru_cache(maxsize=256)
def resolve_type_tag(tag: str) -> Optional[type]:
    """Class named by a type tag, or None if it no longer exists."""
    try:
        resolved = pkgutil.resolve_name(tag)
    except (ImportError, AttributeError, ValueError):
        return None
    return resolved if isinstance(resolved, type) else None
