"""
Scalar value conversion between stored and in-memory representations.

Every leaf loader converts values through a Conversion chosen once, at
registration, from the attribute's declared (element) type:

- KeyConversion: Key[T] <-> RawKey, through the registry's kind names
- EnumConversion: Enum members are stored by name
- AdapterConversion: anything pydantic can validate (int, float, str,
  datetime, Decimal, unions, ...), converted with a TypeAdapter
- InstanceConversion: arbitrary classes pydantic has no schema for,
  checked with isinstance
- PassThroughConversion: Any / object / type variables

Invariants:
    - None converts to None in both directions
    - Conversion failures raise ConversionError carrying the property path
    - Values are only validated on load; save stores what the object holds
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any, Optional, TypeVar, get_args, get_origin

from pydantic import TypeAdapter, ValidationError
from pydantic.errors import PydanticSchemaGenerationError

from .errors import ConversionError, NotRegisteredError
from .keys import Key, RawKey
from .typeutils import split_annotation

if TYPE_CHECKING:
    from .registry import TransmogRegistry


class Conversion:
    """Converts one declared scalar type to and from its stored form."""

    def __init__(self, declared: Any) -> None:
        self.declared = declared

    def from_store(self, value: Any, path: Optional[str] = None) -> Any:
        return value

    def to_store(self, value: Any, path: Optional[str] = None) -> Any:
        return value

    def describe(self) -> str:
        return _type_name(self.declared)


class PassThroughConversion(Conversion):
    pass


class AdapterConversion(Conversion):
    """Validates stored values with a pydantic TypeAdapter."""

    def __init__(self, declared: Any, adapter: TypeAdapter, strict: bool = False) -> None:
        super().__init__(declared)
        self.adapter = adapter
        self.strict = strict

    def from_store(self, value: Any, path: Optional[str] = None) -> Any:
        if value is None:
            return None
        try:
            return self.adapter.validate_python(value, strict=self.strict)
        except ValidationError as e:
            messages = "; ".join(err["msg"] for err in e.errors())
            raise ConversionError(
                f"cannot convert {type(value).__name__} to {self.describe()}: {messages}",
                path=path,
                value=value,
            ) from e


class InstanceConversion(Conversion):
    def from_store(self, value: Any, path: Optional[str] = None) -> Any:
        if value is None or isinstance(value, self.declared):
            return value
        raise ConversionError(
            f"expected {self.describe()}, got {type(value).__name__}",
            path=path,
            value=value,
        )


class EnumConversion(Conversion):
    """Enum members are stored by member name."""

    def from_store(self, value: Any, path: Optional[str] = None) -> Any:
        if value is None or isinstance(value, self.declared):
            return value
        if isinstance(value, str):
            try:
                return self.declared[value]
            except KeyError:
                pass
        raise ConversionError(
            f"{value!r} is not a member of {self.describe()}",
            path=path,
            value=value,
        )

    def to_store(self, value: Any, path: Optional[str] = None) -> Any:
        if isinstance(value, enum.Enum):
            return value.name
        return value


class KeyConversion(Conversion):
    """Typed references are stored as RawKeys."""

    def __init__(self, declared: Any, registry: TransmogRegistry) -> None:
        super().__init__(declared)
        self.registry = registry
        args = get_args(declared)
        self.target = args[0] if args and isinstance(args[0], type) else None

    def from_store(self, value: Any, path: Optional[str] = None) -> Any:
        if value is None or isinstance(value, Key):
            return value
        if not isinstance(value, RawKey):
            raise ConversionError(
                f"expected a key, got {type(value).__name__}",
                path=path,
                value=value,
            )
        try:
            key = self.registry.to_key(value)
        except NotRegisteredError as e:
            raise ConversionError(e.message, path=path, value=value) from e
        if self.target is not None and not issubclass(key.target, self.target):
            raise ConversionError(
                f"key of kind '{value.kind}' cannot be assigned to {self.describe()}",
                path=path,
                value=value,
            )
        return key

    def to_store(self, value: Any, path: Optional[str] = None) -> Any:
        if value is None or isinstance(value, RawKey):
            return value
        if not isinstance(value, Key):
            raise ConversionError(
                f"expected a key, got {type(value).__name__}",
                path=path,
                value=value,
            )
        try:
            return self.registry.to_raw_key(value)
        except NotRegisteredError as e:
            raise ConversionError(e.message, path=path, value=value) from e


def conversion_for(declared: Any, registry: TransmogRegistry, strict: bool = False) -> Conversion:
    """Pick the conversion for a declared scalar or element type."""
    declared = split_annotation(declared)[0]
    if declared is Any or declared is object or isinstance(declared, TypeVar):
        return PassThroughConversion(declared)
    if declared is Key or get_origin(declared) is Key:
        return KeyConversion(declared, registry)
    if declared is RawKey:
        return InstanceConversion(declared)
    if isinstance(declared, type) and issubclass(declared, enum.Enum):
        return EnumConversion(declared)
    try:
        adapter = TypeAdapter(declared)
    except PydanticSchemaGenerationError:
        if isinstance(declared, type):
            return InstanceConversion(declared)
        return PassThroughConversion(declared)
    return AdapterConversion(declared, adapter, strict=strict)


def _type_name(tp: Any) -> str:
    if isinstance(tp, type) and not get_args(tp):
        return tp.__qualname__
    return repr(tp).replace("typing.", "")
