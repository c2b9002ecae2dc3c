"""
Error types for transmog.

This module defines all exception types raised by the marshaling engine:
- TransmogError: Base exception
- ConfigurationError: Class shape cannot be mapped (raised at registration)
- AmbiguousPathError: Two attributes resolve to the same property path
- MissingConstructorError: Embedded type cannot be built without arguments
- UnsupportedShapeError: Repeated embedded objects
- ConversionError: Stored value does not fit the declared type
- NotRegisteredError: Class or kind was never registered

Invariants:
    - All errors inherit from TransmogError
    - Configuration errors are only raised while registering a class
    - Conversion errors carry the property path they failed on
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class TransmogError(Exception):
    """Base exception for all transmog errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "TRANSMOG_ERROR"
        self.details = details or {}


class ConfigurationError(TransmogError):
    """A class cannot be mapped to flat properties.

    Raised when:
    - Two attributes map to the same property path
    - An embedded type lacks a no-argument constructor
    - An embedded attribute is a tuple or collection
    """

    def __init__(
        self,
        message: str,
        cls: Optional[type] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = dict(details or {})
        details.setdefault("class", cls.__qualname__ if cls is not None else None)
        super().__init__(message, code=code or "CONFIGURATION_ERROR", details=details)
        self.cls = cls


class AmbiguousPathError(ConfigurationError):
    """Attempted to create multiple associations for one property path."""

    def __init__(self, path: str, cls: Optional[type] = None) -> None:
        super().__init__(
            f"Attempting to create multiple associations for '{path}'",
            cls=cls,
            code="AMBIGUOUS_PATH",
            details={"path": path},
        )
        self.path = path


class MissingConstructorError(ConfigurationError):
    """Embedded class cannot be instantiated without arguments."""

    def __init__(self, target: type, attribute: Optional[str] = None) -> None:
        msg = f"Class '{target.__qualname__}' must have a no-arg constructor"
        if attribute:
            msg += f" to be embedded as '{attribute}'"
        super().__init__(
            msg,
            cls=target,
            code="MISSING_CONSTRUCTOR",
            details={"attribute": attribute},
        )
        self.target = target
        self.attribute = attribute


class UnsupportedShapeError(ConfigurationError):
    """Embedded attribute holds a repeated sub-object."""

    def __init__(self, cls: type, attribute: str, declared: Any) -> None:
        super().__init__(
            f"Embedded tuples and collections are not supported: "
            f"'{cls.__qualname__}.{attribute}' is declared as {declared!r}",
            cls=cls,
            code="UNSUPPORTED_SHAPE",
            details={"attribute": attribute, "declared": repr(declared)},
        )
        self.attribute = attribute
        self.declared = declared


class ConversionError(TransmogError):
    """Stored value could not be converted to or from the declared type.

    Attributes:
        path: Full property path being converted
        value: The offending value
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        value: Any = None,
    ) -> None:
        if path:
            message = f"{path}: {message}"
        super().__init__(
            message,
            code="CONVERSION_ERROR",
            details={"path": path, "value": repr(value)},
        )
        self.path = path
        self.value = value


class NotRegisteredError(TransmogError):
    """Class or kind has not been registered."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"No class registered for '{name}'",
            code="NOT_REGISTERED",
            details={"name": name},
        )
        self.name = name
