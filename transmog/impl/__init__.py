"""
Marshaling internals: navigators, loaders, the discovery visitor and the
per-class Transmog engine.

Invariants:
    - Everything here is built at registration and immutable afterwards
    - Loader and navigator variants are chosen once, by declared type
"""

from .loaders import ArrayLoader, BasicLoader, CollectionLoader, Loader
from .navigators import EmbeddedClassNavigator, Navigator, RootNavigator
from .transmog import Transmog
from .visitor import Visitor

__all__ = [
    "Transmog",
    "Visitor",
    # Navigators
    "Navigator",
    "RootNavigator",
    "EmbeddedClassNavigator",
    # Loaders
    "Loader",
    "BasicLoader",
    "ArrayLoader",
    "CollectionLoader",
]
