"""Core runtime aggregator (source of truth).

Purpose: expose the runtime building blocks from a single module. No extra
logic beyond imports/exports.

Guarantees
----------
- Importing this module performs only imports; it does not register plugins or
  instantiate routers.
- Public API mirrors underlying modules 1:1:
  * ``base_router`` -> ``BaseRouter`` (plugin-free engine), ``NavigationTransition``
  * ``router`` -> ``Router`` (plugin-enabled)
  * ``config`` -> ``Route``
  * ``scope`` -> ``ProviderScope``
  * ``options`` -> ``RouterOptions``
  * ``location`` -> ``Location``, ``MemoryLocation``
  * ``url_tree`` -> ``UrlTree``, ``DefaultUrlSerializer``, ``IsActiveMatchOptions``
"""

from .base_router import BaseRouter, NavigationTransition
from .config import Route
from .location import Location, MemoryLocation
from .options import RouterOptions
from .router import Router
from .scope import ProviderScope
from .url_tree import DefaultUrlSerializer, IsActiveMatchOptions, UrlTree

__all__ = [
    "BaseRouter",
    "DefaultUrlSerializer",
    "IsActiveMatchOptions",
    "Location",
    "MemoryLocation",
    "NavigationTransition",
    "ProviderScope",
    "Route",
    "Router",
    "RouterOptions",
    "UrlTree",
]
