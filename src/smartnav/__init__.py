"""SmartNav public API surface (source of truth).

Recreate the module with these rules:
- Public exports: ``Router``, ``BaseRouter``, ``Route``, ``ProviderScope``,
  ``RouterOptions``, ``MemoryLocation``, ``UrlTree``, the event classes and the
  error classes.
- Plugin registration: import built-in plugins (``logging``) for their side
  effect of calling ``Router.register_plugin(<class>)``. Imports are done
  lazily via ``import_module`` to avoid cycles.

Constraints
-----------
- Import must stay lightweight: no router instantiation or heavy work beyond
  plugin registration.
- Version string lives here as ``__version__`` and must remain available for
  packaging tools.
"""

from importlib import import_module

__version__ = "0.1.0"

from .core import (
    BaseRouter,
    DefaultUrlSerializer,
    IsActiveMatchOptions,
    Location,
    MemoryLocation,
    NavigationTransition,
    ProviderScope,
    Route,
    Router,
    RouterOptions,
    UrlTree,
)
from .core.errors import (
    DuplicateOutletError,
    EmptyGuardResultError,
    InvalidCommandError,
    InvalidConfigError,
    InvalidGuardError,
    MalformedUrlError,
    NavigationException,
    NoMatchError,
    ProviderNotFoundError,
)
from .core.events import (
    ActivationEnd,
    ActivationStart,
    ChildActivationEnd,
    ChildActivationStart,
    GuardsCheckEnd,
    GuardsCheckStart,
    NavigationCancel,
    NavigationCancellationCode,
    NavigationEnd,
    NavigationError,
    NavigationSkipped,
    NavigationSkippedCode,
    NavigationStart,
    ResolveEnd,
    ResolveStart,
    RoutesRecognized,
)

# Import plugins to trigger auto-registration (lazy to avoid cycles)
for _plugin in ("logging",):
    import_module(f"{__name__}.plugins.{_plugin}")
del _plugin

__all__ = [
    "ActivationEnd",
    "ActivationStart",
    "BaseRouter",
    "ChildActivationEnd",
    "ChildActivationStart",
    "DefaultUrlSerializer",
    "DuplicateOutletError",
    "EmptyGuardResultError",
    "GuardsCheckEnd",
    "GuardsCheckStart",
    "InvalidCommandError",
    "InvalidConfigError",
    "InvalidGuardError",
    "IsActiveMatchOptions",
    "Location",
    "MalformedUrlError",
    "MemoryLocation",
    "NavigationCancel",
    "NavigationCancellationCode",
    "NavigationEnd",
    "NavigationError",
    "NavigationException",
    "NavigationSkipped",
    "NavigationSkippedCode",
    "NavigationStart",
    "NavigationTransition",
    "NoMatchError",
    "ProviderNotFoundError",
    "ProviderScope",
    "ResolveEnd",
    "ResolveStart",
    "Route",
    "Router",
    "RouterOptions",
    "RoutesRecognized",
    "UrlTree",
]
