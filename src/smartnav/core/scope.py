"""Capability resolution by token (source of truth).

Guards and resolvers are configured as *tokens*. A token is turned into an
implementation through a chain of ``ProviderScope`` objects:

- ``ProviderScope(providers, parent, name)`` maps tokens to implementations
  and delegates misses to ``parent``.
- ``get_closest_scope(snapshot)`` picks the scope a snapshot resolves in: the
  snapshot's own ``route.scope`` first, then walking ancestors, the first
  ``loaded_scope`` (lazy sub-tree) or ``scope`` found. ``None`` means the
  caller's root scope applies.
- ``resolve_token(token, scope, fallback)`` tries ``scope`` then
  ``fallback``. An unregistered token that is a plain callable or an object
  exposing a capability method is its own implementation. Unregistered
  classes and any other value raise ``ProviderNotFoundError``.
- ``capability_callable(implementation, kind)`` returns the bound capability
  method (``can_activate``, ``can_activate_child``, ``can_deactivate``,
  ``resolve``) when present, else the implementation itself if callable.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Tuple

from .errors import InvalidGuardError, ProviderNotFoundError

__all__ = [
    "CAPABILITY_KINDS",
    "ProviderScope",
    "capability_callable",
    "get_closest_scope",
    "resolve_token",
    "token_name",
]

CAPABILITY_KINDS = ("can_activate", "can_activate_child", "can_deactivate", "resolve")

_MISSING = object()


class ProviderScope:
    __slots__ = ("name", "parent", "_providers")

    def __init__(
        self,
        providers: Optional[Dict[Any, Any]] = None,
        parent: Optional["ProviderScope"] = None,
        name: Optional[str] = None,
    ):
        self.name = name
        self.parent = parent
        self._providers: Dict[Any, Any] = dict(providers or {})

    def provide(self, token: Any, implementation: Any) -> "ProviderScope":
        self._providers[token] = implementation
        return self

    def lookup(self, token: Any) -> Tuple[bool, Any]:
        scope: Optional[ProviderScope] = self
        while scope is not None:
            if token in scope._providers:
                return True, scope._providers[token]
            scope = scope.parent
        return False, None

    def get(self, token: Any, default: Any = _MISSING) -> Any:
        found, implementation = self.lookup(token)
        if found:
            return implementation
        if default is _MISSING:
            raise ProviderNotFoundError(token)
        return default

    def __contains__(self, token: Any) -> bool:
        return self.lookup(token)[0]

    def __repr__(self) -> str:
        return f"ProviderScope(name={self.name!r}, tokens={len(self._providers)})"


def _is_capability_object(value: Any) -> bool:
    return any(callable(getattr(value, kind, None)) for kind in CAPABILITY_KINDS)


def resolve_token(
    token: Any, scope: Optional[ProviderScope], fallback: Optional[ProviderScope] = None
) -> Any:
    for candidate in (scope, fallback):
        if candidate is None:
            continue
        found, implementation = candidate.lookup(token)
        if found:
            return implementation
    if isinstance(token, type):
        raise ProviderNotFoundError(token)
    if callable(token) or _is_capability_object(token):
        return token
    raise ProviderNotFoundError(token)


def capability_callable(implementation: Any, kind: str, token: Any = None) -> Callable:
    method = getattr(implementation, kind, None)
    if callable(method):
        return method
    if callable(implementation) and not isinstance(implementation, type):
        return implementation
    raise InvalidGuardError(kind, token if token is not None else implementation)


def get_closest_scope(snapshot: Any) -> Optional[ProviderScope]:
    if snapshot is None:
        return None
    config = snapshot.route_config
    if config is not None and config.scope is not None:
        return config.scope
    current = snapshot.parent
    while current is not None:
        config = current.route_config
        if config is not None:
            if config.loaded_scope is not None:
                return config.loaded_scope
            if config.scope is not None:
                return config.scope
        current = current.parent
    return None


def token_name(token: Any) -> str:
    if isinstance(token, str):
        return token
    name = getattr(token, "__qualname__", None) or getattr(token, "__name__", None)
    if name:
        return name
    return type(token).__name__
