"""Error taxonomy raised by the navigation core.

Expected outcomes (guard rejection, resolver starvation, same-URL skips,
supersession) are never raised to callers: they settle the navigation result
with ``True``/``False``. The classes below cover the genuine failures and the
internal control signals.

``NavigationException``
    Root of every error defined here.
``NoMatchError``
    Recognition found no configuration entry for the requested URL.
``InvalidConfigError``
    A route configuration entry is inconsistent (checked when the router
    loads its configuration).
``DuplicateOutletError``
    Two sibling snapshots claim the same outlet name (configuration bug,
    raised immediately during recognition).
``MalformedUrlError``
    The URL serializer could not parse a string.
``InvalidCommandError``
    ``create_url_tree``/``navigate`` received commands it cannot apply.
``ProviderNotFoundError``
    A guard/resolver token could not be resolved in the scope chain.
``InvalidGuardError``
    A resolved implementation exposes neither the capability method nor a
    plain callable.
``EmptyGuardResultError``
    A guard stream completed without emitting a value.
``NavigationCancelingError``
    Internal signal carrying a cancellation code, used for redirects.
"""

from __future__ import annotations

from typing import Any, Optional

__all__ = [
    "NavigationException",
    "NoMatchError",
    "InvalidConfigError",
    "DuplicateOutletError",
    "MalformedUrlError",
    "InvalidCommandError",
    "ProviderNotFoundError",
    "InvalidGuardError",
    "EmptyGuardResultError",
    "NavigationCancelingError",
]


class NavigationException(Exception):
    """Base class for errors raised by the navigation core."""


class NoMatchError(NavigationException):
    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Cannot match any routes. URL Segment: '{url}'")


class InvalidConfigError(NavigationException, ValueError):
    pass


class DuplicateOutletError(NavigationException):
    def __init__(self, first: str, second: str):
        self.first = first
        self.second = second
        super().__init__(
            f"Two segments cannot have the same outlet name: '{first}' and '{second}'."
        )


class MalformedUrlError(NavigationException, ValueError):
    pass


class InvalidCommandError(NavigationException, ValueError):
    pass


class ProviderNotFoundError(NavigationException, LookupError):
    def __init__(self, token: Any):
        self.token = token
        super().__init__(f"No provider for {token!r}")


class InvalidGuardError(NavigationException, TypeError):
    def __init__(self, kind: str, token: Any):
        self.kind = kind
        self.token = token
        super().__init__(f"Invalid {kind} implementation for {token!r}")


class EmptyGuardResultError(NavigationException):
    def __init__(self, kind: str, token: Any):
        self.kind = kind
        self.token = token
        super().__init__(f"{kind} guard {token!r} completed without a value")


class NavigationCancelingError(NavigationException):
    """Cancels the running navigation; ``url`` is set for redirects."""

    def __init__(self, message: str, code: Any, url: Optional[Any] = None):
        self.code = code
        self.url = url
        super().__init__(message)
