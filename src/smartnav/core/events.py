"""Navigation events and the stream that publishes them.

One event per phase boundary, in this order for a successful navigation::

    NavigationStart, RoutesRecognized, GuardsCheckStart,
    [ChildActivationStart, ActivationStart]*, GuardsCheckEnd,
    ResolveStart, ResolveEnd, [ActivationEnd, ChildActivationEnd]*,
    NavigationEnd

``NavigationCancel``, ``NavigationSkipped`` and ``NavigationError`` end an
attempt without committing. ``BeforeActivateRoutes`` is internal: it marks the
commit point and is never published to subscribers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Callable, List, Optional

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from .router_state import ActivatedRouteSnapshot, RouterStateSnapshot

__all__ = [
    "ActivationEnd",
    "ActivationStart",
    "BeforeActivateRoutes",
    "ChildActivationEnd",
    "ChildActivationStart",
    "EventStream",
    "GuardsCheckEnd",
    "GuardsCheckStart",
    "NavigationCancel",
    "NavigationCancellationCode",
    "NavigationEnd",
    "NavigationError",
    "NavigationSkipped",
    "NavigationSkippedCode",
    "NavigationStart",
    "NavigationTrigger",
    "ResolveEnd",
    "ResolveStart",
    "RouterEvent",
    "RoutesRecognized",
    "is_public_event",
]

NavigationTrigger = str  # "imperative" | "popstate" | "hashchange"


class NavigationCancellationCode(IntEnum):
    REDIRECT = 0
    SUPERSEDED_BY_NEW_NAVIGATION = 1
    NO_DATA_FROM_RESOLVER = 2
    GUARD_REJECTED = 3


class NavigationSkippedCode(IntEnum):
    IGNORED_SAME_URL_NAVIGATION = 0


@dataclass
class RouterEvent:
    id: int
    url: str


@dataclass
class NavigationStart(RouterEvent):
    navigation_trigger: NavigationTrigger = "imperative"
    restored_state: Optional[dict] = None

    def __str__(self) -> str:
        return f"NavigationStart(id: {self.id}, url: '{self.url}')"


@dataclass
class NavigationEnd(RouterEvent):
    url_after_redirects: str = ""

    def __str__(self) -> str:
        return (
            f"NavigationEnd(id: {self.id}, url: '{self.url}', "
            f"urlAfterRedirects: '{self.url_after_redirects}')"
        )


@dataclass
class NavigationCancel(RouterEvent):
    reason: str = ""
    code: Optional[NavigationCancellationCode] = None

    def __str__(self) -> str:
        return f"NavigationCancel(id: {self.id}, url: '{self.url}')"


@dataclass
class NavigationSkipped(RouterEvent):
    reason: str = ""
    code: Optional[NavigationSkippedCode] = None

    def __str__(self) -> str:
        return f"NavigationSkipped(id: {self.id}, url: '{self.url}')"


@dataclass
class NavigationError(RouterEvent):
    error: Optional[BaseException] = None
    target: Optional["RouterStateSnapshot"] = None

    def __str__(self) -> str:
        return f"NavigationError(id: {self.id}, url: '{self.url}', error: {self.error!r})"


@dataclass
class _StateEvent(RouterEvent):
    url_after_redirects: str = ""
    state: Optional["RouterStateSnapshot"] = None

    def __str__(self) -> str:
        return (
            f"{type(self).__name__}(id: {self.id}, url: '{self.url}', "
            f"urlAfterRedirects: '{self.url_after_redirects}', state: {self.state!r})"
        )


@dataclass
class RoutesRecognized(_StateEvent):
    pass


@dataclass
class GuardsCheckStart(_StateEvent):
    pass


@dataclass
class GuardsCheckEnd(_StateEvent):
    should_activate: bool = False

    def __str__(self) -> str:
        return (
            f"GuardsCheckEnd(id: {self.id}, url: '{self.url}', "
            f"urlAfterRedirects: '{self.url_after_redirects}', "
            f"shouldActivate: {self.should_activate})"
        )


@dataclass
class ResolveStart(_StateEvent):
    pass


@dataclass
class ResolveEnd(_StateEvent):
    pass


@dataclass
class _SnapshotEvent:
    snapshot: "ActivatedRouteSnapshot"

    def __str__(self) -> str:
        config = self.snapshot.route_config
        path = config.path if config is not None else ""
        return f"{type(self).__name__}(path: '{path}')"


@dataclass
class ChildActivationStart(_SnapshotEvent):
    pass


@dataclass
class ActivationStart(_SnapshotEvent):
    pass


@dataclass
class ChildActivationEnd(_SnapshotEvent):
    pass


@dataclass
class ActivationEnd(_SnapshotEvent):
    pass


class BeforeActivateRoutes:
    __slots__ = ()


def is_public_event(event: Any) -> bool:
    return not isinstance(event, BeforeActivateRoutes)


class EventStream:
    """Synchronous publish/subscribe list; listeners run in subscription order."""

    __slots__ = ("_listeners",)

    def __init__(self) -> None:
        self._listeners: List[Callable[[Any], None]] = []

    def subscribe(self, listener: Callable[[Any], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: Any) -> None:
        for listener in list(self._listeners):
            listener(event)

    def clear(self) -> None:
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)
