"""History bookkeeping for the navigation orchestrator (source of truth).

``HistoryStateManager`` owns the committed URL trees and router state and is
the only writer of the ``Location``. It reacts to the orchestrator's events:

``NavigationStart``
    Snapshot ``raw_url_tree``, ``current_url_tree`` and ``router_state`` into
    the memento used for rollback.
``NavigationSkipped``
    ``raw_url_tree`` becomes the requested URL.
``RoutesRecognized``
    With ``url_update_strategy="eager"`` the browser URL is set right away
    (unless ``skip_location_change``).
``BeforeActivateRoutes``
    Commit: ``current_url_tree``, ``raw_url_tree`` and ``router_state`` take
    the transition's values in one step. With the default ``"deferred"``
    strategy the browser URL is written here.
``NavigationCancel`` for a guard rejection or resolver starvation
    Restore history.
``NavigationError``
    Restore history and reset the committed state from the memento.
``NavigationEnd``
    Remember the id as the last successful one and advance the page id.

History entries carry ``{"navigation_id": id}``; with
``canceled_navigation_resolution="computed"`` they also carry
``router_page_id`` so a cancelled popstate navigation can be undone with
``history_go`` instead of a ``replace_state``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from .events import (
    BeforeActivateRoutes,
    NavigationCancel,
    NavigationCancellationCode,
    NavigationEnd,
    NavigationError,
    NavigationSkipped,
    NavigationStart,
    RoutesRecognized,
)
from .location import Location
from .router_state import RouterState, create_empty_state
from .url_tree import UrlSerializer, UrlTree

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from .base_router import NavigationTransition

__all__ = ["HistoryStateManager", "NAVIGATION_ID_KEY", "ROUTER_PAGE_ID_KEY"]

NAVIGATION_ID_KEY = "navigation_id"
ROUTER_PAGE_ID_KEY = "router_page_id"


class HistoryStateManager:
    __slots__ = (
        "location",
        "serializer",
        "canceled_navigation_resolution",
        "url_update_strategy",
        "current_url_tree",
        "raw_url_tree",
        "router_state",
        "current_page_id",
        "last_successful_id",
        "state_memento",
    )

    def __init__(
        self,
        location: Location,
        serializer: UrlSerializer,
        *,
        root_component: Any = None,
        canceled_navigation_resolution: str = "replace",
        url_update_strategy: str = "deferred",
    ):
        self.location = location
        self.serializer = serializer
        self.canceled_navigation_resolution = canceled_navigation_resolution
        self.url_update_strategy = url_update_strategy
        self.current_url_tree = UrlTree()
        self.raw_url_tree = self.current_url_tree
        self.current_page_id = 0
        self.last_successful_id = -1
        self.router_state: RouterState = create_empty_state(self.current_url_tree, root_component)
        self.state_memento = self._create_state_memento()

    def restored_state(self) -> Optional[dict]:
        return self.location.get_state()

    @property
    def browser_page_id(self) -> int:
        if self.canceled_navigation_resolution != "computed":
            return self.current_page_id
        state = self.restored_state() or {}
        page_id = state.get(ROUTER_PAGE_ID_KEY)
        return self.current_page_id if page_id is None else page_id

    def _create_state_memento(self) -> Dict[str, Any]:
        return {
            "raw_url_tree": self.raw_url_tree,
            "current_url_tree": self.current_url_tree,
            "router_state": self.router_state,
        }

    def register_non_router_entry_change_listener(
        self, listener: Callable[[str, Optional[dict]], None]
    ) -> Callable[[], None]:
        def on_change(event: Dict[str, Any]) -> None:
            if event.get("type") == "popstate":
                listener(event["url"], event.get("state"))

        return self.location.subscribe(on_change)

    def handle_router_event(self, event: Any, transition: "NavigationTransition") -> None:
        if isinstance(event, NavigationStart):
            self.state_memento = self._create_state_memento()
        elif isinstance(event, NavigationSkipped):
            self.raw_url_tree = transition.raw_url
        elif isinstance(event, RoutesRecognized):
            if self.url_update_strategy == "eager" and not transition.skip_location_change:
                self.set_browser_url(transition.final_url, transition)
        elif isinstance(event, BeforeActivateRoutes):
            self.current_url_tree = transition.final_url
            self.raw_url_tree = transition.final_url
            self.router_state = transition.target_router_state
            if self.url_update_strategy == "deferred" and not transition.skip_location_change:
                self.set_browser_url(self.raw_url_tree, transition)
        elif isinstance(event, NavigationCancel) and event.code in (
            NavigationCancellationCode.GUARD_REJECTED,
            NavigationCancellationCode.NO_DATA_FROM_RESOLVER,
        ):
            self.restore_history(transition)
        elif isinstance(event, NavigationError):
            self.restore_history(transition, restoring_from_caught_error=True)
        elif isinstance(event, NavigationEnd):
            self.last_successful_id = event.id
            self.current_page_id = self.browser_page_id

    def set_browser_url(self, url: UrlTree, transition: "NavigationTransition") -> None:
        path = self.serializer.serialize(url)
        extra_state = dict(transition.state or {})
        if self.location.is_current_path_equal_to(path) or transition.replace_url:
            state = {**extra_state, **self._router_history_state(transition.id, self.browser_page_id)}
            self.location.replace_state(path, state)
        else:
            state = {**extra_state, **self._router_history_state(transition.id, self.browser_page_id + 1)}
            self.location.go(path, state)

    def restore_history(
        self, transition: "NavigationTransition", restoring_from_caught_error: bool = False
    ) -> None:
        if self.canceled_navigation_resolution == "computed":
            target_page_position = self.current_page_id - self.browser_page_id
            if target_page_position != 0:
                self.location.history_go(target_page_position)
            elif self.current_url_tree is transition.final_url:
                self.reset_state()
                self.reset_url_to_current_url_tree()
        elif self.canceled_navigation_resolution == "replace":
            if restoring_from_caught_error:
                self.reset_state()
            self.reset_url_to_current_url_tree()

    def reset_state(self) -> None:
        self.router_state = self.state_memento["router_state"]
        self.current_url_tree = self.state_memento["current_url_tree"]
        self.raw_url_tree = self.current_url_tree

    def reset_url_to_current_url_tree(self) -> None:
        self.location.replace_state(
            self.serializer.serialize(self.raw_url_tree),
            self._router_history_state(self.last_successful_id, self.current_page_id),
        )

    def _router_history_state(self, navigation_id: int, page_id: int) -> Dict[str, Any]:
        if self.canceled_navigation_resolution == "computed":
            return {NAVIGATION_ID_KEY: navigation_id, ROUTER_PAGE_ID_KEY: page_id}
        return {NAVIGATION_ID_KEY: navigation_id}
