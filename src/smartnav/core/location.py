"""Location collaborator: where the router reads and writes the current URL.

``Location`` is the interface the router drives. ``MemoryLocation`` keeps an
in-process history stack and is what a headless router uses by default.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple

__all__ = ["Location", "LocationChangeEvent", "MemoryLocation", "normalize_path"]

LocationChangeEvent = Dict[str, Any]
LocationListener = Callable[[LocationChangeEvent], None]


def normalize_path(path: str) -> str:
    """Ensure a leading slash and drop a trailing one (root excepted)."""
    if not path.startswith("/"):
        path = "/" + path
    head, sep, tail = path.partition("?")
    if len(head) > 1 and head.endswith("/"):
        head = head[:-1]
    return head + sep + tail


class Location(ABC):
    @abstractmethod
    def path(self, include_hash: bool = False) -> str:
        """Current path, query string included."""

    @abstractmethod
    def go(self, path: str, state: Optional[dict] = None) -> None:
        """Push a new history entry."""

    @abstractmethod
    def replace_state(self, path: str, state: Optional[dict] = None) -> None:
        """Replace the current history entry."""

    @abstractmethod
    def get_state(self) -> Optional[dict]:
        """State attached to the current history entry."""

    @abstractmethod
    def subscribe(self, listener: LocationListener) -> Callable[[], None]:
        """Register for popstate notifications; returns the unsubscribe callable."""

    @abstractmethod
    def history_go(self, delta: int = 0) -> None:
        """Move ``delta`` entries through history."""

    def is_current_path_equal_to(self, path: str, query: str = "") -> bool:
        if query:
            path = f"{path}?{query.lstrip('?')}"
        return normalize_path(self.path()) == normalize_path(path)


class MemoryLocation(Location):
    """History stack kept in memory.

    ``go`` truncates any forward entries and pushes; ``replace_state`` rewrites
    the current entry. ``back``, ``forward`` and ``history_go`` move the
    cursor and notify subscribers with a ``{"type": "popstate", "url",
    "state"}`` event. Inside a running event loop the notification is
    scheduled with ``call_soon``, as a browser would deliver it; outside one
    it is delivered synchronously.
    """

    def __init__(self, initial_path: str = "/", initial_state: Optional[dict] = None):
        self._history: List[Tuple[str, Optional[dict]]] = [
            (normalize_path(initial_path), initial_state)
        ]
        self._index = 0
        self._listeners: List[LocationListener] = []
        self.url_changes: List[str] = []

    # Location -----------------------------------------------------------
    def path(self, include_hash: bool = False) -> str:
        path = self._history[self._index][0]
        if not include_hash:
            path = path.split("#", 1)[0]
        return path

    def go(self, path: str, state: Optional[dict] = None) -> None:
        path = normalize_path(path)
        del self._history[self._index + 1:]
        self._history.append((path, state))
        self._index = len(self._history) - 1
        self.url_changes.append(path)

    def replace_state(self, path: str, state: Optional[dict] = None) -> None:
        path = normalize_path(path)
        self._history[self._index] = (path, state)
        self.url_changes.append(f"replace: {path}")

    def get_state(self) -> Optional[dict]:
        return self._history[self._index][1]

    def subscribe(self, listener: LocationListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def history_go(self, delta: int = 0) -> None:
        target = self._index + delta
        if delta == 0 or target < 0 or target >= len(self._history):
            return
        self._index = target
        path, state = self._history[target]
        self._notify({"type": "popstate", "url": path, "state": state})

    # extras -------------------------------------------------------------
    def back(self) -> None:
        self.history_go(-1)

    def forward(self) -> None:
        self.history_go(1)

    def simulate_url_pop(self, path: str, state: Optional[dict] = None) -> None:
        """Deliver a popstate for ``path`` without touching the stack."""
        self._notify({"type": "popstate", "url": normalize_path(path), "state": state})

    @property
    def history_length(self) -> int:
        return len(self._history)

    @property
    def history_index(self) -> int:
        return self._index

    def _notify(self, event: LocationChangeEvent) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        for listener in list(self._listeners):
            if loop is not None:
                loop.call_soon(listener, event)
            else:
                listener(event)
