"""Outlet contexts: the mounted hierarchy the state diff walks.

Each ``ChildrenOutletContexts`` maps outlet names to an ``OutletContext``. A
context keeps the live route mounted there, the outlet object, and the
contexts of its own children. ``Outlet`` is a headless stand-in for a UI slot:
it records which route and component are mounted so exit checks can receive
the component identity.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

from .shared import PRIMARY_OUTLET

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from .router_state import ActivatedRoute

__all__ = ["ChildrenOutletContexts", "Outlet", "OutletContext"]


class Outlet:
    __slots__ = ("name", "activated_route", "component")

    def __init__(self, name: str = PRIMARY_OUTLET):
        self.name = name
        self.activated_route: Optional["ActivatedRoute"] = None
        self.component: Any = None

    @property
    def is_activated(self) -> bool:
        return self.activated_route is not None

    def activate_with(self, route: "ActivatedRoute") -> None:
        self.activated_route = route
        self.component = route.component

    def deactivate(self) -> None:
        self.activated_route = None
        self.component = None

    def __repr__(self) -> str:
        return f"Outlet({self.name!r}, component={self.component!r})"


class OutletContext:
    __slots__ = ("outlet", "route", "children")

    def __init__(self) -> None:
        self.outlet: Optional[Outlet] = None
        self.route: Optional["ActivatedRoute"] = None
        self.children = ChildrenOutletContexts()


class ChildrenOutletContexts:
    __slots__ = ("contexts",)

    def __init__(self) -> None:
        self.contexts: Dict[str, OutletContext] = {}

    def on_child_outlet_created(self, child_name: str, outlet: Outlet) -> None:
        context = self.get_or_create_context(child_name)
        context.outlet = outlet
        self.contexts[child_name] = context

    def on_child_outlet_destroyed(self, child_name: str) -> None:
        context = self.get_context(child_name)
        if context is not None:
            context.outlet = None

    def on_outlet_deactivated(self) -> Dict[str, OutletContext]:
        contexts = self.contexts
        self.contexts = {}
        return contexts

    def get_or_create_context(self, child_name: str) -> OutletContext:
        context = self.get_context(child_name)
        if context is None:
            context = OutletContext()
            self.contexts[child_name] = context
        return context

    def get_context(self, child_name: str) -> Optional[OutletContext]:
        return self.contexts.get(child_name)
