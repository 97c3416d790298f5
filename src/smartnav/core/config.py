"""Route configuration entries.

``Route`` compares by identity: two structurally identical entries are still
different routes, and reuse decisions rely on that.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Union

from .errors import InvalidConfigError
from .shared import PRIMARY_OUTLET

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from .scope import ProviderScope

__all__ = [
    "Route",
    "Routes",
    "RUN_GUARDS_AND_RESOLVERS_MODES",
    "get_outlet",
    "get_child_config",
    "sort_by_matching_outlets",
    "validate_config",
]

RUN_GUARDS_AND_RESOLVERS_MODES = (
    "always",
    "params-change",
    "params-or-query-change",
    "path-params-change",
    "path-params-or-query-change",
)


@dataclass(eq=False)
class Route:
    path: Optional[str] = None
    path_match: str = "prefix"
    matcher: Optional[Callable[..., Any]] = None
    component: Any = None
    outlet: str = PRIMARY_OUTLET
    children: Optional[List["Route"]] = None
    load_children: Optional[Callable[..., Any]] = None
    loaded_routes: Optional[List["Route"]] = None
    loaded_scope: Optional["ProviderScope"] = None
    scope: Optional["ProviderScope"] = None
    redirect_to: Optional[str] = None
    can_activate: List[Any] = field(default_factory=list)
    can_activate_child: List[Any] = field(default_factory=list)
    can_deactivate: List[Any] = field(default_factory=list)
    resolve: Dict[str, Any] = field(default_factory=dict)
    data: Dict[str, Any] = field(default_factory=dict)
    run_guards_and_resolvers: Union[str, Callable[[Any, Any], bool]] = "params-change"

    def __repr__(self) -> str:
        if self.matcher is not None and self.path is None:
            return f"Route(matcher={getattr(self.matcher, '__name__', self.matcher)!r})"
        if self.outlet != PRIMARY_OUTLET:
            return f"Route(path={self.path!r}, outlet={self.outlet!r})"
        return f"Route(path={self.path!r})"


Routes = List[Route]


def get_outlet(route: Route) -> str:
    return route.outlet or PRIMARY_OUTLET


def get_child_config(route: Route) -> Routes:
    """Own children, else the already loaded lazy sub-tree, else nothing."""
    if route.children:
        return route.children
    if route.load_children is not None:
        return list(route.loaded_routes or [])
    return []


def sort_by_matching_outlets(routes: Routes, outlet_name: str) -> Routes:
    """Entries targeting ``outlet_name`` first, the rest after, order kept."""
    matching = [route for route in routes if get_outlet(route) == outlet_name]
    others = [route for route in routes if get_outlet(route) != outlet_name]
    return matching + others


def validate_config(routes: Routes, parent_path: str = "") -> None:
    """Raise ``InvalidConfigError`` for the first inconsistent entry."""
    for route in routes:
        _validate_node(route, parent_path)


def _validate_node(route: Any, parent_path: str) -> None:
    if not isinstance(route, Route):
        raise InvalidConfigError(
            f"Invalid configuration of route '{parent_path}': expected a Route, got {route!r}"
        )
    full_path = _full_path(route, parent_path)
    if route.path is None and route.matcher is None:
        raise InvalidConfigError(
            f"Invalid configuration of route '{full_path}': routes must have either a path or a matcher"
        )
    if route.path is not None and route.matcher is not None:
        raise InvalidConfigError(
            f"Invalid configuration of route '{full_path}': path and matcher can't be used together"
        )
    if route.path is not None and route.path.startswith("/"):
        raise InvalidConfigError(
            f"Invalid configuration of route '{full_path}': path cannot start with a slash"
        )
    if route.redirect_to is not None and route.children:
        raise InvalidConfigError(
            f"Invalid configuration of route '{full_path}': redirect_to and children cannot be used together"
        )
    if route.children and route.load_children is not None:
        raise InvalidConfigError(
            f"Invalid configuration of route '{full_path}': children and load_children cannot be used together"
        )
    if route.path_match not in ("prefix", "full"):
        raise InvalidConfigError(
            f"Invalid configuration of route '{full_path}': path_match must be 'prefix' or 'full'"
        )
    mode = route.run_guards_and_resolvers
    if not callable(mode) and mode not in RUN_GUARDS_AND_RESOLVERS_MODES:
        raise InvalidConfigError(
            f"Invalid configuration of route '{full_path}': unknown run_guards_and_resolvers {mode!r}"
        )
    if route.children:
        validate_config(route.children, full_path)


def _full_path(route: Route, parent_path: str) -> str:
    if route.path is None:
        return parent_path
    if not parent_path:
        return route.path
    if not route.path:
        return parent_path
    return f"{parent_path}/{route.path}"
