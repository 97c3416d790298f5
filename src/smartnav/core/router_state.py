"""Router state trees (source of truth).

Snapshots
---------
``ActivatedRouteSnapshot`` is one matched route at one moment: consumed URL
segments, params, shared query params and fragment, data, outlet, component,
the ``Route`` it matched, the source segment group (``_url_segment``) and the
index of its last consumed segment in that group (``_last_path_index``).
``data`` and ``_resolved_data`` are rewritten by the resolver phase; every
other field is fixed after recognition.

``RouterStateSnapshot(url, root_node)`` is a ``Tree`` of snapshots. Building
it installs ``_router_state`` on every snapshot, so ``parent``, ``children``,
``first_child``, ``root`` and ``path_from_root`` resolve through the owning
tree's arena.

Live state
----------
``ActivatedRoute`` is the long-lived handle. Its ``url``, ``params``,
``query_params``, ``fragment`` and ``data`` are ``BehaviorValue`` holders that
notify subscribers only when ``advance_activated_route`` finds a shallow
difference. ``RouterState(root_node, snapshot)`` is the tree of handles.

``create_router_state(future, prev_state, should_reuse)`` builds the next live
tree, reusing a previous handle whenever ``should_reuse(future_snapshot,
prev_snapshot)`` holds (default: the two snapshots matched the very same
``Route`` object). Reused handles get ``_future_snapshot`` set; fresh handles
are created from the snapshot values.

Inheritance
-----------
``get_inherited(route, parent, strategy)`` merges a parent's params and data
into ``route``. Inheritance applies when the strategy is ``"inherit-always"``,
when ``route`` has an empty path, or when ``parent`` is componentless; the
default strategy ``"inherit-until-component-boundary"`` thus stops at the
first ancestor that both has a path and owns a component. The ``resolve``
field of the result is the value ``data`` takes after resolution: own data,
then the parent's data, then the route's static data, then resolved data.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, NamedTuple, Optional

from .config import Route
from .shared import PRIMARY_OUTLET, ParamMap, shallow_equal
from .tree import Tree, TreeNode
from .url_tree import UrlSegment, UrlSegmentGroup, UrlTree, equal_segments

__all__ = [
    "INHERIT_ALWAYS",
    "INHERIT_UNTIL_COMPONENT_BOUNDARY",
    "ActivatedRoute",
    "ActivatedRouteSnapshot",
    "BehaviorValue",
    "Inherited",
    "RouterState",
    "RouterStateSnapshot",
    "advance_activated_route",
    "create_empty_state",
    "create_router_state",
    "equal_params_and_url_segments",
    "get_inherited",
]

INHERIT_ALWAYS = "inherit-always"
INHERIT_UNTIL_COMPONENT_BOUNDARY = "inherit-until-component-boundary"


class BehaviorValue:
    """Current value plus listeners notified on every ``next``."""

    __slots__ = ("_value", "_listeners")

    def __init__(self, value: Any):
        self._value = value
        self._listeners: List[Callable[[Any], None]] = []

    @property
    def value(self) -> Any:
        return self._value

    def next(self, value: Any) -> None:
        self._value = value
        for listener in list(self._listeners):
            listener(value)

    def subscribe(self, listener: Callable[[Any], None]) -> Callable[[], None]:
        self._listeners.append(listener)
        listener(self._value)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def __repr__(self) -> str:
        return f"BehaviorValue({self._value!r})"


class ActivatedRouteSnapshot:
    __slots__ = (
        "url",
        "params",
        "query_params",
        "fragment",
        "data",
        "outlet",
        "component",
        "route_config",
        "_url_segment",
        "_last_path_index",
        "_resolve",
        "_resolved_data",
        "_router_state",
    )

    def __init__(
        self,
        url: List[UrlSegment],
        params: Dict[str, Any],
        query_params: Dict[str, Any],
        fragment: Optional[str],
        data: Dict[str, Any],
        outlet: str,
        component: Any,
        route_config: Optional[Route],
        url_segment: UrlSegmentGroup,
        last_path_index: int,
        resolve: Dict[str, Any],
    ):
        self.url = url
        self.params = params
        self.query_params = query_params
        self.fragment = fragment
        self.data = data
        self.outlet = outlet
        self.component = component
        self.route_config = route_config
        self._url_segment = url_segment
        self._last_path_index = last_path_index
        self._resolve = resolve
        self._resolved_data: Dict[str, Any] = {}
        self._router_state: Optional[RouterStateSnapshot] = None

    @property
    def root(self) -> "ActivatedRouteSnapshot":
        return self._router_state.root

    @property
    def parent(self) -> Optional["ActivatedRouteSnapshot"]:
        return self._router_state.parent(self) if self._router_state else None

    @property
    def first_child(self) -> Optional["ActivatedRouteSnapshot"]:
        return self._router_state.first_child(self) if self._router_state else None

    @property
    def children(self) -> List["ActivatedRouteSnapshot"]:
        return self._router_state.children(self) if self._router_state else []

    @property
    def path_from_root(self) -> List["ActivatedRouteSnapshot"]:
        return self._router_state.path_from_root(self) if self._router_state else [self]

    @property
    def param_map(self) -> ParamMap:
        return ParamMap(self.params)

    @property
    def query_param_map(self) -> ParamMap:
        return ParamMap(self.query_params)

    def __repr__(self) -> str:
        url = "/".join(str(segment) for segment in self.url)
        matched = self.route_config.path if self.route_config is not None else ""
        return f"Route(url:'{url}', path:'{matched}')"


class RouterStateSnapshot(Tree[ActivatedRouteSnapshot]):
    __slots__ = ("url",)

    def __init__(self, url: str, root: TreeNode[ActivatedRouteSnapshot]):
        super().__init__(root)
        self.url = url
        for value in self.values():
            value._router_state = self

    def __repr__(self) -> str:
        return _serialize_node(self.root_node)


def _serialize_node(node: TreeNode[Any]) -> str:
    children = ""
    if node.children:
        children = f" {{ {', '.join(_serialize_node(child) for child in node.children)} }} "
    return f"{node.value!r}{children}"


class ActivatedRoute:
    __slots__ = (
        "url",
        "params",
        "query_params",
        "fragment",
        "data",
        "outlet",
        "component",
        "snapshot",
        "_future_snapshot",
        "_router_state",
    )

    def __init__(
        self,
        url: BehaviorValue,
        params: BehaviorValue,
        query_params: BehaviorValue,
        fragment: BehaviorValue,
        data: BehaviorValue,
        outlet: str,
        component: Any,
        future_snapshot: ActivatedRouteSnapshot,
    ):
        self.url = url
        self.params = params
        self.query_params = query_params
        self.fragment = fragment
        self.data = data
        self.outlet = outlet
        self.component = component
        self.snapshot: Optional[ActivatedRouteSnapshot] = None
        self._future_snapshot = future_snapshot
        self._router_state: Optional[RouterState] = None

    @property
    def route_config(self) -> Optional[Route]:
        return self._future_snapshot.route_config

    @property
    def root(self) -> "ActivatedRoute":
        return self._router_state.root

    @property
    def parent(self) -> Optional["ActivatedRoute"]:
        return self._router_state.parent(self) if self._router_state else None

    @property
    def first_child(self) -> Optional["ActivatedRoute"]:
        return self._router_state.first_child(self) if self._router_state else None

    @property
    def children(self) -> List["ActivatedRoute"]:
        return self._router_state.children(self) if self._router_state else []

    @property
    def path_from_root(self) -> List["ActivatedRoute"]:
        return self._router_state.path_from_root(self) if self._router_state else [self]

    @property
    def param_map(self) -> ParamMap:
        return ParamMap(self.params.value)

    def __repr__(self) -> str:
        if self.snapshot is not None:
            return repr(self.snapshot)
        return f"Future({self._future_snapshot!r})"


class RouterState(Tree[ActivatedRoute]):
    __slots__ = ("snapshot",)

    def __init__(self, root: TreeNode[ActivatedRoute], snapshot: RouterStateSnapshot):
        super().__init__(root)
        self.snapshot = snapshot
        for value in self.values():
            value._router_state = self

    def __repr__(self) -> str:
        return repr(self.snapshot)


def create_empty_state(url_tree: UrlTree, root_component: Any) -> RouterState:
    snapshot = create_empty_state_snapshot(url_tree, root_component)
    activated = ActivatedRoute(
        BehaviorValue([UrlSegment("", {})]),
        BehaviorValue({}),
        BehaviorValue({}),
        BehaviorValue(""),
        BehaviorValue({}),
        PRIMARY_OUTLET,
        root_component,
        snapshot.root,
    )
    activated.snapshot = snapshot.root
    return RouterState(TreeNode(activated, []), snapshot)


def create_empty_state_snapshot(url_tree: UrlTree, root_component: Any) -> RouterStateSnapshot:
    activated = ActivatedRouteSnapshot(
        [], {}, {}, "", {}, PRIMARY_OUTLET, root_component, None, url_tree.root, -1, {}
    )
    return RouterStateSnapshot("", TreeNode(activated, []))


# ----------------------------------------------------------------------
# Inheritance
# ----------------------------------------------------------------------
class Inherited(NamedTuple):
    params: Dict[str, Any]
    data: Dict[str, Any]
    resolve: Dict[str, Any]


def get_inherited(
    route: ActivatedRouteSnapshot,
    parent: Optional[ActivatedRouteSnapshot],
    strategy: str = INHERIT_UNTIL_COMPONENT_BOUNDARY,
) -> Inherited:
    config = route.route_config
    inherits = parent is not None and (
        strategy == INHERIT_ALWAYS
        or (config is not None and config.path == "")
        or not parent.component
    )
    if inherits:
        return Inherited(
            params={**parent.params, **route.params},
            data={**parent.data, **route.data},
            resolve={
                **route.data,
                **parent.data,
                **(config.data if config is not None else {}),
                **route._resolved_data,
            },
        )
    return Inherited(
        params=dict(route.params),
        data=dict(route.data),
        resolve={**route.data, **(route._resolved_data or {})},
    )


# ----------------------------------------------------------------------
# Live tree maintenance
# ----------------------------------------------------------------------
def equal_params_and_url_segments(
    a: ActivatedRouteSnapshot, b: ActivatedRouteSnapshot
) -> bool:
    equal_url_params = shallow_equal(a.params, b.params) and equal_segments(a.url, b.url)
    a_parent, b_parent = a.parent, b.parent
    parents_mismatch = (a_parent is None) != (b_parent is None)
    return (
        equal_url_params
        and not parents_mismatch
        and (a_parent is None or equal_params_and_url_segments(a_parent, b_parent))
    )


def advance_activated_route(route: ActivatedRoute) -> None:
    """Point ``route`` at its future snapshot, notifying changed fields only."""
    if route.snapshot is not None:
        current = route.snapshot
        future = route._future_snapshot
        route.snapshot = future
        if not shallow_equal(current.query_params, future.query_params):
            route.query_params.next(future.query_params)
        if current.fragment != future.fragment:
            route.fragment.next(future.fragment)
        if not shallow_equal(current.params, future.params):
            route.params.next(future.params)
        if not equal_segments(current.url, future.url):
            route.url.next(future.url)
        if not shallow_equal(current.data, future.data):
            route.data.next(future.data)
    else:
        route.snapshot = route._future_snapshot
        route.data.next(route._future_snapshot.data)


def default_should_reuse(
    future: ActivatedRouteSnapshot, current: ActivatedRouteSnapshot
) -> bool:
    return future.route_config is current.route_config


def create_router_state(
    future: RouterStateSnapshot,
    prev_state: Optional[RouterState],
    should_reuse: Callable[[ActivatedRouteSnapshot, ActivatedRouteSnapshot], bool] = default_should_reuse,
) -> RouterState:
    prev_root = prev_state.root_node if prev_state is not None else None
    root = _create_node(should_reuse, future.root_node, prev_root)
    return RouterState(root, future)


def _create_node(
    should_reuse: Callable[[ActivatedRouteSnapshot, ActivatedRouteSnapshot], bool],
    current: TreeNode[ActivatedRouteSnapshot],
    prev: Optional[TreeNode[ActivatedRoute]] = None,
) -> TreeNode[ActivatedRoute]:
    if prev is not None and should_reuse(current.value, prev.value.snapshot):
        value = prev.value
        value._future_snapshot = current.value
        children = _create_or_reuse_children(should_reuse, current, prev)
        return TreeNode(value, children)
    value = _create_activated_route(current.value)
    children = [_create_node(should_reuse, child) for child in current.children]
    return TreeNode(value, children)


def _create_or_reuse_children(
    should_reuse: Callable[[ActivatedRouteSnapshot, ActivatedRouteSnapshot], bool],
    current: TreeNode[ActivatedRouteSnapshot],
    prev: TreeNode[ActivatedRoute],
) -> List[TreeNode[ActivatedRoute]]:
    children = []
    for child in current.children:
        for candidate in prev.children:
            if should_reuse(child.value, candidate.value.snapshot):
                children.append(_create_node(should_reuse, child, candidate))
                break
        else:
            children.append(_create_node(should_reuse, child))
    return children


def _create_activated_route(snapshot: ActivatedRouteSnapshot) -> ActivatedRoute:
    return ActivatedRoute(
        BehaviorValue(snapshot.url),
        BehaviorValue(snapshot.params),
        BehaviorValue(snapshot.query_params),
        BehaviorValue(snapshot.fragment),
        BehaviorValue(snapshot.data),
        snapshot.outlet,
        snapshot.component,
        snapshot,
    )
