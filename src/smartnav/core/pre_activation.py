"""State diff between the current and the candidate snapshot trees.

``get_all_route_guards(future, current, contexts)`` walks both trees in
parallel, pairing children by outlet name, and returns ``Checks``:

- a pair matching the very same ``Route`` object is reused; its
  ``run_guards_and_resolvers`` policy decides whether an entry check (and a
  matching exit check) is still needed. When it is not, the future node takes
  the previous node's ``data`` and ``_resolved_data`` as they are;
- any other pair exit-checks the whole previous subtree and entry-checks the
  future node as a fresh activation;
- previous children without a future counterpart are exit-checked with their
  whole subtree.

Recursion crosses into a child outlet level only below nodes that own a
component; componentless nodes keep the same contexts. Exit checks are
appended after their children (deepest first); entry checks are appended
before their children and carry the full path from the root.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Union

from .outlet import ChildrenOutletContexts, OutletContext
from .router_state import (
    ActivatedRouteSnapshot,
    RouterStateSnapshot,
    equal_params_and_url_segments,
)
from .shared import shallow_equal
from .tree import TreeNode, node_children_as_map
from .url_tree import equal_path

__all__ = [
    "CanActivate",
    "CanDeactivate",
    "Checks",
    "get_all_route_guards",
    "get_can_activate_child",
    "should_run_guards_and_resolvers",
]

Mode = Union[str, Callable[[ActivatedRouteSnapshot, ActivatedRouteSnapshot], bool], None]


class CanActivate:
    """Entry check: ``path`` runs from the root to ``route``."""

    __slots__ = ("path", "route")

    def __init__(self, path: List[ActivatedRouteSnapshot]):
        self.path = path
        self.route = path[-1]

    def __repr__(self) -> str:
        return f"CanActivate({self.route!r})"


class CanDeactivate:
    """Exit check: the mounted component (or None) and the leaving snapshot."""

    __slots__ = ("component", "route")

    def __init__(self, component: Any, route: ActivatedRouteSnapshot):
        self.component = component
        self.route = route

    def __repr__(self) -> str:
        return f"CanDeactivate({self.route!r})"


@dataclass
class Checks:
    can_activate_checks: List[CanActivate] = field(default_factory=list)
    can_deactivate_checks: List[CanDeactivate] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.can_activate_checks and not self.can_deactivate_checks


@dataclass
class CanActivateChildGuards:
    node: ActivatedRouteSnapshot
    guards: List[Any]


def get_can_activate_child(snapshot: ActivatedRouteSnapshot) -> Optional[CanActivateChildGuards]:
    config = snapshot.route_config
    guards = config.can_activate_child if config is not None else None
    if not guards:
        return None
    return CanActivateChildGuards(snapshot, list(guards))


def get_all_route_guards(
    future: RouterStateSnapshot,
    current: Optional[RouterStateSnapshot],
    parent_contexts: Optional[ChildrenOutletContexts],
) -> Checks:
    future_root = future.root_node
    current_root = current.root_node if current is not None else None
    return _get_child_route_guards(
        future_root, current_root, parent_contexts, [future_root.value], Checks()
    )


def _get_child_route_guards(
    future_node: TreeNode[ActivatedRouteSnapshot],
    current_node: Optional[TreeNode[ActivatedRouteSnapshot]],
    contexts: Optional[ChildrenOutletContexts],
    future_path: List[ActivatedRouteSnapshot],
    checks: Checks,
) -> Checks:
    prev_children = node_children_as_map(current_node)
    for child in future_node.children:
        _get_route_guards(
            child,
            prev_children.pop(child.value.outlet, None),
            contexts,
            future_path + [child.value],
            checks,
        )
    for outlet_name, node in prev_children.items():
        context = contexts.get_context(outlet_name) if contexts is not None else None
        _deactivate_route_and_its_children(node, context, checks)
    return checks


def _get_route_guards(
    future_node: TreeNode[ActivatedRouteSnapshot],
    current_node: Optional[TreeNode[ActivatedRouteSnapshot]],
    parent_contexts: Optional[ChildrenOutletContexts],
    future_path: List[ActivatedRouteSnapshot],
    checks: Checks,
) -> None:
    future = future_node.value
    current = current_node.value if current_node is not None else None
    context = (
        parent_contexts.get_context(future.outlet) if parent_contexts is not None else None
    )

    if current is not None and future.route_config is current.route_config:
        should_run = should_run_guards_and_resolvers(
            current, future, future.route_config.run_guards_and_resolvers
        )
        if should_run:
            checks.can_activate_checks.append(CanActivate(future_path))
        else:
            future.data = current.data
            future._resolved_data = current._resolved_data

        if future.component:
            _get_child_route_guards(
                future_node,
                current_node,
                context.children if context is not None else None,
                future_path,
                checks,
            )
        else:
            _get_child_route_guards(
                future_node, current_node, parent_contexts, future_path, checks
            )

        if should_run and context is not None and context.outlet is not None and context.outlet.is_activated:
            checks.can_deactivate_checks.append(
                CanDeactivate(context.outlet.component, current)
            )
        elif should_run:
            checks.can_deactivate_checks.append(CanDeactivate(None, current))
        return

    if current is not None:
        _deactivate_route_and_its_children(current_node, context, checks)
    checks.can_activate_checks.append(CanActivate(future_path))
    if future.component:
        _get_child_route_guards(
            future_node,
            None,
            context.children if context is not None else None,
            future_path,
            checks,
        )
    else:
        _get_child_route_guards(future_node, None, parent_contexts, future_path, checks)


def should_run_guards_and_resolvers(
    current: ActivatedRouteSnapshot, future: ActivatedRouteSnapshot, mode: Mode
) -> bool:
    if callable(mode):
        return bool(mode(current, future))
    if mode == "path-params-change":
        return not equal_path(current.url, future.url)
    if mode == "path-params-or-query-change":
        return not equal_path(current.url, future.url) or not shallow_equal(
            current.query_params, future.query_params
        )
    if mode == "always":
        return True
    if mode == "params-or-query-change":
        return not equal_params_and_url_segments(current, future) or not shallow_equal(
            current.query_params, future.query_params
        )
    return not equal_params_and_url_segments(current, future)


def _deactivate_route_and_its_children(
    node: TreeNode[ActivatedRouteSnapshot],
    context: Optional[OutletContext],
    checks: Checks,
) -> None:
    children = node_children_as_map(node)
    route = node.value
    for child_name, child in children.items():
        if not route.component:
            _deactivate_route_and_its_children(child, context, checks)
        elif context is not None:
            _deactivate_route_and_its_children(
                child, context.children.get_context(child_name), checks
            )
        else:
            _deactivate_route_and_its_children(child, None, checks)

    if not route.component:
        checks.can_deactivate_checks.append(CanDeactivate(None, route))
    elif context is not None and context.outlet is not None and context.outlet.is_activated:
        checks.can_deactivate_checks.append(CanDeactivate(context.outlet.component, route))
    else:
        checks.can_deactivate_checks.append(CanDeactivate(None, route))
