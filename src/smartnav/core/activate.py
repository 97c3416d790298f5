"""Commit a new live router state into the outlet contexts."""

from __future__ import annotations

from typing import Any, Callable, Optional

from .events import ActivationEnd, ChildActivationEnd
from .outlet import ChildrenOutletContexts, Outlet
from .router_state import ActivatedRoute, RouterState, advance_activated_route
from .tree import TreeNode, node_children_as_map

__all__ = ["ActivateRoutes"]


class ActivateRoutes:
    """Deactivate what left, advance every live handle, mount what arrived.

    Deactivation runs first over the whole tree, then the root handle is
    advanced, then activation walks the tree top-down emitting
    ``ActivationEnd`` for every child and ``ChildActivationEnd`` for every
    parent with children. Outlets missing from a context are created on the
    fly, so the headless router still records mounted components.
    """

    __slots__ = ("future_state", "curr_state", "forward_event")

    def __init__(
        self,
        future_state: RouterState,
        curr_state: Optional[RouterState],
        forward_event: Callable[[Any], None],
    ):
        self.future_state = future_state
        self.curr_state = curr_state
        self.forward_event = forward_event

    def activate(self, parent_contexts: ChildrenOutletContexts) -> None:
        future_root = self.future_state.root_node
        curr_root = self.curr_state.root_node if self.curr_state is not None else None
        self._deactivate_child_routes(future_root, curr_root, parent_contexts)
        advance_activated_route(self.future_state.root)
        self._activate_child_routes(future_root, curr_root, parent_contexts)

    # deactivation -------------------------------------------------------
    def _deactivate_child_routes(
        self,
        future_node: TreeNode[ActivatedRoute],
        curr_node: Optional[TreeNode[ActivatedRoute]],
        contexts: ChildrenOutletContexts,
    ) -> None:
        children = node_children_as_map(curr_node)
        for future_child in future_node.children:
            outlet_name = future_child.value.outlet
            self._deactivate_routes(future_child, children.pop(outlet_name, None), contexts)
        for child in children.values():
            self._deactivate_route_and_outlet(child, contexts)

    def _deactivate_routes(
        self,
        future_node: TreeNode[ActivatedRoute],
        curr_node: Optional[TreeNode[ActivatedRoute]],
        parent_contexts: ChildrenOutletContexts,
    ) -> None:
        future = future_node.value
        curr = curr_node.value if curr_node is not None else None
        if future is curr:
            if future.component:
                context = parent_contexts.get_context(future.outlet)
                if context is not None:
                    self._deactivate_child_routes(future_node, curr_node, context.children)
            else:
                self._deactivate_child_routes(future_node, curr_node, parent_contexts)
        elif curr is not None:
            self._deactivate_route_and_outlet(curr_node, parent_contexts)

    def _deactivate_route_and_outlet(
        self, route: TreeNode[ActivatedRoute], parent_contexts: ChildrenOutletContexts
    ) -> None:
        context = parent_contexts.get_context(route.value.outlet)
        contexts = context.children if context is not None and route.value.component else parent_contexts
        for child in node_children_as_map(route).values():
            self._deactivate_route_and_outlet(child, contexts)
        if context is not None:
            if context.outlet is not None:
                context.outlet.deactivate()
                context.children.on_outlet_deactivated()
            context.route = None

    # activation ---------------------------------------------------------
    def _activate_child_routes(
        self,
        future_node: TreeNode[ActivatedRoute],
        curr_node: Optional[TreeNode[ActivatedRoute]],
        contexts: ChildrenOutletContexts,
    ) -> None:
        children = node_children_as_map(curr_node)
        for child in future_node.children:
            self._activate_routes(child, children.get(child.value.outlet), contexts)
            self.forward_event(ActivationEnd(child.value.snapshot))
        if future_node.children:
            self.forward_event(ChildActivationEnd(future_node.value.snapshot))

    def _activate_routes(
        self,
        future_node: TreeNode[ActivatedRoute],
        curr_node: Optional[TreeNode[ActivatedRoute]],
        parent_contexts: ChildrenOutletContexts,
    ) -> None:
        future = future_node.value
        curr = curr_node.value if curr_node is not None else None
        advance_activated_route(future)

        if future is curr:
            if future.component:
                context = parent_contexts.get_or_create_context(future.outlet)
                self._activate_child_routes(future_node, curr_node, context.children)
            else:
                self._activate_child_routes(future_node, curr_node, parent_contexts)
            return

        if future.component:
            context = parent_contexts.get_or_create_context(future.outlet)
            if context.outlet is None:
                parent_contexts.on_child_outlet_created(future.outlet, Outlet(future.outlet))
            context.route = future
            context.outlet.activate_with(future)
            self._activate_child_routes(future_node, None, context.children)
        else:
            self._activate_child_routes(future_node, None, parent_contexts)
