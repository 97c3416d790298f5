"""Data resolution for the nodes that passed their entry checks.

Every entry-checked node runs its ``resolve`` map: all keys concurrently, each
key settling on the first value its resolver produces. The node's
``_resolved_data`` becomes the key/value map and its ``data`` is recomputed as
the inherited merge. Descendants of an entry-checked node that run no
resolvers of their own get their ``data`` recomputed too, so inherited values
stay consistent. Nodes are processed parents first.

A resolver that completes without producing a value starves the navigation:
the remaining keys of that node are cancelled and ``resolve_data`` returns
``False``. Resolver exceptions propagate.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, List

from ._scheduling import NO_VALUE
from .pre_activation import Checks
from .router_state import (
    INHERIT_UNTIL_COMPONENT_BOUNDARY,
    ActivatedRouteSnapshot,
    RouterStateSnapshot,
    get_inherited,
)

__all__ = ["resolve_data"]

Invoke = Callable[..., Awaitable[Any]]


async def resolve_data(
    checks: Checks,
    future_state: RouterStateSnapshot,
    invoke: Invoke,
    strategy: str = INHERIT_UNTIL_COMPONENT_BOUNDARY,
) -> bool:
    with_resolvers = [check.route for check in checks.can_activate_checks]
    if not with_resolvers:
        return True
    to_run = {id(route) for route in with_resolvers}

    needing_update: Dict[int, ActivatedRouteSnapshot] = {}
    for route in with_resolvers:
        if id(route) in needing_update:
            continue
        for node in _flatten(route):
            needing_update.setdefault(id(node), node)

    for key, route in needing_update.items():
        if key in to_run:
            resolved = await _run_resolve(route, future_state, invoke)
            if resolved is NO_VALUE:
                return False
            route._resolved_data = resolved
        route.data = get_inherited(route, route.parent, strategy).resolve
    return True


def _flatten(route: ActivatedRouteSnapshot) -> List[ActivatedRouteSnapshot]:
    nodes = [route]
    for child in route.children:
        nodes.extend(_flatten(child))
    return nodes


async def _run_resolve(
    route: ActivatedRouteSnapshot, future_state: RouterStateSnapshot, invoke: Invoke
) -> Any:
    resolve = route._resolve or {}
    if not resolve:
        return {}
    tasks = {
        key: asyncio.ensure_future(invoke("resolve", token, route, route, future_state))
        for key, token in resolve.items()
    }
    try:
        pending = set(tasks.values())
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                error = task.exception()
                if error is not None:
                    raise error
                if task.result() is NO_VALUE:
                    return NO_VALUE
        return {key: task.result() for key, task in tasks.items()}
    finally:
        for task in tasks.values():
            if not task.done():
                task.cancel()
