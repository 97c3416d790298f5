"""Guard executor (source of truth).

``run_guards(checks, future_state, current_state, invoke, forward_event)``
returns ``True`` when navigation may proceed, ``False`` (or any other
non-``True`` verdict, such as a ``UrlTree`` redirect) when a guard rejected
it. Exceptions raised by guards propagate unchanged.

``invoke(kind, token, scope_snapshot, *args)`` is the capability collaborator:
it resolves ``token`` in the scope of ``scope_snapshot`` and awaits the first
value of the call.

Ordering
--------
1. Both lists empty: ``True`` without calling anything.
2. Exit checks run concurrently, and so do the guards within one check. The
   first non-``True`` verdict to settle fails the phase.
3. Entry checks run only if every exit check allowed. They run one at a time
   in declared order. For each check, ``ChildActivationStart`` is emitted for
   the parent and ``ActivationStart`` for the node. Then the
   ``can_activate_child`` guards of every strict ancestor (nearest first,
   levels without guards skipped) and the node's own ``can_activate`` guards
   are evaluated concurrently. The first failing check stops the phase.

Within one list of guards the verdict is the prioritized value: the first
non-``True`` result in declaration order once all earlier guards allowed.
Entry and child guards resolve in the target node's scope; exit guards in the
leaving node's scope; child guards in the declaring ancestor's scope.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, List, Optional

from ._scheduling import first_non_true, prioritized_guard_value
from .events import ActivationStart, ChildActivationStart
from .pre_activation import CanActivate, CanDeactivate, Checks, get_can_activate_child
from .router_state import ActivatedRouteSnapshot, RouterStateSnapshot

__all__ = ["run_guards"]

Invoke = Callable[..., Awaitable[Any]]
ForwardEvent = Callable[[Any], None]


async def run_guards(
    checks: Checks,
    future_state: RouterStateSnapshot,
    current_state: Optional[RouterStateSnapshot],
    invoke: Invoke,
    forward_event: Optional[ForwardEvent] = None,
) -> Any:
    if checks.is_empty:
        return True
    can_deactivate = await _run_can_deactivate_checks(
        checks.can_deactivate_checks, future_state, current_state, invoke
    )
    if can_deactivate is not True:
        return can_deactivate
    return await _run_can_activate_checks(
        future_state, checks.can_activate_checks, invoke, forward_event
    )


async def _run_can_deactivate_checks(
    checks: List[CanDeactivate],
    future_state: RouterStateSnapshot,
    current_state: Optional[RouterStateSnapshot],
    invoke: Invoke,
) -> Any:
    return await first_non_true(
        [
            _bind(_run_can_deactivate, check.component, check.route, current_state, future_state, invoke)
            for check in checks
        ]
    )


async def _run_can_activate_checks(
    future_state: RouterStateSnapshot,
    checks: List[CanActivate],
    invoke: Invoke,
    forward_event: Optional[ForwardEvent],
) -> Any:
    for check in checks:
        _fire_child_activation_start(check.route.parent, forward_event)
        _fire_activation_start(check.route, forward_event)
        result = await prioritized_guard_value(
            [
                _bind(_run_can_activate_child, future_state, check.path, invoke),
                _bind(_run_can_activate, future_state, check.route, invoke),
            ]
        )
        if result is not True:
            return result
    return True


def _bind(func: Callable[..., Awaitable[Any]], *args: Any) -> Callable[[], Awaitable[Any]]:
    def call() -> Awaitable[Any]:
        return func(*args)

    return call


def _fire_activation_start(
    snapshot: Optional[ActivatedRouteSnapshot], forward_event: Optional[ForwardEvent]
) -> None:
    if snapshot is not None and forward_event is not None:
        forward_event(ActivationStart(snapshot))


def _fire_child_activation_start(
    snapshot: Optional[ActivatedRouteSnapshot], forward_event: Optional[ForwardEvent]
) -> None:
    if snapshot is not None and forward_event is not None:
        forward_event(ChildActivationStart(snapshot))


async def _run_can_activate(
    future_state: RouterStateSnapshot, future: ActivatedRouteSnapshot, invoke: Invoke
) -> Any:
    config = future.route_config
    guards = config.can_activate if config is not None else None
    if not guards:
        return True
    return await prioritized_guard_value(
        [_bind(invoke, "can_activate", token, future, future, future_state) for token in guards]
    )


async def _run_can_activate_child(
    future_state: RouterStateSnapshot, path: List[ActivatedRouteSnapshot], invoke: Invoke
) -> Any:
    target = path[-1]
    levels = [
        level
        for level in (get_can_activate_child(node) for node in reversed(path[:-1]))
        if level is not None
    ]
    if not levels:
        return True

    def level_call(level):
        return _bind(
            prioritized_guard_value,
            [
                _bind(invoke, "can_activate_child", token, level.node, target, future_state)
                for token in level.guards
            ],
        )

    return await prioritized_guard_value([level_call(level) for level in levels])


async def _run_can_deactivate(
    component: Any,
    current: ActivatedRouteSnapshot,
    current_state: Optional[RouterStateSnapshot],
    future_state: RouterStateSnapshot,
    invoke: Invoke,
) -> Any:
    config = current.route_config if current is not None else None
    guards = config.can_deactivate if config is not None else None
    if not guards:
        return True
    return await prioritized_guard_value(
        [
            _bind(invoke, "can_deactivate", token, current, component, current, current_state, future_state)
            for token in guards
        ]
    )
