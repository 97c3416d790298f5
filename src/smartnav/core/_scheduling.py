"""Async primitives shared by the guard and resolver phases.

Guard and resolver implementations may return a plain value, an awaitable, or
an async iterator. ``first_value`` reduces any of them to the first value
produced; an async iterator that finishes without producing anything yields
``NO_VALUE``. One that never produces keeps the caller pending.

``prioritized_guard_value`` runs a list of guard calls concurrently and
returns the verdict of the first call, in declaration order, whose result is
not ``True``, but only once every earlier call has resolved to ``True``. An
exception from any call propagates at once. Leftover tasks are cancelled.

``first_non_true`` runs calls concurrently and returns the first non-``True``
result in completion order, or ``True`` when all of them allow.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, List, Sequence

__all__ = ["NO_VALUE", "first_value", "first_non_true", "prioritized_guard_value"]


class _NoValue:
    __slots__ = ()

    def __repr__(self) -> str:
        return "NO_VALUE"

    def __bool__(self) -> bool:
        return False


NO_VALUE = _NoValue()

_PENDING = object()

GuardCall = Callable[[], Awaitable[Any]]


async def first_value(result: Any) -> Any:
    if inspect.isawaitable(result):
        result = await result
    if hasattr(result, "__anext__"):
        try:
            return await result.__anext__()
        except StopAsyncIteration:
            return NO_VALUE
        finally:
            aclose = getattr(result, "aclose", None)
            if aclose is not None:
                await aclose()
    if hasattr(result, "__aiter__"):
        return await first_value(result.__aiter__())
    return result


def _cancel_pending(tasks: Sequence["asyncio.Future[Any]"]) -> None:
    for task in tasks:
        if not task.done():
            task.cancel()


def _leading_verdict(tasks: Sequence["asyncio.Future[Any]"]) -> Any:
    for task in tasks:
        if not task.done():
            return _PENDING
        result = task.result()
        if result is not True:
            return result
    return True


async def prioritized_guard_value(calls: Sequence[GuardCall]) -> Any:
    if not calls:
        return True
    tasks: List["asyncio.Future[Any]"] = [asyncio.ensure_future(call()) for call in calls]
    try:
        pending = set(tasks)
        while True:
            verdict = _leading_verdict(tasks)
            if verdict is not _PENDING:
                return verdict
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                error = task.exception()
                if error is not None:
                    raise error
    finally:
        _cancel_pending(tasks)


async def first_non_true(calls: Sequence[GuardCall]) -> Any:
    if not calls:
        return True
    tasks: List["asyncio.Future[Any]"] = [asyncio.ensure_future(call()) for call in calls]
    try:
        for next_done in asyncio.as_completed(tasks):
            result = await next_done
            if result is not True:
                return result
        return True
    finally:
        _cancel_pending(tasks)
