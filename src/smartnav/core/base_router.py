"""Plugin-free navigation runtime (source of truth).

If this file vanished, rebuild it from this description. The module exposes
:class:`BaseRouter`, which turns navigation requests into committed router
states, and :class:`NavigationTransition`, the record of one attempt.
``Router`` (``smartnav.core.router``) adds the plugin pipeline on top.

Constructor and state
---------------------
Constructor signature::

    BaseRouter(routes=None, *, root_component=None, location=None,
               serializer=None, scope=None, options=None, should_reuse=None,
               **overrides)

- ``routes`` is validated with ``validate_config`` and stored as ``config``.
- ``options`` is a ``RouterOptions``; keyword ``overrides`` are validated into
  one (or merged over the given one).
- ``location`` defaults to a fresh ``MemoryLocation``; ``serializer`` to
  ``DefaultUrlSerializer``; ``scope`` is the root ``ProviderScope`` guards and
  resolvers fall back to.
- ``state_manager`` (``HistoryStateManager``) owns ``current_url_tree``,
  ``raw_url_tree`` and ``router_state``; ``root_contexts`` is the mounted
  outlet hierarchy.

Scheduling
----------
``navigate_by_url(url, **extras)`` and ``navigate(commands, **extras)`` return
an ``asyncio.Future`` settled with ``True`` (committed or skipped as same-URL),
``False`` (rejected, starved or superseded) or an exception. They must be
called with a running event loop.

Extras are merged over ``_extras_defaults`` through ``SmartOptions``:
``skip_location_change``, ``replace_url``, ``state``,
``on_same_url_navigation``, ``relative_to``, ``query_params``, ``fragment``,
``preserve_fragment``, ``query_params_handling``.

Scheduling a request, synchronously:

1. ``navigation_id`` is incremented and a ``NavigationTransition`` created.
2. An unsettled previous attempt is cancelled: ``NavigationCancel`` with
   ``SUPERSEDED_BY_NEW_NAVIGATION``, result ``False``, task cancelled.
3. Same-URL check. Unless the router never navigated, the target differs
   from ``current_url_tree`` or the location shows another URL, a request
   under ``"ignore"`` emits ``NavigationSkipped`` and settles ``True``.
4. ``NavigationStart`` is emitted and ``_run`` is started as a task.

``_run`` then goes through the phases, re-checking after every suspension
that the attempt is still the latest one:

recognize -> ``RoutesRecognized`` -> ``GuardsCheckStart`` -> guards ->
``GuardsCheckEnd`` -> ``ResolveStart`` -> resolvers -> ``ResolveEnd`` ->
``BeforeActivateRoutes`` (commit) -> activation -> ``NavigationEnd``.

Every phase event is emitted even when the phase has nothing to run.

Outcomes
--------
- Guard verdict ``False``: ``NavigationCancel(GUARD_REJECTED)``, result
  ``False``; the state manager restores the location.
- Guard verdict ``UrlTree``: ``NavigationCancel(REDIRECT)`` then a new
  attempt to that tree settling the same future.
- Resolver starvation: ``NavigationCancel(NO_DATA_FROM_RESOLVER)``, result
  ``False``.
- Any exception: ``options.navigation_error_handler`` may return a
  ``UrlTree`` to redirect; otherwise ``NavigationError`` is emitted and the
  future is rejected, or settled ``False`` when
  ``resolve_navigation_promise_on_error`` is set.

Capabilities
------------
Guards and resolvers are invoked through ``_invoke_capability(kind, token,
scope_snapshot, *args)``: the token is resolved in the closest scope of
``scope_snapshot`` (falling back to the root scope), a ``CapabilityEntry`` is
registered on first use (``_after_entry_registered`` hook; a ``plugin_config``
dict on the token seeds per-entry plugin options), the callable goes
through ``_wrap_handler`` (passthrough here) and the first value is taken.
A guard without a value raises ``EmptyGuardResultError``; a resolver returns
``NO_VALUE``.

Events
------
``_emit(event, transition)`` forwards every event to the state manager,
updates ``navigated`` and publishes public events through ``_publish``,
which feeds ``events`` (an ``EventStream``). ``BeforeActivateRoutes`` is
never published.

Other operations
----------------
``create_url_tree``, ``is_active(url, match_options=True)``,
``get_current_navigation()``, ``last_successful_navigation``, ``parse_url``
(malformed URLs go through ``malformed_uri_error_handler``, default ``"/"``),
``serialize_url``, ``url``, ``initial_navigation()``,
``set_up_location_change_listener()``, ``reset_config(routes)``,
``dispose()``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from smartseeds import SmartOptions
from smartseeds.typeutils import safe_is_instance

from smartnav.plugins._base_plugin import CapabilityEntry

from ._scheduling import NO_VALUE, first_value
from .activate import ActivateRoutes
from .check_guards import run_guards
from .config import Routes, validate_config
from .create_url_tree import create_segment_group_from_route, create_url_tree_from_segment_group
from .errors import (
    EmptyGuardResultError,
    InvalidCommandError,
    MalformedUrlError,
    NavigationCancelingError,
)
from .events import (
    BeforeActivateRoutes,
    EventStream,
    GuardsCheckEnd,
    GuardsCheckStart,
    NavigationCancel,
    NavigationCancellationCode,
    NavigationEnd,
    NavigationError,
    NavigationSkipped,
    NavigationSkippedCode,
    NavigationStart,
    ResolveEnd,
    ResolveStart,
    RoutesRecognized,
    is_public_event,
)
from .location import Location, MemoryLocation
from .options import RouterOptions
from .outlet import ChildrenOutletContexts
from .pre_activation import Checks, get_all_route_guards
from .recognize import recognize
from .resolve_data import resolve_data
from .router_state import (
    RouterState,
    RouterStateSnapshot,
    create_router_state,
    default_should_reuse,
)
from .scope import ProviderScope, capability_callable, get_closest_scope, resolve_token, token_name
from .state_manager import NAVIGATION_ID_KEY, ROUTER_PAGE_ID_KEY, HistoryStateManager
from .url_tree import (
    EXACT_MATCH_OPTIONS,
    SUBSET_MATCH_OPTIONS,
    DefaultUrlSerializer,
    IsActiveMatchOptions,
    UrlSerializer,
    UrlTree,
    contains_tree,
)

__all__ = ["BaseRouter", "NavigationTransition", "IMPERATIVE_NAVIGATION"]

logger = logging.getLogger("smartnav")

IMPERATIVE_NAVIGATION = "imperative"
POPSTATE_NAVIGATION = "popstate"


@dataclass(eq=False)
class NavigationTransition:
    """One navigation attempt, from request to outcome."""

    id: int
    trigger: str
    raw_url: UrlTree
    extracted_url: UrlTree
    current_url_tree: UrlTree
    current_snapshot: RouterStateSnapshot
    current_router_state: RouterState
    extras: Any
    result: "asyncio.Future[bool]"
    restored_state: Optional[dict] = None
    target_snapshot: Optional[RouterStateSnapshot] = None
    target_router_state: Optional[RouterState] = None
    final_url: Optional[UrlTree] = None
    guards: Checks = field(default_factory=Checks)
    guards_result: Any = None
    previous_navigation: Optional["NavigationTransition"] = None
    task: Optional["asyncio.Task[None]"] = None
    done: bool = False

    @property
    def initial_url(self) -> UrlTree:
        return self.raw_url

    @property
    def skip_location_change(self) -> bool:
        return bool(getattr(self.extras, "skip_location_change", False))

    @property
    def replace_url(self) -> bool:
        return bool(getattr(self.extras, "replace_url", False))

    @property
    def state(self) -> Optional[dict]:
        return getattr(self.extras, "state", None)

    def __repr__(self) -> str:
        return f"NavigationTransition(id={self.id}, url='{self.extracted_url}', trigger={self.trigger!r})"


class BaseRouter:
    """Plugin-free navigation engine.

    Responsibilities:
    - schedule navigation attempts and supersede stale ones
    - run recognition, guards, resolvers and activation in order
    - commit through the history state manager and publish events
    """

    __slots__ = (
        "config",
        "root_component",
        "location",
        "serializer",
        "options",
        "root_scope",
        "should_reuse",
        "events",
        "state_manager",
        "root_contexts",
        "navigation_id",
        "navigated",
        "last_successful_navigation",
        "_entries",
        "_extras_defaults",
        "_current_transition",
        "_current_navigation",
        "_location_subscription",
        "_has_requested_navigation",
        "_disposed",
    )

    def __init__(
        self,
        routes: Optional[Routes] = None,
        *,
        root_component: Any = None,
        location: Optional[Location] = None,
        serializer: Optional[UrlSerializer] = None,
        scope: Optional[ProviderScope] = None,
        options: Optional[RouterOptions] = None,
        should_reuse: Optional[Callable[[Any, Any], bool]] = None,
        **overrides: Any,
    ) -> None:
        if options is None:
            options = RouterOptions(**overrides)
        elif overrides:
            options = RouterOptions(**{**options.model_dump(), **overrides})
        self.options = options
        self.root_component = root_component
        self.location = location if location is not None else MemoryLocation()
        self.serializer = serializer if serializer is not None else DefaultUrlSerializer()
        self.root_scope = scope if scope is not None else ProviderScope(name="root")
        self.should_reuse = should_reuse or default_should_reuse
        self.events = EventStream()
        self.state_manager = HistoryStateManager(
            self.location,
            self.serializer,
            root_component=root_component,
            canceled_navigation_resolution=options.canceled_navigation_resolution,
            url_update_strategy=options.url_update_strategy,
        )
        self.root_contexts = ChildrenOutletContexts()
        self.navigation_id = 0
        self.navigated = False
        self.last_successful_navigation: Optional[NavigationTransition] = None
        self._entries: Dict[str, CapabilityEntry] = {}
        self._extras_defaults: Dict[str, Any] = {
            "skip_location_change": False,
            "replace_url": False,
            "state": None,
            "on_same_url_navigation": options.on_same_url_navigation,
            "query_params_handling": options.default_query_params_handling,
        }
        self._current_transition: Optional[NavigationTransition] = None
        self._current_navigation: Optional[NavigationTransition] = None
        self._location_subscription: Optional[Callable[[], None]] = None
        self._has_requested_navigation = False
        self._disposed = False
        self.config: Routes = []
        self.reset_config(list(routes or []))

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------
    @property
    def current_url_tree(self) -> UrlTree:
        return self.state_manager.current_url_tree

    @property
    def raw_url_tree(self) -> UrlTree:
        return self.state_manager.raw_url_tree

    @property
    def router_state(self) -> RouterState:
        return self.state_manager.router_state

    @property
    def url(self) -> str:
        return self.serialize_url(self.current_url_tree)

    @property
    def entries(self) -> tuple:
        return tuple(self._entries)

    def get_current_navigation(self) -> Optional[NavigationTransition]:
        return self._current_navigation

    def reset_config(self, routes: Routes) -> None:
        validate_config(routes)
        self.config = routes
        self.navigated = False

    # ------------------------------------------------------------------
    # URL helpers
    # ------------------------------------------------------------------
    def parse_url(self, url: str) -> UrlTree:
        try:
            return self.serializer.parse(url)
        except MalformedUrlError as error:
            handler = self.options.malformed_uri_error_handler
            if handler is not None:
                return handler(error, self.serializer, url)
            logger.warning("Malformed URL %r, navigating to '/' instead: %s", url, error)
            return self.serializer.parse("/")

    def serialize_url(self, url: UrlTree) -> str:
        return self.serializer.serialize(url)

    def create_url_tree(self, commands: List[Any], **extras: Any) -> UrlTree:
        opts = SmartOptions(_drop_none(extras), defaults=self._extras_defaults)
        relative_to = getattr(opts, "relative_to", None)
        query_params = getattr(opts, "query_params", None)
        handling = getattr(opts, "query_params_handling", None)
        if getattr(opts, "preserve_fragment", False):
            fragment = self.current_url_tree.fragment
        else:
            fragment = getattr(opts, "fragment", None)

        if handling == "merge":
            params: Optional[Dict[str, Any]] = {**self.current_url_tree.query_params, **(query_params or {})}
        elif handling == "preserve":
            params = dict(self.current_url_tree.query_params)
        else:
            params = query_params or None
        if params is not None:
            params = _drop_none(params)

        commands = list(commands)
        try:
            if relative_to is None:
                snapshot = self.router_state.snapshot.root
            elif safe_is_instance(relative_to, "smartnav.core.router_state.ActivatedRoute"):
                snapshot = relative_to.snapshot
            else:
                snapshot = relative_to
            group = create_segment_group_from_route(snapshot)
        except AttributeError:
            if not commands or not isinstance(commands[0], str) or not commands[0].startswith("/"):
                commands = []
            group = self.current_url_tree.root
        return create_url_tree_from_segment_group(group, commands, params, fragment)

    def is_active(
        self, url: Union[str, UrlTree], match_options: Union[bool, IsActiveMatchOptions] = True
    ) -> bool:
        if match_options is True:
            options = EXACT_MATCH_OPTIONS
        elif match_options is False:
            options = SUBSET_MATCH_OPTIONS
        else:
            options = match_options
        url_tree = url if isinstance(url, UrlTree) else self.parse_url(url)
        return contains_tree(self.current_url_tree, url_tree, options)

    # ------------------------------------------------------------------
    # Public navigation API
    # ------------------------------------------------------------------
    def navigate_by_url(self, url: Union[str, UrlTree], **extras: Any) -> "asyncio.Future[bool]":
        url_tree = url if isinstance(url, UrlTree) else self.parse_url(url)
        return self._schedule_navigation(url_tree, IMPERATIVE_NAVIGATION, None, extras)

    def navigate(self, commands: List[Any], **extras: Any) -> "asyncio.Future[bool]":
        for index, command in enumerate(commands):
            if command is None:
                raise InvalidCommandError(
                    f"The requested path contains {command} segment at index {index}"
                )
        return self.navigate_by_url(self.create_url_tree(commands, **extras), **extras)

    def initial_navigation(self) -> Optional["asyncio.Future[bool]"]:
        self.set_up_location_change_listener()
        if self._has_requested_navigation:
            return None
        return self._navigate_to_sync_with_browser(
            self.location.path(True), IMPERATIVE_NAVIGATION, self.state_manager.restored_state()
        )

    def set_up_location_change_listener(self) -> None:
        if self._location_subscription is None:
            self._location_subscription = self.state_manager.register_non_router_entry_change_listener(
                lambda url, state: self._navigate_to_sync_with_browser(url, POPSTATE_NAVIGATION, state)
            )

    def dispose(self) -> None:
        if self._location_subscription is not None:
            self._location_subscription()
            self._location_subscription = None
        transition = self._current_transition
        if transition is not None and not transition.done:
            self._settle(transition, False)
            if transition.task is not None:
                transition.task.cancel()
        self._disposed = True
        self.events.clear()

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def _navigate_to_sync_with_browser(
        self, url: str, trigger: str, state: Optional[dict]
    ) -> "asyncio.Future[bool]":
        extras: Dict[str, Any] = {"replace_url": True}
        restored_state = state if state and state.get(NAVIGATION_ID_KEY) else None
        if state:
            copy = {
                key: value
                for key, value in state.items()
                if key not in (NAVIGATION_ID_KEY, ROUTER_PAGE_ID_KEY)
            }
            if copy:
                extras["state"] = copy
        return self._schedule_navigation(self.parse_url(url), trigger, restored_state, extras)

    def _schedule_navigation(
        self,
        raw_url: UrlTree,
        trigger: str,
        restored_state: Optional[dict],
        extras: Dict[str, Any],
        result: Optional["asyncio.Future[bool]"] = None,
    ) -> "asyncio.Future[bool]":
        loop = asyncio.get_running_loop()
        if result is None:
            result = loop.create_future()
        if self._disposed:
            if not result.done():
                result.set_result(False)
            return result

        self._has_requested_navigation = True
        self.navigation_id += 1
        transition = NavigationTransition(
            id=self.navigation_id,
            trigger=trigger,
            raw_url=raw_url,
            extracted_url=raw_url,
            current_url_tree=self.current_url_tree,
            current_snapshot=self.router_state.snapshot,
            current_router_state=self.router_state,
            extras=SmartOptions(_drop_none(extras), defaults=self._extras_defaults),
            result=result,
            restored_state=restored_state,
            previous_navigation=self.last_successful_navigation,
        )

        previous = self._current_transition
        if previous is not None and not previous.done:
            self._cancel_transition(
                previous,
                f"Navigation ID {previous.id} is not equal to the current navigation id {transition.id}",
                NavigationCancellationCode.SUPERSEDED_BY_NEW_NAVIGATION,
            )
            if previous.task is not None:
                previous.task.cancel()

        self._current_transition = transition
        self._current_navigation = transition

        same_url_policy = getattr(transition.extras, "on_same_url_navigation", "ignore")
        if not self._is_url_transition(transition) and same_url_policy != "reload":
            self._emit(
                NavigationSkipped(
                    transition.id,
                    self.serialize_url(transition.raw_url),
                    f"Navigation to {self.serialize_url(transition.raw_url)} was ignored "
                    "because it is the same as the current Router URL.",
                    NavigationSkippedCode.IGNORED_SAME_URL_NAVIGATION,
                ),
                transition,
            )
            self._settle(transition, True)
            self._release(transition)
            return result

        self._emit(
            NavigationStart(
                transition.id,
                self.serialize_url(transition.extracted_url),
                trigger,
                restored_state,
            ),
            transition,
        )
        if self._is_current(transition):
            transition.task = loop.create_task(self._run(transition))
        return result

    def _is_url_transition(self, transition: NavigationTransition) -> bool:
        if not self.navigated:
            return True
        target = self.serialize_url(transition.extracted_url)
        if target != self.serialize_url(transition.current_url_tree):
            return True
        return not transition.skip_location_change and not self.location.is_current_path_equal_to(target)

    def _is_current(self, transition: NavigationTransition) -> bool:
        return transition.id == self.navigation_id and not transition.done

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------
    async def _run(self, t: NavigationTransition) -> None:
        try:
            await self._process(t)
        except NavigationCancelingError as error:
            self._on_canceling_error(t, error)
        except Exception as error:
            self._on_navigation_error(t, error)
        finally:
            self._release(t)

    async def _process(self, t: NavigationTransition) -> None:
        extracted = self.serialize_url(t.extracted_url)

        t.target_snapshot = recognize(
            self.root_component,
            self.config,
            t.extracted_url,
            extracted,
            self.options.params_inheritance_strategy,
        )
        t.final_url = t.extracted_url
        final = self.serialize_url(t.final_url)
        self._emit(RoutesRecognized(t.id, extracted, final, t.target_snapshot), t)
        if not self._is_current(t):
            return

        self._emit(GuardsCheckStart(t.id, extracted, final, t.target_snapshot), t)
        t.guards = get_all_route_guards(t.target_snapshot, t.current_snapshot, self.root_contexts)
        t.guards_result = await run_guards(
            t.guards,
            t.target_snapshot,
            t.current_snapshot,
            self._invoke_capability,
            lambda event: self._emit(event, t),
        )
        if not self._is_current(t):
            return
        if isinstance(t.guards_result, UrlTree):
            raise NavigationCancelingError(
                f'Redirecting to "{self.serialize_url(t.guards_result)}"',
                NavigationCancellationCode.REDIRECT,
                url=t.guards_result,
            )
        self._emit(
            GuardsCheckEnd(t.id, extracted, final, t.target_snapshot, t.guards_result is True), t
        )
        if t.guards_result is not True:
            self._cancel_transition(t, "", NavigationCancellationCode.GUARD_REJECTED)
            return

        self._emit(ResolveStart(t.id, extracted, final, t.target_snapshot), t)
        resolved = await resolve_data(
            t.guards,
            t.target_snapshot,
            self._invoke_capability,
            self.options.params_inheritance_strategy,
        )
        if not self._is_current(t):
            return
        if not resolved:
            self._cancel_transition(
                t,
                "At least one route resolver didn't emit any value.",
                NavigationCancellationCode.NO_DATA_FROM_RESOLVER,
            )
            return
        self._emit(ResolveEnd(t.id, extracted, final, t.target_snapshot), t)

        t.target_router_state = create_router_state(
            t.target_snapshot, t.current_router_state, self.should_reuse
        )
        self._emit(BeforeActivateRoutes(), t)
        ActivateRoutes(
            t.target_router_state, t.current_router_state, lambda event: self._emit(event, t)
        ).activate(self.root_contexts)
        if not self._is_current(t):
            return

        self.last_successful_navigation = t
        t.done = True
        self._emit(NavigationEnd(t.id, extracted, final), t)
        self._settle(t, True)

    def _on_canceling_error(self, t: NavigationTransition, error: NavigationCancelingError) -> None:
        self._emit(
            NavigationCancel(t.id, self.serialize_url(t.extracted_url), str(error), error.code), t
        )
        if error.url is None:
            self._settle(t, False)
            return
        self._redirect(t, error.url)

    def _on_navigation_error(self, t: NavigationTransition, error: Exception) -> None:
        url = self.serialize_url(t.extracted_url)
        navigation_error = NavigationError(t.id, url, error, t.target_snapshot)
        handler = self.options.navigation_error_handler
        try:
            outcome = handler(navigation_error) if handler is not None else None
            if isinstance(outcome, UrlTree):
                self._emit(
                    NavigationCancel(
                        t.id,
                        url,
                        f'Redirecting to "{self.serialize_url(outcome)}"',
                        NavigationCancellationCode.REDIRECT,
                    ),
                    t,
                )
                self._redirect(t, outcome)
                return
            self._emit(navigation_error, t)
            raise error
        except Exception as final_error:
            if self.options.resolve_navigation_promise_on_error:
                self._settle(t, False)
            else:
                logger.warning("Unhandled navigation error for %s: %r", url, final_error)
                t.done = True
                if not t.result.done():
                    t.result.set_exception(final_error)

    def _redirect(self, t: NavigationTransition, url: UrlTree) -> None:
        t.done = True
        extras = {
            "skip_location_change": t.skip_location_change,
            "replace_url": self.options.url_update_strategy == "eager"
            or t.trigger != IMPERATIVE_NAVIGATION,
        }
        self._schedule_navigation(url, IMPERATIVE_NAVIGATION, None, extras, result=t.result)

    def _cancel_transition(
        self, t: NavigationTransition, reason: str, code: NavigationCancellationCode
    ) -> None:
        self._emit(NavigationCancel(t.id, self.serialize_url(t.extracted_url), reason, code), t)
        self._settle(t, False)

    def _settle(self, t: NavigationTransition, value: bool) -> None:
        t.done = True
        if not t.result.done():
            t.result.set_result(value)

    def _release(self, t: NavigationTransition) -> None:
        if self._current_transition is t:
            self._current_transition = None
            self._current_navigation = None

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def _emit(self, event: Any, transition: NavigationTransition) -> None:
        self.state_manager.handle_router_event(event, transition)
        if isinstance(event, NavigationCancel) and event.code not in (
            NavigationCancellationCode.REDIRECT,
            NavigationCancellationCode.SUPERSEDED_BY_NEW_NAVIGATION,
        ):
            self.navigated = True
        elif isinstance(event, NavigationEnd):
            self.navigated = True
        if is_public_event(event):
            self._publish(event)

    def _publish(self, event: Any) -> None:
        self.events.emit(event)

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------
    async def _invoke_capability(self, kind: str, token: Any, scope_snapshot: Any, *args: Any) -> Any:
        implementation = resolve_token(token, get_closest_scope(scope_snapshot), self.root_scope)
        func = capability_callable(implementation, kind, token)
        entry = self._capability_entry(kind, token, func)
        handler = self._wrap_handler(entry, func)
        value = await first_value(handler(*args))
        if value is NO_VALUE and kind != "resolve":
            raise EmptyGuardResultError(kind, token)
        return value

    def _capability_entry(self, kind: str, token: Any, func: Callable) -> CapabilityEntry:
        name = f"{kind}:{token_name(token)}"
        entry = self._entries.get(name)
        if entry is None or entry.func != func:
            metadata: Dict[str, Any] = {"token": token}
            plugin_config = getattr(token, "plugin_config", None)
            if plugin_config:
                metadata["plugin_config"] = dict(plugin_config)
            entry = CapabilityEntry(
                name=name,
                kind=kind,
                func=func,
                router=self,
                plugins=[],
                metadata=metadata,
            )
            self._entries[name] = entry
            self._after_entry_registered(entry)
        return entry

    # ------------------------------------------------------------------
    # Hooks for subclasses
    # ------------------------------------------------------------------
    def _wrap_handler(self, entry: CapabilityEntry, call_next: Callable) -> Callable:
        return call_next

    def _after_entry_registered(self, entry: CapabilityEntry) -> None:
        """Hook for subclasses."""


def _drop_none(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}
