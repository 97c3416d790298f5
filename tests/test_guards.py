"""Guard evaluation through the router."""

import asyncio

import pytest

from smartnav import NavigationCancel, NavigationCancellationCode, NavigationError, Route, Router
from smartnav.core.errors import EmptyGuardResultError, ProviderNotFoundError
from smartnav.core.scope import ProviderScope
from smartnav.core.url_tree import DefaultUrlSerializer

serializer = DefaultUrlSerializer()


class Home:
    pass


class Admin:
    pass


class Login:
    pass


class Team:
    pass


class User:
    pass


def allow(route, state):
    return True


def deny(route, state):
    return False


def explode(route, state):
    raise RuntimeError("boom")


def redirect_to_login(route, state):
    return serializer.parse("/login")


async def slow_reject(route, state):
    await asyncio.sleep(0.01)
    return False


async def streamed_allow(route, state):
    yield True


async def never_emits(route, state):
    return
    yield


class Recording:
    """Guard object recording every call it receives."""

    def __init__(self, log, label, verdict=True):
        self.log = log
        self.label = label
        self.verdict = verdict

    def can_activate(self, route, state):
        self.log.append((self.label, route.route_config.path))
        return self.verdict

    def can_activate_child(self, child_route, state):
        self.log.append((self.label, child_route.route_config.path))
        return self.verdict

    def can_deactivate(self, component, current, current_state, future_state):
        self.log.append((self.label, component))
        return self.verdict


class AuthGuard:
    def __init__(self, allowed=True):
        self.allowed = allowed

    def can_activate(self, route, state):
        return self.allowed


def _routes(*admin_guards, **admin_options):
    return [
        Route(path="home", component=Home),
        Route(path="login", component=Login),
        Route(path="admin", component=Admin, can_activate=list(admin_guards), **admin_options),
    ]


async def _router_at_home(routes, **options):
    router = Router(routes, **options)
    assert await router.navigate_by_url("/home") is True
    return router


@pytest.mark.asyncio
async def test_allowing_guard_commits():
    router = await _router_at_home(_routes(allow))
    assert await router.navigate_by_url("/admin") is True
    assert router.url == "/admin"
    assert router.entries == ("can_activate:allow",)


@pytest.mark.asyncio
async def test_rejecting_guard_keeps_current_url():
    router = await _router_at_home(_routes(deny))
    events = []
    router.events.subscribe(events.append)

    assert await router.navigate_by_url("/admin") is False

    assert router.url == "/home"
    assert router.location.path() == "/home"
    cancels = [event for event in events if isinstance(event, NavigationCancel)]
    assert [cancel.code for cancel in cancels] == [NavigationCancellationCode.GUARD_REJECTED]


@pytest.mark.asyncio
async def test_exit_checks_run_before_entry_checks():
    log = []
    routes = _routes(Recording(log, "enter"))
    routes[0].can_deactivate = [Recording(log, "leave")]
    router = await _router_at_home(routes)

    assert await router.navigate_by_url("/admin") is True
    assert log == [("leave", Home), ("enter", "admin")]


@pytest.mark.asyncio
async def test_rejected_exit_check_skips_entry_checks():
    log = []
    routes = _routes(Recording(log, "enter"))
    routes[0].can_deactivate = [Recording(log, "leave", verdict=False)]
    router = await _router_at_home(routes)

    assert await router.navigate_by_url("/admin") is False
    assert log == [("leave", Home)]
    assert router.url == "/home"


@pytest.mark.asyncio
async def test_child_guard_receives_target_route():
    log = []
    routes = [
        Route(path="team/:id", component=Team, can_activate_child=[Recording(log, "child")], children=[
            Route(path="user/:name", component=User),
        ]),
    ]
    router = Router(routes)
    assert await router.navigate_by_url("/team/33/user/11") is True
    assert log == [("child", "user/:name")]


@pytest.mark.asyncio
async def test_rejecting_child_guard_blocks_descendant():
    routes = [
        Route(path="team/:id", component=Team, can_activate_child=[deny], children=[
            Route(path="user/:name", component=User),
        ]),
    ]
    router = Router(routes)
    assert await router.navigate_by_url("/team/33") is True
    assert await router.navigate_by_url("/team/33/user/11") is False
    assert router.url == "/team/33"


@pytest.mark.asyncio
async def test_verdict_follows_declaration_order():
    router = await _router_at_home(_routes(slow_reject, redirect_to_login))
    assert await router.navigate_by_url("/admin") is False
    assert router.url == "/home"


@pytest.mark.asyncio
async def test_url_tree_verdict_redirects():
    router = await _router_at_home(_routes(redirect_to_login))
    events = []
    router.events.subscribe(events.append)

    assert await router.navigate_by_url("/admin") is True

    assert router.url == "/login"
    cancels = [event for event in events if isinstance(event, NavigationCancel)]
    assert cancels[0].code == NavigationCancellationCode.REDIRECT
    assert cancels[0].url == "/admin"


@pytest.mark.asyncio
async def test_streamed_guard_uses_first_value():
    router = await _router_at_home(_routes(streamed_allow))
    assert await router.navigate_by_url("/admin") is True


@pytest.mark.asyncio
async def test_guard_without_value_is_an_error():
    router = await _router_at_home(_routes(never_emits))
    with pytest.raises(EmptyGuardResultError):
        await router.navigate_by_url("/admin")


@pytest.mark.asyncio
async def test_guard_exception_rejects_future():
    router = await _router_at_home(_routes(explode))
    errors = []
    router.events.subscribe(
        lambda event: errors.append(event) if isinstance(event, NavigationError) else None
    )
    with pytest.raises(RuntimeError, match="boom"):
        await router.navigate_by_url("/admin")
    assert isinstance(errors[0].error, RuntimeError)
    assert router.url == "/home"


@pytest.mark.asyncio
async def test_guard_exception_can_resolve_false():
    router = await _router_at_home(_routes(explode), resolve_navigation_promise_on_error=True)
    assert await router.navigate_by_url("/admin") is False


@pytest.mark.asyncio
async def test_error_handler_may_redirect():
    def to_login(error):
        return serializer.parse("/login")

    router = await _router_at_home(_routes(explode), navigation_error_handler=to_login)
    assert await router.navigate_by_url("/admin") is True
    assert router.url == "/login"


@pytest.mark.asyncio
async def test_class_token_resolves_in_router_scope():
    router = await _router_at_home(
        _routes(AuthGuard), scope=ProviderScope({AuthGuard: AuthGuard(False)})
    )
    assert await router.navigate_by_url("/admin") is False


@pytest.mark.asyncio
async def test_route_scope_overrides_router_scope():
    routes = _routes(AuthGuard, scope=ProviderScope({AuthGuard: AuthGuard(True)}))
    router = await _router_at_home(routes, scope=ProviderScope({AuthGuard: AuthGuard(False)}))
    assert await router.navigate_by_url("/admin") is True


@pytest.mark.asyncio
async def test_unregistered_class_token_fails():
    router = await _router_at_home(_routes(AuthGuard))
    with pytest.raises(ProviderNotFoundError):
        await router.navigate_by_url("/admin")
