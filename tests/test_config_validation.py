"""Route configuration validation and scope lookup."""

import pytest

from smartnav import InvalidConfigError, ProviderNotFoundError, ProviderScope, Route
from smartnav.core.config import get_child_config, sort_by_matching_outlets, validate_config
from smartnav.core.errors import InvalidGuardError
from smartnav.core.scope import capability_callable, resolve_token, token_name


class Page:
    pass


@pytest.mark.parametrize(
    "route, message",
    [
        (Route(component=Page), "either a path or a matcher"),
        (Route(path="a", matcher=lambda *args: None), "can't be used together"),
        (Route(path="/a"), "cannot start with a slash"),
        (Route(path="a", redirect_to="b", children=[Route(path="c")]), "redirect_to and children"),
        (Route(path="a", children=[Route(path="b")], load_children=lambda: []), "load_children"),
        (Route(path="a", path_match="partial"), "path_match"),
        (Route(path="a", run_guards_and_resolvers="sometimes"), "run_guards_and_resolvers"),
    ],
)
def test_invalid_routes_are_reported(route, message):
    with pytest.raises(InvalidConfigError, match=message):
        validate_config([route])


def test_nested_errors_name_full_path():
    routes = [Route(path="parent", children=[Route(path="", children=[Route(path="/x")])])]
    with pytest.raises(InvalidConfigError) as excinfo:
        validate_config(routes)
    assert "parent/" in str(excinfo.value)


def test_non_route_entries_are_rejected():
    with pytest.raises(InvalidConfigError, match="expected a Route"):
        validate_config([{"path": "a"}])


def test_valid_config_passes():
    validate_config([
        Route(path="", component=Page, path_match="full"),
        Route(path="team/:id", component=Page, children=[Route(path="**", component=Page)]),
        Route(matcher=lambda *args: None, component=Page),
        Route(path="lazy", load_children=lambda: []),
        Route(path="custom", run_guards_and_resolvers=lambda current, future: True),
    ])


def test_child_config_prefers_children_then_loaded_routes():
    child = Route(path="x")
    assert get_child_config(Route(path="a", children=[child])) == [child]
    assert get_child_config(Route(path="a", load_children=lambda: [], loaded_routes=[child])) == [child]
    assert get_child_config(Route(path="a", load_children=lambda: [])) == []
    assert get_child_config(Route(path="a")) == []


def test_sort_by_matching_outlets_keeps_order():
    a, b, c = Route(path="a"), Route(path="b", outlet="aux"), Route(path="c")
    assert sort_by_matching_outlets([a, b, c], "aux") == [b, a, c]
    assert sort_by_matching_outlets([a, b, c], "primary") == [a, c, b]


class AuthGuard:
    def can_activate(self, route, state):
        return True


def test_scope_lookup_walks_parents():
    root = ProviderScope({AuthGuard: "root"}, name="root")
    child = ProviderScope(parent=root, name="child")
    assert child.get(AuthGuard) == "root"
    assert AuthGuard in child
    child.provide(AuthGuard, "child")
    assert child.get(AuthGuard) == "child"
    assert ProviderScope().get("missing", None) is None
    with pytest.raises(ProviderNotFoundError):
        ProviderScope().get("missing")


def test_resolve_token_rules():
    guard = AuthGuard()

    def plain(route, state):
        return True

    assert resolve_token(guard, None) is guard
    assert resolve_token(plain, None) is plain
    assert resolve_token(AuthGuard, ProviderScope({AuthGuard: guard})) is guard
    with pytest.raises(ProviderNotFoundError):
        resolve_token(AuthGuard, None)
    with pytest.raises(ProviderNotFoundError):
        resolve_token(42, None)


def test_capability_callable_and_names():
    guard = AuthGuard()
    assert capability_callable(guard, "can_activate") == guard.can_activate
    with pytest.raises(InvalidGuardError):
        capability_callable(guard, "resolve")
    assert token_name(AuthGuard) == "AuthGuard"
    assert token_name(guard) == "AuthGuard"
    assert token_name("named") == "named"
