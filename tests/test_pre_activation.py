"""Tests for the state diff that decides which guards and resolvers run."""

from smartnav.core.config import Route
from smartnav.core.pre_activation import get_all_route_guards, should_run_guards_and_resolvers
from smartnav.core.recognize import recognize
from smartnav.core.url_tree import DefaultUrlSerializer

serializer = DefaultUrlSerializer()


class Team:
    pass


class User:
    pass


class Admin:
    pass


def _state(routes, url):
    return recognize(None, routes, serializer.parse(url), url)


def _routes(team_mode="params-change", user_mode="params-change"):
    return [
        Route(path="team/:id", component=Team, run_guards_and_resolvers=team_mode, children=[
            Route(path="user/:name", component=User, run_guards_and_resolvers=user_mode),
        ]),
        Route(path="admin", component=Admin),
    ]


def _paths(checks):
    return (
        [check.route.route_config.path for check in checks.can_activate_checks],
        [check.route.route_config.path for check in checks.can_deactivate_checks],
    )


def test_first_navigation_checks_every_node():
    future = _state(_routes(), "/team/33/user/11")
    checks = get_all_route_guards(future, None, None)
    assert _paths(checks) == (["team/:id", "user/:name"], [])
    assert [len(check.path) for check in checks.can_activate_checks] == [2, 3]
    assert checks.can_activate_checks[1].path[0] is future.root


def test_reused_parent_is_not_rechecked():
    routes = _routes()
    current = _state(routes, "/team/33/user/11")
    current.root.first_child.data = {"cached": True}
    future = _state(routes, "/team/33/user/12")
    checks = get_all_route_guards(future, current, None)
    assert _paths(checks) == (["user/:name"], ["user/:name"])
    assert future.root.first_child.data == {"cached": True}


def test_always_mode_rechecks_reused_node():
    routes = _routes(team_mode="always")
    current = _state(routes, "/team/33/user/11")
    future = _state(routes, "/team/33/user/11")
    checks = get_all_route_guards(future, current, None)
    assert _paths(checks) == (["team/:id"], ["team/:id"])


def test_different_route_deactivates_whole_subtree():
    routes = _routes()
    current = _state(routes, "/team/33/user/11")
    future = _state(routes, "/admin")
    checks = get_all_route_guards(future, current, None)
    assert _paths(checks) == (["admin"], ["user/:name", "team/:id"])


def test_query_change_only_matters_for_query_modes():
    routes = _routes(team_mode="path-params-change")
    current = _state(routes, "/team/33?x=1")
    future = _state(routes, "/team/33?x=2")
    assert get_all_route_guards(future, current, None).is_empty

    routes = _routes(team_mode="params-or-query-change")
    current = _state(routes, "/team/33?x=1")
    future = _state(routes, "/team/33?x=2")
    assert _paths(get_all_route_guards(future, current, None))[0] == ["team/:id"]


def test_should_run_modes():
    routes = _routes()
    a = _state(routes, "/team/33;m=1").root.first_child
    b = _state(routes, "/team/33;m=2").root.first_child
    assert should_run_guards_and_resolvers(a, b, "params-change")
    assert not should_run_guards_and_resolvers(a, b, "path-params-change")
    assert should_run_guards_and_resolvers(a, b, "always")
    assert not should_run_guards_and_resolvers(a, b, lambda current, future: False)


def test_equal_but_distinct_configs_are_not_reused():
    current = _state(_routes(), "/team/33")
    future = _state(_routes(), "/team/33")
    checks = get_all_route_guards(future, current, None)
    assert _paths(checks) == (["team/:id"], ["team/:id"])
    assert checks.can_deactivate_checks[0].route is current.root.first_child
