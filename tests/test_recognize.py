"""Tests for route recognition."""

import pytest

from smartnav.core.config import Route
from smartnav.core.errors import DuplicateOutletError, NoMatchError
from smartnav.core.recognize import recognize
from smartnav.core.url_tree import DefaultUrlSerializer

serializer = DefaultUrlSerializer()


class Team:
    pass


class User:
    pass


class Chat:
    pass


class Home:
    pass


class NotFound:
    pass


def _recognize(routes, url, strategy="inherit-until-component-boundary"):
    return recognize(None, routes, serializer.parse(url), url, strategy)


def _team_routes():
    return [
        Route(path="team/:id", component=Team, children=[
            Route(path="user/:name", component=User),
        ]),
        Route(path="chat", component=Chat, outlet="aux"),
    ]


def test_nested_positional_params():
    state = _recognize(_team_routes(), "/team/33/user/11")
    team = state.root.first_child
    user = team.first_child
    assert team.component is Team
    assert team.params == {"id": "33"}
    assert [segment.path for segment in team.url] == ["team", "33"]
    assert user.component is User
    assert user.params == {"name": "11"}
    assert user.param_map.get("name") == "11"
    assert state.url == "/team/33/user/11"


def test_inherit_always_merges_parent_params():
    state = _recognize(_team_routes(), "/team/33/user/11", "inherit-always")
    user = state.root.first_child.first_child
    assert user.params == {"id": "33", "name": "11"}


def test_componentless_parent_shares_params_and_data():
    routes = [
        Route(path="org/:org", data={"section": "org"}, children=[
            Route(path="members", component=User, data={"page": "members"}),
        ]),
    ]
    state = _recognize(routes, "/org/acme/members")
    members = state.root.first_child.first_child
    assert members.params == {"org": "acme"}
    assert members.data == {"section": "org", "page": "members"}


def test_matrix_params_join_positional_params():
    state = _recognize(_team_routes(), "/team/33;flag=on")
    assert state.root.first_child.params == {"id": "33", "flag": "on"}


def test_query_params_and_fragment_are_shared():
    state = _recognize(_team_routes(), "/team/33/user/11?tab=a#top")
    for snapshot in state.values():
        assert snapshot.query_params == {"tab": "a"}
        assert snapshot.fragment == "top"


def test_named_outlet_sorted_after_primary():
    state = _recognize(_team_routes(), "/team/33(aux:chat)")
    children = state.root.children
    assert [child.outlet for child in children] == ["primary", "aux"]
    assert children[1].component is Chat


def test_first_declared_entry_wins():
    first = Route(path="a", component=Home)
    second = Route(path="a", component=User)
    state = _recognize([first, second], "/a")
    assert state.root.first_child.route_config is first


def test_wildcard_consumes_everything():
    routes = [Route(path="home", component=Home), Route(path="**", component=NotFound)]
    state = _recognize(routes, "/missing/page")
    node = state.root.first_child
    assert node.component is NotFound
    assert [segment.path for segment in node.url] == ["missing", "page"]


def test_empty_path_parent_matches():
    routes = [Route(path="", component=Home, children=[Route(path="team", component=Team)])]
    state = _recognize(routes, "/team")
    home = state.root.first_child
    assert home.component is Home
    assert home.url == []
    assert home.first_child.component is Team


def test_full_path_match_rejects_prefix():
    routes = [
        Route(path="", component=Home, path_match="full"),
        Route(path="**", component=NotFound),
    ]
    assert _recognize(routes, "/").root.first_child.component is Home
    assert _recognize(routes, "/other").root.first_child.component is NotFound


def test_redirect_entries_are_skipped():
    routes = [Route(path="old", redirect_to="new"), Route(path="old", component=Home)]
    state = _recognize(routes, "/old")
    assert state.root.first_child.component is Home


def test_custom_matcher():
    from smartnav.core.shared import UrlMatchResult

    def numeric(segments, group, route):
        if segments and segments[0].path.isdigit():
            return UrlMatchResult(consumed=segments[:1], pos_params={"number": segments[0]})
        return None

    state = _recognize([Route(matcher=numeric, component=User)], "/42")
    assert state.root.first_child.params == {"number": "42"}


def test_no_match_raises():
    with pytest.raises(NoMatchError) as excinfo:
        _recognize([Route(path="a", component=Home)], "/nothing")
    assert "nothing" in str(excinfo.value)


def test_duplicate_outlet_raises_immediately():
    routes = [
        Route(path="", component=Home, children=[Route(path="b", component=User)]),
        Route(path="", component=Team, children=[
            Route(path="c", component=Chat, outlet="aux"),
        ]),
    ]
    with pytest.raises(DuplicateOutletError):
        _recognize(routes, "/b(aux:c)")


def test_recognition_is_deterministic():
    routes = _team_routes()
    first = _recognize(routes, "/team/33/user/11(aux:chat)")
    second = _recognize(routes, "/team/33/user/11(aux:chat)")
    assert repr(first) == repr(second)
    assert [s.route_config for s in first.values()] == [s.route_config for s in second.values()]
