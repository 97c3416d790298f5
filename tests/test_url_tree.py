"""Tests for the URL tree model, serializer and active-route comparison."""

import pytest

from smartnav.core.errors import MalformedUrlError
from smartnav.core.url_tree import (
    EXACT_MATCH_OPTIONS,
    SUBSET_MATCH_OPTIONS,
    DefaultUrlSerializer,
    IsActiveMatchOptions,
    contains_tree,
)

serializer = DefaultUrlSerializer()


def test_parse_primary_segments():
    tree = serializer.parse("/team/33/user/11")
    primary = tree.root.children["primary"]
    assert [segment.path for segment in primary.segments] == ["team", "33", "user", "11"]
    assert tree.root.segments == []
    assert primary.parent is tree.root


@pytest.mark.parametrize(
    "url",
    [
        "/",
        "/team/33/user/11",
        "/team/33(aux:chat)",
        "/one;a=1;b=2/two",
        "/a?q=1&q=2",
        "/a#frag",
        "/team/(user//aux:chat)",
    ],
)
def test_serialize_parse_stable(url):
    assert serializer.serialize(serializer.parse(url)) == url


def test_named_outlets_and_matrix_params():
    tree = serializer.parse("/team/33;flag=on(aux:chat)")
    assert set(tree.root.children) == {"primary", "aux"}
    team = tree.root.children["primary"]
    assert team.segments[1].parameters == {"flag": "on"}
    assert team.segments[1].parameter_map.get("flag") == "on"
    assert tree.root.children["aux"].segments[0].path == "chat"


def test_query_params_and_fragment():
    tree = serializer.parse("/a?q=1&q=2&x=hello+world#top")
    assert tree.query_params == {"q": ["1", "2"], "x": "hello world"}
    assert tree.query_param_map.get("q") == "1"
    assert tree.query_param_map.get_all("q") == ["1", "2"]
    assert tree.fragment == "top"
    assert serializer.serialize(tree) == "/a?q=1&q=2&x=hello%20world#top"


def test_percent_encoding_round_trip():
    tree = serializer.parse("/hello%20world")
    assert tree.root.children["primary"].segments[0].path == "hello world"
    assert str(tree) == "/hello%20world"


@pytest.mark.parametrize("url", ["/a%zz", "/a(b)", "/a/;x=1"])
def test_malformed_urls_raise(url):
    with pytest.raises(MalformedUrlError):
        serializer.parse(url)


def test_contains_tree_exact_and_subset():
    current = serializer.parse("/team/33?x=1")
    assert contains_tree(current, serializer.parse("/team/33?x=1"), EXACT_MATCH_OPTIONS)
    assert not contains_tree(current, serializer.parse("/team"), EXACT_MATCH_OPTIONS)
    assert contains_tree(current, serializer.parse("/team"), SUBSET_MATCH_OPTIONS)
    assert not contains_tree(current, serializer.parse("/team/44"), SUBSET_MATCH_OPTIONS)
    assert not contains_tree(current, serializer.parse("/team?x=2"), SUBSET_MATCH_OPTIONS)


def test_contains_tree_fragment_and_matrix_options():
    current = serializer.parse("/team;a=1#top")
    options = IsActiveMatchOptions(
        paths="exact", query_params="ignored", fragment="exact", matrix_params="exact"
    )
    assert contains_tree(current, serializer.parse("/team;a=1#top"), options)
    assert not contains_tree(current, serializer.parse("/team;a=1#other"), options)
    assert not contains_tree(current, serializer.parse("/team;a=2#top"), options)
