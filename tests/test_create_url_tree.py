"""Tests for command-based URL tree creation."""

import pytest

from smartnav.core.create_url_tree import (
    create_url_tree_from_segment_group,
    squash_segment_group,
)
from smartnav.core.errors import InvalidCommandError
from smartnav.core.url_tree import DefaultUrlSerializer, UrlSegment, UrlSegmentGroup

serializer = DefaultUrlSerializer()


def _create(url, commands, query_params=None, fragment=None, relative_to_primary=False):
    tree = serializer.parse(url)
    start = tree.root.children["primary"] if relative_to_primary else tree.root
    result = create_url_tree_from_segment_group(start, commands, query_params, fragment)
    return serializer.serialize(result)


def test_absolute_commands_replace_path():
    assert _create("/x/y", ["/a", "b"]) == "/a/b"
    assert _create("/x/y", ["/"]) == "/"


def test_non_string_commands_are_stringified():
    assert _create("/", ["/team", 44]) == "/team/44"


def test_empty_commands_keep_tree_and_apply_query_and_fragment():
    result = _create("/team/33/user/11", [], {"page": 2}, "top")
    assert result == "/team/33/user/11?page=2#top"


def test_double_dots_climb_segments():
    assert _create("/team/33/user/11", ["../22"], relative_to_primary=True) == "/team/33/user/22"
    assert _create("/team/33/user/11", ["../../../x"], relative_to_primary=True) == "/team/x"


def test_too_many_double_dots_raise():
    with pytest.raises(InvalidCommandError):
        _create("/team/33", ["../../../../x"], relative_to_primary=True)


def test_matrix_params_follow_their_segment():
    assert _create("/", ["/a", {"p": 1}, "b"]) == "/a;p=1/b"


def test_outlets_command_updates_named_outlet():
    assert _create("/team/33", [{"outlets": {"aux": "chat"}}]) == "/team/33(aux:chat)"
    assert _create("/team/33(aux:chat)", [{"outlets": {"aux": None}}]) == "/team/33"


def test_outlets_must_be_last_command():
    with pytest.raises(InvalidCommandError):
        _create("/", [{"outlets": {"aux": "chat"}}, "x"])


def test_root_cannot_take_matrix_params():
    with pytest.raises(InvalidCommandError):
        _create("/", ["/", {"p": 1}])


def test_query_param_values_are_strings():
    assert _create("/a", [], {"ids": [1, 2], "flag": True}) == "/a?ids=1&ids=2&flag=True"


def test_squash_folds_primary_only_children():
    inner = UrlSegmentGroup([UrlSegment("b")], {})
    middle = UrlSegmentGroup([UrlSegment("a")], {"primary": inner})
    root = UrlSegmentGroup([], {"primary": middle, "aux": UrlSegmentGroup([], {})})
    squashed = squash_segment_group(root)
    assert [segment.path for segment in squashed.segments] == ["a", "b"]
    assert squashed.children == {}
