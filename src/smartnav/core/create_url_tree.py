"""Build URL trees from navigation commands.

Commands are a list applied relative to a segment group:

- ``"/a/b"`` as first command starts from the root, ``"../x"`` climbs one
  segment per ``..``, ``"./x"`` and ``"x"`` are relative;
- a ``dict`` right after a path command holds that segment's matrix params;
- ``{"outlets": {"aux": [...], "primary": [...]}}`` must be the last command
  and updates the named outlets (``None`` removes one);
- ``{"segment_path": "a/b"}`` is an already split path.

``create_segment_group_from_route(snapshot)`` rebuilds the segment group a
snapshot was recognized from so relative commands have an anchor.
"""

from __future__ import annotations

from typing import Any, Dict, List, NamedTuple, Optional

from .errors import InvalidCommandError
from .shared import PRIMARY_OUTLET, shallow_equal
from .url_tree import UrlSegment, UrlSegmentGroup, UrlTree

__all__ = [
    "create_root",
    "create_segment_group_from_route",
    "create_url_tree_from_segment_group",
    "create_url_tree_from_snapshot",
    "squash_segment_group",
]


def create_url_tree_from_snapshot(
    relative_to: Any,
    commands: List[Any],
    query_params: Optional[Dict[str, Any]] = None,
    fragment: Optional[str] = None,
) -> UrlTree:
    group = create_segment_group_from_route(relative_to)
    return create_url_tree_from_segment_group(group, commands, query_params, fragment)


def create_segment_group_from_route(route: Any) -> UrlSegmentGroup:
    found: List[UrlSegmentGroup] = []

    def build(current: Any) -> UrlSegmentGroup:
        children = {child.outlet: build(child) for child in current.children}
        group = UrlSegmentGroup(current.url, children)
        if current is route:
            found.append(group)
        return group

    root = create_root(build(route.root))
    return found[0] if found else root


def create_root(candidate: UrlSegmentGroup) -> UrlSegmentGroup:
    if candidate.segments:
        return UrlSegmentGroup([], {PRIMARY_OUTLET: candidate})
    return candidate


def squash_segment_group(group: UrlSegmentGroup) -> UrlSegmentGroup:
    """Drop empty children and fold trivial primary children into parents."""
    children: Dict[str, UrlSegmentGroup] = {}
    for outlet, child in group.children.items():
        candidate = squash_segment_group(child)
        if outlet == PRIMARY_OUTLET and not candidate.segments and candidate.has_children():
            children.update(candidate.children)
        elif candidate.segments or candidate.has_children():
            children[outlet] = candidate
    squashed = UrlSegmentGroup(group.segments, children)
    if squashed.number_of_children == 1 and PRIMARY_OUTLET in squashed.children:
        child = squashed.children[PRIMARY_OUTLET]
        return UrlSegmentGroup(squashed.segments + child.segments, child.children)
    return squashed


def create_url_tree_from_segment_group(
    relative_to: UrlSegmentGroup,
    commands: List[Any],
    query_params: Optional[Dict[str, Any]] = None,
    fragment: Optional[str] = None,
) -> UrlTree:
    root = relative_to
    while root.parent is not None:
        root = root.parent

    if not commands:
        return _tree(root, root, root, query_params, fragment)

    nav = _compute_navigation(commands)
    if nav.to_root():
        return _tree(root, root, UrlSegmentGroup([], {}), query_params, fragment)

    position = _find_starting_position(nav, root, relative_to)
    if position.process_children:
        group = _update_segment_group_children(position.segment_group, position.index, nav.commands)
    else:
        group = _update_segment_group(position.segment_group, position.index, nav.commands)
    return _tree(root, position.segment_group, group, query_params, fragment)


def _is_matrix_params(command: Any) -> bool:
    return isinstance(command, dict) and "outlets" not in command and "segment_path" not in command


def _is_command_with_outlets(command: Any) -> bool:
    return isinstance(command, dict) and "outlets" in command


def _stringify_query_value(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return str(value)


def _tree(
    old_root: UrlSegmentGroup,
    old_group: UrlSegmentGroup,
    new_group: UrlSegmentGroup,
    query_params: Optional[Dict[str, Any]],
    fragment: Optional[str],
) -> UrlTree:
    params = {name: _stringify_query_value(value) for name, value in (query_params or {}).items()}
    if old_root is old_group:
        candidate = new_group
    else:
        candidate = _replace_segment(old_root, old_group, new_group)
    return UrlTree(create_root(squash_segment_group(candidate)), params, fragment)


def _replace_segment(
    current: UrlSegmentGroup, old_group: UrlSegmentGroup, new_group: UrlSegmentGroup
) -> UrlSegmentGroup:
    children = {}
    for outlet, child in current.children.items():
        children[outlet] = new_group if child is old_group else _replace_segment(child, old_group, new_group)
    return UrlSegmentGroup(current.segments, children)


class _Navigation:
    __slots__ = ("is_absolute", "number_of_double_dots", "commands")

    def __init__(self, is_absolute: bool, number_of_double_dots: int, commands: List[Any]):
        self.is_absolute = is_absolute
        self.number_of_double_dots = number_of_double_dots
        self.commands = commands
        if is_absolute and commands and _is_matrix_params(commands[0]):
            raise InvalidCommandError("Root segment cannot have matrix parameters")
        with_outlets = [command for command in commands if _is_command_with_outlets(command)]
        if with_outlets and with_outlets[0] is not commands[-1]:
            raise InvalidCommandError("{outlets:{}} has to be the last command")

    def to_root(self) -> bool:
        return self.is_absolute and len(self.commands) == 1 and self.commands[0] == "/"


def _compute_navigation(commands: List[Any]) -> _Navigation:
    if len(commands) == 1 and commands[0] == "/":
        return _Navigation(True, 0, commands)

    double_dots = 0
    is_absolute = False
    result: List[Any] = []
    for index, command in enumerate(commands):
        if isinstance(command, dict):
            if "outlets" in command:
                outlets = {
                    name: value.split("/") if isinstance(value, str) else value
                    for name, value in command["outlets"].items()
                }
                result.append({"outlets": outlets})
                continue
            if "segment_path" in command:
                result.append(command["segment_path"])
                continue
        if not isinstance(command, str):
            result.append(command)
            continue
        if index != 0:
            result.append(command)
            continue
        for part_index, part in enumerate(command.split("/")):
            if part_index == 0 and part == ".":
                continue
            if part_index == 0 and part == "":
                is_absolute = True
            elif part == "..":
                double_dots += 1
            elif part != "":
                result.append(part)
    return _Navigation(is_absolute, double_dots, result)


class _Position(NamedTuple):
    segment_group: UrlSegmentGroup
    process_children: bool
    index: int


def _find_starting_position(
    nav: _Navigation, root: UrlSegmentGroup, target: Optional[UrlSegmentGroup]
) -> _Position:
    if nav.is_absolute:
        return _Position(root, True, 0)
    if target is None:
        return _Position(root, False, 0)
    if target.parent is None:
        return _Position(target, True, 0)
    modifier = 0 if _is_matrix_params(nav.commands[0]) else 1
    index = len(target.segments) - 1 + modifier
    return _apply_double_dots(target, index, nav.number_of_double_dots)


def _apply_double_dots(group: UrlSegmentGroup, index: int, double_dots: int) -> _Position:
    current = group
    current_index = index
    remaining = double_dots
    while remaining > current_index:
        remaining -= current_index
        current = current.parent
        if current is None:
            raise InvalidCommandError("Invalid number of '../'")
        current_index = len(current.segments)
    return _Position(current, False, current_index - remaining)


def _get_outlets(commands: List[Any]) -> Dict[str, Any]:
    if _is_command_with_outlets(commands[0]):
        return commands[0]["outlets"]
    return {PRIMARY_OUTLET: commands}


def _update_segment_group(
    group: Optional[UrlSegmentGroup], start_index: int, commands: List[Any]
) -> UrlSegmentGroup:
    if group is None:
        group = UrlSegmentGroup([], {})
    if not group.segments and group.has_children():
        return _update_segment_group_children(group, start_index, commands)

    matched, path_index, command_index = _prefixed_with(group, start_index, commands)
    sliced = commands[command_index:]
    if matched and path_index < len(group.segments):
        head = UrlSegmentGroup(group.segments[:path_index], {})
        head.children[PRIMARY_OUTLET] = UrlSegmentGroup(group.segments[path_index:], group.children)
        return _update_segment_group_children(head, 0, sliced)
    if matched and not sliced:
        return UrlSegmentGroup(group.segments, {})
    if matched and not group.has_children():
        return _create_new_segment_group(group, start_index, commands)
    if matched:
        return _update_segment_group_children(group, 0, sliced)
    return _create_new_segment_group(group, start_index, commands)


def _update_segment_group_children(
    group: UrlSegmentGroup, start_index: int, commands: List[Any]
) -> UrlSegmentGroup:
    if not commands:
        return UrlSegmentGroup(group.segments, {})

    outlets = _get_outlets(commands)
    primary = group.children.get(PRIMARY_OUTLET)
    if (
        any(name != PRIMARY_OUTLET for name in outlets)
        and primary is not None
        and group.number_of_children == 1
        and not primary.segments
    ):
        nested = _update_segment_group_children(primary, start_index, commands)
        return UrlSegmentGroup(group.segments, nested.children)

    children: Dict[str, UrlSegmentGroup] = {}
    for outlet, outlet_commands in outlets.items():
        if isinstance(outlet_commands, str):
            outlet_commands = [outlet_commands]
        if outlet_commands is not None:
            children[outlet] = _update_segment_group(
                group.children.get(outlet), start_index, outlet_commands
            )
    for outlet, child in group.children.items():
        if outlet not in outlets:
            children[outlet] = child
    return UrlSegmentGroup(group.segments, children)


def _prefixed_with(group: UrlSegmentGroup, start_index: int, commands: List[Any]):
    command_index = 0
    path_index = start_index
    no_match = (False, 0, 0)
    while path_index < len(group.segments):
        if command_index >= len(commands):
            return no_match
        segment = group.segments[path_index]
        command = commands[command_index]
        if _is_command_with_outlets(command):
            break
        current = str(command)
        following = commands[command_index + 1] if command_index < len(commands) - 1 else None
        if current and isinstance(following, dict) and "outlets" not in following:
            if not _compare(current, following, segment):
                return no_match
            command_index += 2
        else:
            if not _compare(current, {}, segment):
                return no_match
            command_index += 1
        path_index += 1
    return True, path_index, command_index


def _create_new_segment_group(
    group: UrlSegmentGroup, start_index: int, commands: List[Any]
) -> UrlSegmentGroup:
    paths = list(group.segments[:start_index])
    index = 0
    while index < len(commands):
        command = commands[index]
        if _is_command_with_outlets(command):
            return UrlSegmentGroup(paths, _create_new_segment_children(command["outlets"]))
        if index == 0 and _is_matrix_params(command):
            if start_index >= len(group.segments):
                raise InvalidCommandError("Matrix parameters need a segment to apply to")
            segment = group.segments[start_index]
            paths.append(UrlSegment(segment.path, _stringify(command)))
            index += 1
            continue
        current = str(command)
        following = commands[index + 1] if index < len(commands) - 1 else None
        if current and _is_matrix_params(following):
            paths.append(UrlSegment(current, _stringify(following)))
            index += 2
        else:
            paths.append(UrlSegment(current, {}))
            index += 1
    return UrlSegmentGroup(paths, {})


def _create_new_segment_children(outlets: Dict[str, Any]) -> Dict[str, UrlSegmentGroup]:
    children = {}
    for outlet, commands in outlets.items():
        if isinstance(commands, str):
            commands = [commands]
        if commands is not None:
            children[outlet] = _create_new_segment_group(UrlSegmentGroup([], {}), 0, commands)
    return children


def _stringify(params: Dict[str, Any]) -> Dict[str, str]:
    return {key: str(value) for key, value in params.items()}


def _compare(path: str, params: Dict[str, Any], segment: UrlSegment) -> bool:
    return path == segment.path and shallow_equal(_stringify(params), segment.parameters)
