"""Route recognition (source of truth).

``recognize(root_component, config, url_tree, url, strategy)`` matches the
configuration against a URL tree and returns a ``RouterStateSnapshot``.

Matching is a recursive descent that returns ``None`` for "no match" instead
of raising, so the caller loops over candidate entries explicitly:

``process_segment_group(config, group, outlet)``
    A group with no own segments but with children is handled purely by
    ``process_children`` against the same config. Otherwise
    ``process_segment`` runs on its segments.
``process_children(config, group)``
    Each child outlet is matched against the config sorted so entries for
    that outlet come first. Any failing outlet fails the whole group.
    Empty-path matches sharing one config entry are merged, outlet names are
    checked for uniqueness (``DuplicateOutletError`` is raised at once) and
    siblings are sorted primary-first, then by outlet name.
``process_segment(config, group, segments, outlet)``
    Entries are tried in declaration order and the first one that accepts
    wins. If none accepts, the result is an empty list when nothing is left
    to consume for ``outlet``, else ``None``.
``process_segment_against_route(route, group, segments, outlet)``
    Entries with ``redirect_to`` never match. ``"**"`` consumes everything and
    takes its params from the last segment's matrix params. Other entries go
    through ``match``; children are then matched against the remaining
    segments after ``split`` has injected empty groups for empty-path entries
    on named outlets.

Once the tree is matched a synthetic root snapshot is put on top and params
and data are inherited top-down with ``get_inherited``, each node merging the
already inherited values of its parent.
"""

from __future__ import annotations

from typing import Any, Dict, List, NamedTuple, Optional

from .config import Route, Routes, get_child_config, get_outlet, sort_by_matching_outlets
from .errors import DuplicateOutletError, NoMatchError
from .router_state import (
    INHERIT_UNTIL_COMPONENT_BOUNDARY,
    ActivatedRouteSnapshot,
    RouterStateSnapshot,
    get_inherited,
)
from .shared import PRIMARY_OUTLET, default_url_matcher
from .tree import TreeNode
from .url_tree import UrlSegment, UrlSegmentGroup, UrlTree

__all__ = ["MatchResult", "Recognizer", "match", "recognize", "split"]

SnapshotNodes = List[TreeNode[ActivatedRouteSnapshot]]


class MatchResult(NamedTuple):
    consumed_segments: List[UrlSegment]
    remaining_segments: List[UrlSegment]
    parameters: Dict[str, Any]


class SplitResult(NamedTuple):
    segment_group: UrlSegmentGroup
    sliced_segments: List[UrlSegment]


def recognize(
    root_component: Any,
    config: Routes,
    url_tree: UrlTree,
    url: str,
    params_inheritance_strategy: str = INHERIT_UNTIL_COMPONENT_BOUNDARY,
) -> RouterStateSnapshot:
    return Recognizer(
        root_component, config, url_tree, url, params_inheritance_strategy
    ).recognize()


class Recognizer:
    __slots__ = ("root_component", "config", "url_tree", "url", "params_inheritance_strategy")

    def __init__(
        self,
        root_component: Any,
        config: Routes,
        url_tree: UrlTree,
        url: str,
        params_inheritance_strategy: str = INHERIT_UNTIL_COMPONENT_BOUNDARY,
    ):
        self.root_component = root_component
        self.config = config
        self.url_tree = url_tree
        self.url = url
        self.params_inheritance_strategy = params_inheritance_strategy

    def recognize(self) -> RouterStateSnapshot:
        routes = [route for route in self.config if route.redirect_to is None]
        root_group = split(self.url_tree.root, [], [], routes).segment_group
        children = self.process_segment_group(self.config, root_group, PRIMARY_OUTLET)
        if children is None:
            raise NoMatchError(self.url)
        root = ActivatedRouteSnapshot(
            [],
            {},
            dict(self.url_tree.query_params),
            self.url_tree.fragment,
            {},
            PRIMARY_OUTLET,
            self.root_component,
            None,
            self.url_tree.root,
            -1,
            {},
        )
        state = RouterStateSnapshot(self.url, TreeNode(root, children))
        self._inherit_params_and_data(state.root_node, None)
        return state

    def _inherit_params_and_data(
        self, node: TreeNode[ActivatedRouteSnapshot], parent: Optional[ActivatedRouteSnapshot]
    ) -> None:
        route = node.value
        inherited = get_inherited(route, parent, self.params_inheritance_strategy)
        route.params = inherited.params
        route.data = inherited.data
        for child in node.children:
            self._inherit_params_and_data(child, route)

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------
    def process_segment_group(
        self, config: Routes, segment_group: UrlSegmentGroup, outlet: str
    ) -> Optional[SnapshotNodes]:
        if not segment_group.segments and segment_group.has_children():
            return self.process_children(config, segment_group)
        return self.process_segment(config, segment_group, segment_group.segments, outlet)

    def process_children(
        self, config: Routes, segment_group: UrlSegmentGroup
    ) -> Optional[SnapshotNodes]:
        children: SnapshotNodes = []
        for child_outlet, child in segment_group.children.items():
            sorted_config = sort_by_matching_outlets(config, child_outlet)
            outlet_children = self.process_segment_group(sorted_config, child, child_outlet)
            if outlet_children is None:
                return None
            children.extend(outlet_children)
        merged = merge_empty_path_matches(children)
        check_outlet_name_uniqueness(merged)
        sort_activated_route_snapshots(merged)
        return merged

    def process_segment(
        self,
        routes: Routes,
        segment_group: UrlSegmentGroup,
        segments: List[UrlSegment],
        outlet: str,
    ) -> Optional[SnapshotNodes]:
        for route in routes:
            result = self.process_segment_against_route(route, segment_group, segments, outlet)
            if result is not None:
                return result
        if no_leftovers_in_url(segment_group, segments, outlet):
            return []
        return None

    def process_segment_against_route(
        self,
        route: Route,
        raw_segment: UrlSegmentGroup,
        segments: List[UrlSegment],
        outlet: str,
    ) -> Optional[SnapshotNodes]:
        if route.redirect_to is not None or not is_immediate_match(
            route, raw_segment, segments, outlet
        ):
            return None

        if route.path == "**":
            params = dict(segments[-1].parameters) if segments else {}
            snapshot = self._snapshot(
                route, raw_segment, list(segments), params, len(segments)
            )
            consumed: List[UrlSegment] = []
            remaining: List[UrlSegment] = []
        else:
            result = match(raw_segment, route, segments)
            if result is None:
                return None
            consumed = result.consumed_segments
            remaining = result.remaining_segments
            snapshot = self._snapshot(
                route, raw_segment, consumed, result.parameters, len(consumed)
            )

        child_config = get_child_config(route)
        segment_group, sliced_segments = split(
            raw_segment,
            consumed,
            remaining,
            [child for child in child_config if child.redirect_to is None],
        )

        if not sliced_segments and segment_group.has_children():
            children = self.process_children(child_config, segment_group)
            if children is None:
                return None
            return [TreeNode(snapshot, children)]

        if not child_config and not sliced_segments:
            return [TreeNode(snapshot, [])]

        matched_on_outlet = get_outlet(route) == outlet
        children = self.process_segment(
            child_config,
            segment_group,
            sliced_segments,
            PRIMARY_OUTLET if matched_on_outlet else outlet,
        )
        if children is None:
            return None
        return [TreeNode(snapshot, children)]

    def _snapshot(
        self,
        route: Route,
        raw_segment: UrlSegmentGroup,
        consumed: List[UrlSegment],
        params: Dict[str, Any],
        consumed_count: int,
    ) -> ActivatedRouteSnapshot:
        return ActivatedRouteSnapshot(
            consumed,
            params,
            dict(self.url_tree.query_params),
            self.url_tree.fragment,
            dict(route.data or {}),
            get_outlet(route),
            route.component,
            route,
            get_source_segment_group(raw_segment),
            get_path_index_shift(raw_segment) + consumed_count,
            dict(route.resolve or {}),
        )


# ----------------------------------------------------------------------
# Matching helpers
# ----------------------------------------------------------------------
def match(
    segment_group: UrlSegmentGroup, route: Route, segments: List[UrlSegment]
) -> Optional[MatchResult]:
    if route.path == "":
        if route.path_match == "full" and (segment_group.has_children() or segments):
            return None
        return MatchResult([], list(segments), {})

    matcher = route.matcher or default_url_matcher
    result = matcher(segments, segment_group, route)
    if result is None:
        return None
    pos_params = {name: segment.path for name, segment in result.pos_params.items()}
    if result.consumed:
        parameters = {**pos_params, **result.consumed[-1].parameters}
    else:
        parameters = pos_params
    return MatchResult(
        list(result.consumed), list(segments[len(result.consumed):]), parameters
    )


def _empty_path_match(
    segment_group: UrlSegmentGroup, sliced_segments: List[UrlSegment], route: Route
) -> bool:
    if (segment_group.has_children() or sliced_segments) and route.path_match == "full":
        return False
    return route.path == ""


def is_immediate_match(
    route: Route, raw_segment: UrlSegmentGroup, segments: List[UrlSegment], outlet: str
) -> bool:
    """Path-level match only; children are not checked."""
    if get_outlet(route) != outlet and (
        outlet == PRIMARY_OUTLET or not _empty_path_match(raw_segment, segments, route)
    ):
        return False
    if route.path == "**":
        return True
    return match(raw_segment, route, segments) is not None


def no_leftovers_in_url(
    segment_group: UrlSegmentGroup, segments: List[UrlSegment], outlet: str
) -> bool:
    return not segments and outlet not in segment_group.children


def split(
    segment_group: UrlSegmentGroup,
    consumed_segments: List[UrlSegment],
    sliced_segments: List[UrlSegment],
    config: Routes,
) -> SplitResult:
    """Inject empty groups for empty-path entries so they match on this pass."""
    if sliced_segments and any(
        _empty_path_match(segment_group, sliced_segments, route)
        and get_outlet(route) != PRIMARY_OUTLET
        for route in config
    ):
        group = UrlSegmentGroup(
            consumed_segments,
            _create_children_for_empty_paths(
                segment_group,
                consumed_segments,
                config,
                UrlSegmentGroup(sliced_segments, segment_group.children),
            ),
        )
        group.source_segment = segment_group
        group.segment_index_shift = len(consumed_segments)
        return SplitResult(group, [])

    if not sliced_segments and any(
        _empty_path_match(segment_group, sliced_segments, route) for route in config
    ):
        group = UrlSegmentGroup(
            segment_group.segments,
            _add_empty_paths_to_children_if_needed(
                segment_group, consumed_segments, sliced_segments, config
            ),
        )
        group.source_segment = segment_group
        group.segment_index_shift = len(consumed_segments)
        return SplitResult(group, sliced_segments)

    group = UrlSegmentGroup(segment_group.segments, segment_group.children)
    group.source_segment = segment_group
    group.segment_index_shift = len(consumed_segments)
    return SplitResult(group, sliced_segments)


def _add_empty_paths_to_children_if_needed(
    segment_group: UrlSegmentGroup,
    consumed_segments: List[UrlSegment],
    sliced_segments: List[UrlSegment],
    routes: Routes,
) -> Dict[str, UrlSegmentGroup]:
    added: Dict[str, UrlSegmentGroup] = {}
    for route in routes:
        outlet = get_outlet(route)
        if (
            _empty_path_match(segment_group, sliced_segments, route)
            and outlet not in segment_group.children
            and outlet not in added
        ):
            group = UrlSegmentGroup([], {})
            group.source_segment = segment_group
            group.segment_index_shift = len(consumed_segments)
            added[outlet] = group
    return {**segment_group.children, **added}


def _create_children_for_empty_paths(
    segment_group: UrlSegmentGroup,
    consumed_segments: List[UrlSegment],
    routes: Routes,
    primary_segment: UrlSegmentGroup,
) -> Dict[str, UrlSegmentGroup]:
    primary_segment.source_segment = segment_group
    primary_segment.segment_index_shift = len(consumed_segments)
    children: Dict[str, UrlSegmentGroup] = {PRIMARY_OUTLET: primary_segment}
    for route in routes:
        outlet = get_outlet(route)
        if route.path == "" and outlet != PRIMARY_OUTLET:
            group = UrlSegmentGroup([], {})
            group.source_segment = segment_group
            group.segment_index_shift = len(consumed_segments)
            children[outlet] = group
    return children


def get_source_segment_group(segment_group: UrlSegmentGroup) -> UrlSegmentGroup:
    group = segment_group
    while group.source_segment is not None:
        group = group.source_segment
    return group


def get_path_index_shift(segment_group: UrlSegmentGroup) -> int:
    group = segment_group
    shift = group.segment_index_shift or 0
    while group.source_segment is not None:
        group = group.source_segment
        shift += group.segment_index_shift or 0
    return shift - 1


# ----------------------------------------------------------------------
# Sibling post-processing
# ----------------------------------------------------------------------
def _has_empty_path_config(node: TreeNode[ActivatedRouteSnapshot]) -> bool:
    config = node.value.route_config
    return config is not None and config.path == "" and config.redirect_to is None


def merge_empty_path_matches(nodes: SnapshotNodes) -> SnapshotNodes:
    """Fold siblings that matched the same empty-path entry into one node."""
    result: SnapshotNodes = []
    merged: List[TreeNode[ActivatedRouteSnapshot]] = []
    for node in nodes:
        if not _has_empty_path_config(node):
            result.append(node)
            continue
        duplicate = next(
            (
                candidate
                for candidate in result
                if candidate.value.route_config is node.value.route_config
            ),
            None,
        )
        if duplicate is not None:
            duplicate.children.extend(node.children)
            if not any(item is duplicate for item in merged):
                merged.append(duplicate)
        else:
            result.append(node)
    for node in merged:
        result.append(TreeNode(node.value, merge_empty_path_matches(node.children)))
    return [node for node in result if not any(node is item for item in merged)]


def check_outlet_name_uniqueness(nodes: SnapshotNodes) -> None:
    seen: Dict[str, ActivatedRouteSnapshot] = {}
    for node in nodes:
        existing = seen.get(node.value.outlet)
        if existing is not None:
            first = "/".join(str(segment) for segment in existing.url)
            second = "/".join(str(segment) for segment in node.value.url)
            raise DuplicateOutletError(first, second)
        seen[node.value.outlet] = node.value


def sort_activated_route_snapshots(nodes: SnapshotNodes) -> None:
    nodes.sort(
        key=lambda node: (node.value.outlet != PRIMARY_OUTLET, node.value.outlet)
    )
