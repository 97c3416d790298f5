"""URL tree model and default serializer (source of truth).

Objects
-------
``UrlSegment(path, parameters)``
    One path segment plus its matrix parameters (``;k=v``).
``UrlSegmentGroup(segments, children)``
    Ordered segments plus ``outlet name -> child group``. Constructing a group
    installs ``parent`` on every child. ``source_segment`` and
    ``segment_index_shift`` record which group a synthetic group was split
    from and how many segments were consumed before it; the recognizer uses
    them to recover original indices.
``UrlTree(root, query_params, fragment)``
    The root group never holds segments of its own; ``query_params`` values are
    strings or lists of strings (repeated keys).

Serializer
----------
``UrlSerializer`` is the abstract collaborator (``parse``/``serialize``).
``DefaultUrlSerializer`` implements the grammar::

    /team/33;flag=1/user/11(aux:chat//side:help)?q=1&q=2#anchor

- ``(...)`` holds named outlets separated by ``//``; ``/(`` opens children of
  the preceding segment group.
- Segments and matrix keys/values are percent-decoded; query keys/values also
  map ``+`` to a space.
- Malformed percent escapes and unbalanced groups raise ``MalformedUrlError``.

Comparison
----------
``contains_tree(container, containee, options)`` implements active-route
checks with ``IsActiveMatchOptions``: ``paths`` is ``"exact"`` or
``"subset"``; ``query_params`` and ``matrix_params`` are ``"exact"``,
``"subset"`` or ``"ignored"``; ``fragment`` is ``"exact"`` or ``"ignored"``.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote, unquote

from .errors import MalformedUrlError
from .shared import PRIMARY_OUTLET, ParamMap, equal_lists_or_string, shallow_equal

__all__ = [
    "UrlSegment",
    "UrlSegmentGroup",
    "UrlTree",
    "UrlSerializer",
    "DefaultUrlSerializer",
    "IsActiveMatchOptions",
    "EXACT_MATCH_OPTIONS",
    "SUBSET_MATCH_OPTIONS",
    "contains_tree",
    "create_empty_url_tree",
    "equal_segments",
    "equal_path",
    "serialize_path",
    "serialize_paths",
]


class UrlSegment:
    __slots__ = ("path", "parameters")

    def __init__(self, path: str, parameters: Optional[Dict[str, str]] = None):
        self.path = path
        self.parameters: Dict[str, str] = dict(parameters or {})

    @property
    def parameter_map(self) -> ParamMap:
        return ParamMap(self.parameters)

    def __str__(self) -> str:
        return serialize_path(self)

    def __repr__(self) -> str:
        return f"UrlSegment({str(self)!r})"


class UrlSegmentGroup:
    __slots__ = ("segments", "children", "parent", "source_segment", "segment_index_shift")

    def __init__(
        self,
        segments: Optional[List[UrlSegment]] = None,
        children: Optional[Dict[str, "UrlSegmentGroup"]] = None,
    ):
        self.segments: List[UrlSegment] = list(segments or [])
        self.children: Dict[str, UrlSegmentGroup] = dict(children or {})
        self.parent: Optional[UrlSegmentGroup] = None
        self.source_segment: Optional[UrlSegmentGroup] = None
        self.segment_index_shift: Optional[int] = None
        for child in self.children.values():
            child.parent = self

    def has_children(self) -> bool:
        return self.number_of_children > 0

    @property
    def number_of_children(self) -> int:
        return len(self.children)

    def __str__(self) -> str:
        return serialize_paths(self)

    def __repr__(self) -> str:
        return f"UrlSegmentGroup({serialize_segment(self, False)!r})"


class UrlTree:
    __slots__ = ("root", "query_params", "fragment")

    def __init__(
        self,
        root: Optional[UrlSegmentGroup] = None,
        query_params: Optional[Dict[str, Any]] = None,
        fragment: Optional[str] = None,
    ):
        self.root = root if root is not None else UrlSegmentGroup()
        self.query_params: Dict[str, Any] = dict(query_params or {})
        self.fragment = fragment

    @property
    def query_param_map(self) -> ParamMap:
        return ParamMap(self.query_params)

    def __str__(self) -> str:
        return _DEFAULT_SERIALIZER.serialize(self)

    def __repr__(self) -> str:
        return f"UrlTree({str(self)!r})"


def create_empty_url_tree() -> UrlTree:
    return UrlTree(UrlSegmentGroup(), {}, None)


# ----------------------------------------------------------------------
# Comparison helpers
# ----------------------------------------------------------------------
def equal_path(a: List[UrlSegment], b: List[UrlSegment]) -> bool:
    if len(a) != len(b):
        return False
    return all(x.path == y.path for x, y in zip(a, b))


def equal_segments(a: List[UrlSegment], b: List[UrlSegment]) -> bool:
    return equal_path(a, b) and all(
        shallow_equal(x.parameters, y.parameters) for x, y in zip(a, b)
    )


@dataclass(frozen=True)
class IsActiveMatchOptions:
    paths: str = "subset"
    query_params: str = "subset"
    fragment: str = "ignored"
    matrix_params: str = "ignored"


EXACT_MATCH_OPTIONS = IsActiveMatchOptions(
    paths="exact", query_params="exact", fragment="ignored", matrix_params="ignored"
)
SUBSET_MATCH_OPTIONS = IsActiveMatchOptions(
    paths="subset", query_params="subset", fragment="ignored", matrix_params="ignored"
)


def _contains_params(container: Dict[str, Any], containee: Dict[str, Any]) -> bool:
    return len(containee) <= len(container) and all(
        key in container and equal_lists_or_string(container[key], containee[key])
        for key in containee
    )


_PARAM_COMPARE: Dict[str, Callable[[Dict[str, Any], Dict[str, Any]], bool]] = {
    "exact": shallow_equal,
    "subset": _contains_params,
    "ignored": lambda container, containee: True,
}


def _matrix_params_match(
    container_paths: List[UrlSegment], containee_paths: List[UrlSegment], option: str
) -> bool:
    compare = _PARAM_COMPARE[option]
    return all(
        compare(container_paths[i].parameters, segment.parameters)
        for i, segment in enumerate(containee_paths)
    )


def _equal_segment_groups(
    container: UrlSegmentGroup, containee: UrlSegmentGroup, matrix_params: str
) -> bool:
    if not equal_path(container.segments, containee.segments):
        return False
    if not _matrix_params_match(container.segments, containee.segments, matrix_params):
        return False
    if container.number_of_children != containee.number_of_children:
        return False
    for outlet, child in containee.children.items():
        if outlet not in container.children:
            return False
        if not _equal_segment_groups(container.children[outlet], child, matrix_params):
            return False
    return True


def _contains_segment_group(
    container: UrlSegmentGroup, containee: UrlSegmentGroup, matrix_params: str
) -> bool:
    return _contains_segment_group_helper(
        container, containee, containee.segments, matrix_params
    )


def _contains_segment_group_helper(
    container: UrlSegmentGroup,
    containee: UrlSegmentGroup,
    containee_paths: List[UrlSegment],
    matrix_params: str,
) -> bool:
    if len(container.segments) > len(containee_paths):
        current = container.segments[: len(containee_paths)]
        if not equal_path(current, containee_paths):
            return False
        if containee.has_children():
            return False
        return _matrix_params_match(current, containee_paths, matrix_params)
    if len(container.segments) == len(containee_paths):
        if not equal_path(container.segments, containee_paths):
            return False
        if not _matrix_params_match(container.segments, containee_paths, matrix_params):
            return False
        for outlet, child in containee.children.items():
            if outlet not in container.children:
                return False
            if not _contains_segment_group(container.children[outlet], child, matrix_params):
                return False
        return True
    current = containee_paths[: len(container.segments)]
    rest = containee_paths[len(container.segments):]
    if not equal_path(container.segments, current):
        return False
    if not _matrix_params_match(container.segments, current, matrix_params):
        return False
    if PRIMARY_OUTLET not in container.children:
        return False
    return _contains_segment_group_helper(
        container.children[PRIMARY_OUTLET], containee, rest, matrix_params
    )


_PATH_COMPARE = {"exact": _equal_segment_groups, "subset": _contains_segment_group}


def contains_tree(
    container: UrlTree, containee: UrlTree, options: IsActiveMatchOptions
) -> bool:
    """Return True when ``containee`` is active inside ``container``."""
    return (
        _PATH_COMPARE[options.paths](container.root, containee.root, options.matrix_params)
        and _PARAM_COMPARE[options.query_params](container.query_params, containee.query_params)
        and not (options.fragment == "exact" and container.fragment != containee.fragment)
    )


# ----------------------------------------------------------------------
# Serialization
# ----------------------------------------------------------------------
class UrlSerializer(ABC):
    """Converts between URL strings and ``UrlTree`` values."""

    @abstractmethod
    def parse(self, url: str) -> UrlTree:
        raise NotImplementedError

    @abstractmethod
    def serialize(self, tree: UrlTree) -> str:
        raise NotImplementedError


class DefaultUrlSerializer(UrlSerializer):
    def parse(self, url: str) -> UrlTree:
        parser = _UrlParser(url)
        return UrlTree(
            parser.parse_root_segment(), parser.parse_query_params(), parser.parse_fragment()
        )

    def serialize(self, tree: UrlTree) -> str:
        segment = f"/{serialize_segment(tree.root, True)}"
        query = _serialize_query_params(tree.query_params)
        fragment = f"#{_encode_uri_fragment(tree.fragment)}" if isinstance(tree.fragment, str) else ""
        return f"{segment}{query}{fragment}"


_DEFAULT_SERIALIZER = DefaultUrlSerializer()


def _ordered_children(group: UrlSegmentGroup):
    """Primary outlet first, then the others in insertion order."""
    if PRIMARY_OUTLET in group.children:
        yield PRIMARY_OUTLET, group.children[PRIMARY_OUTLET]
    for outlet, child in group.children.items():
        if outlet != PRIMARY_OUTLET:
            yield outlet, child


def serialize_paths(group: UrlSegmentGroup) -> str:
    return "/".join(serialize_path(segment) for segment in group.segments)


def serialize_segment(group: UrlSegmentGroup, root: bool) -> str:
    if not group.has_children():
        return serialize_paths(group)
    if root:
        primary = (
            serialize_segment(group.children[PRIMARY_OUTLET], False)
            if PRIMARY_OUTLET in group.children
            else ""
        )
        named = [
            f"{outlet}:{serialize_segment(child, False)}"
            for outlet, child in group.children.items()
            if outlet != PRIMARY_OUTLET
        ]
        return f"{primary}({'//'.join(named)})" if named else primary
    children = [
        serialize_segment(child, False) if outlet == PRIMARY_OUTLET
        else f"{outlet}:{serialize_segment(child, False)}"
        for outlet, child in _ordered_children(group)
    ]
    if group.number_of_children == 1 and PRIMARY_OUTLET in group.children:
        return f"{serialize_paths(group)}/{children[0]}"
    return f"{serialize_paths(group)}/({'//'.join(children)})"


def _encode_uri_query(value: str) -> str:
    return quote(value, safe="-_.!~*'()@:$,;")


def _encode_uri_segment(value: str) -> str:
    return quote(value, safe="-_.!~*'@:$,&")


def _encode_uri_fragment(value: str) -> str:
    return quote(value, safe=";,/?:@&=+$-_.!~*'()#")


_PERCENT_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def _decode(value: str) -> str:
    if _PERCENT_RE.search(value):
        raise MalformedUrlError(f"URI malformed: '{value}'")
    try:
        return unquote(value, errors="strict")
    except UnicodeDecodeError as exc:
        raise MalformedUrlError(f"URI malformed: '{value}'") from exc


def _decode_query(value: str) -> str:
    return _decode(value.replace("+", "%20"))


def serialize_path(segment: UrlSegment) -> str:
    return f"{_encode_uri_segment(segment.path)}{_serialize_matrix_params(segment.parameters)}"


def _serialize_matrix_params(params: Dict[str, str]) -> str:
    return "".join(
        f";{_encode_uri_segment(str(key))}={_encode_uri_segment(str(value))}"
        for key, value in params.items()
    )


def _serialize_query_params(params: Dict[str, Any]) -> str:
    parts = []
    for name, value in params.items():
        if isinstance(value, list):
            parts.extend(f"{_encode_uri_query(name)}={_encode_uri_query(str(v))}" for v in value)
        else:
            parts.append(f"{_encode_uri_query(name)}={_encode_uri_query(str(value))}")
    parts = [part for part in parts if part]
    return f"?{'&'.join(parts)}" if parts else ""


_SEGMENT_RE = re.compile(r"^[^/()?;=#]+")
_QUERY_PARAM_RE = re.compile(r"^[^=?&#]+")
_QUERY_PARAM_VALUE_RE = re.compile(r"^[^&#]+")


def _match(pattern: re.Pattern, value: str) -> str:
    match = pattern.match(value)
    return match.group(0) if match else ""


class _UrlParser:
    __slots__ = ("url", "remaining")

    def __init__(self, url: str):
        self.url = url
        self.remaining = url

    def parse_root_segment(self) -> UrlSegmentGroup:
        self.consume_optional("/")
        if self.remaining == "" or self.peek_starts_with("?") or self.peek_starts_with("#"):
            return UrlSegmentGroup([], {})
        return UrlSegmentGroup([], self.parse_children())

    def parse_query_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if self.consume_optional("?"):
            self.parse_query_param(params)
            while self.consume_optional("&"):
                self.parse_query_param(params)
        return params

    def parse_fragment(self) -> Optional[str]:
        if self.consume_optional("#"):
            return _decode(self.remaining)
        return None

    def parse_children(self) -> Dict[str, UrlSegmentGroup]:
        if self.remaining == "":
            return {}
        self.consume_optional("/")
        segments: List[UrlSegment] = []
        if not self.peek_starts_with("("):
            segments.append(self.parse_segment())
        while (
            self.peek_starts_with("/")
            and not self.peek_starts_with("//")
            and not self.peek_starts_with("/(")
        ):
            self.capture("/")
            segments.append(self.parse_segment())
        children: Dict[str, UrlSegmentGroup] = {}
        if self.peek_starts_with("/("):
            self.capture("/")
            children = self.parse_parens(True)
        result: Dict[str, UrlSegmentGroup] = {}
        if self.peek_starts_with("("):
            result = self.parse_parens(False)
        if segments or children:
            result = {PRIMARY_OUTLET: UrlSegmentGroup(segments, children), **result}
        return result

    def parse_segment(self) -> UrlSegment:
        path = _match(_SEGMENT_RE, self.remaining)
        if path == "" and self.peek_starts_with(";"):
            raise MalformedUrlError(
                f"Empty path url segment cannot have parameters: '{self.remaining}'."
            )
        self.capture(path)
        return UrlSegment(_decode(path), self.parse_matrix_params())

    def parse_matrix_params(self) -> Dict[str, str]:
        params: Dict[str, str] = {}
        while self.consume_optional(";"):
            self.parse_param(params)
        return params

    def parse_param(self, params: Dict[str, str]) -> None:
        key = _match(_SEGMENT_RE, self.remaining)
        if not key:
            return
        self.capture(key)
        value = ""
        if self.consume_optional("="):
            value_match = _match(_SEGMENT_RE, self.remaining)
            if value_match:
                value = value_match
                self.capture(value)
        params[_decode(key)] = _decode(value)

    def parse_query_param(self, params: Dict[str, Any]) -> None:
        key = _match(_QUERY_PARAM_RE, self.remaining)
        if not key:
            return
        self.capture(key)
        value = ""
        if self.consume_optional("="):
            value_match = _match(_QUERY_PARAM_VALUE_RE, self.remaining)
            if value_match:
                value = value_match
                self.capture(value)
        decoded_key = _decode_query(key)
        decoded_value = _decode_query(value)
        if decoded_key in params:
            current = params[decoded_key]
            if not isinstance(current, list):
                current = [current]
                params[decoded_key] = current
            current.append(decoded_value)
        else:
            params[decoded_key] = decoded_value

    def parse_parens(self, allow_primary: bool) -> Dict[str, UrlSegmentGroup]:
        segments: Dict[str, UrlSegmentGroup] = {}
        self.capture("(")
        while not self.consume_optional(")") and self.remaining:
            path = _match(_SEGMENT_RE, self.remaining)
            following = self.remaining[len(path): len(path) + 1]
            if following not in ("/", ")", ";"):
                raise MalformedUrlError(f"Cannot parse url '{self.url}'")
            outlet_name: Optional[str] = None
            if ":" in path:
                outlet_name = path[: path.index(":")]
                self.capture(outlet_name)
                self.capture(":")
            elif allow_primary:
                outlet_name = PRIMARY_OUTLET
            if outlet_name is None:
                raise MalformedUrlError(f"Cannot parse url '{self.url}'")
            children = self.parse_children()
            segments[outlet_name] = (
                children[PRIMARY_OUTLET]
                if len(children) == 1 and PRIMARY_OUTLET in children
                else UrlSegmentGroup([], children)
            )
            self.consume_optional("//")
        return segments

    def peek_starts_with(self, value: str) -> bool:
        return self.remaining.startswith(value)

    def consume_optional(self, value: str) -> bool:
        if self.peek_starts_with(value):
            self.remaining = self.remaining[len(value):]
            return True
        return False

    def capture(self, value: str) -> None:
        if not self.consume_optional(value):
            raise MalformedUrlError(f'Expected "{value}".')
