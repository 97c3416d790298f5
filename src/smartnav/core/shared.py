"""Small shared primitives: outlet constant, parameter maps, URL matcher."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from .config import Route
    from .url_tree import UrlSegment, UrlSegmentGroup

__all__ = [
    "PRIMARY_OUTLET",
    "ParamMap",
    "convert_to_param_map",
    "UrlMatchResult",
    "default_url_matcher",
    "shallow_equal",
    "equal_lists_or_string",
]

PRIMARY_OUTLET = "primary"


class ParamMap:
    """Read-only view over a params dict; list values hold repeated keys."""

    __slots__ = ("params",)

    def __init__(self, params: Optional[Mapping[str, Any]] = None):
        self.params = dict(params or {})

    def has(self, name: str) -> bool:
        return name in self.params

    def get(self, name: str) -> Optional[Any]:
        if not self.has(name):
            return None
        value = self.params[name]
        return value[0] if isinstance(value, list) else value

    def get_all(self, name: str) -> List[Any]:
        if not self.has(name):
            return []
        value = self.params[name]
        return list(value) if isinstance(value, list) else [value]

    @property
    def keys(self) -> List[str]:
        return list(self.params)

    def __repr__(self) -> str:
        return f"ParamMap({self.params!r})"


def convert_to_param_map(params: Optional[Mapping[str, Any]]) -> ParamMap:
    return ParamMap(params)


@dataclass
class UrlMatchResult:
    consumed: List["UrlSegment"]
    pos_params: Dict[str, "UrlSegment"] = field(default_factory=dict)


def default_url_matcher(
    segments: List["UrlSegment"], segment_group: "UrlSegmentGroup", route: "Route"
) -> Optional[UrlMatchResult]:
    """Match ``route.path`` against a prefix of ``segments``.

    ``:name`` parts capture positional params. With ``path_match="full"`` the
    path must consume every segment and the group must have no children.
    """
    parts = route.path.split("/")
    if len(parts) > len(segments):
        return None
    if route.path_match == "full" and (
        segment_group.has_children() or len(parts) < len(segments)
    ):
        return None
    pos_params: Dict[str, "UrlSegment"] = {}
    for index, part in enumerate(parts):
        segment = segments[index]
        if part.startswith(":"):
            pos_params[part[1:]] = segment
        elif part != segment.path:
            return None
    return UrlMatchResult(consumed=list(segments[: len(parts)]), pos_params=pos_params)


def equal_lists_or_string(a: Any, b: Any) -> bool:
    if isinstance(a, list) and isinstance(b, list):
        if len(a) != len(b):
            return False
        return sorted(map(str, a)) == sorted(map(str, b))
    return a == b


def shallow_equal(a: Optional[Mapping[str, Any]], b: Optional[Mapping[str, Any]]) -> bool:
    a = a or {}
    b = b or {}
    if set(a) != set(b):
        return False
    return all(equal_lists_or_string(a[key], b[key]) for key in a)

