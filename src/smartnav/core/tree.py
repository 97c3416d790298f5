"""Generic ownership tree (source of truth).

``TreeNode`` owns a value and an ordered list of child nodes. ``Tree`` wraps a
root node and indexes it into a flat arena when constructed:

- every node gets an integer arena id in pre-order (root is ``0``);
- ``_parents[i]`` holds the arena id of the parent (``-1`` for the root);
- ``_children[i]`` lists the arena ids of the children in order;
- ``_index`` maps ``id(value)`` to the arena id.

All lookups (``parent``, ``children``, ``first_child``, ``siblings``,
``path_from_root``) are by identity of the value, never by equality, and run
against the arena instead of walking the node graph. A value that is not part
of the tree yields ``None`` or an empty list.

The arena is built once; trees are not mutated after construction. Code that
needs a different shape builds a new ``Tree``.
"""

from __future__ import annotations

from typing import Any, Dict, Generic, Iterator, List, Optional, TypeVar

__all__ = ["Tree", "TreeNode", "node_children_as_map"]

T = TypeVar("T")


class TreeNode(Generic[T]):
    __slots__ = ("value", "children")

    def __init__(self, value: T, children: Optional[List["TreeNode[T]"]] = None):
        self.value = value
        self.children: List[TreeNode[T]] = list(children or [])

    def __repr__(self) -> str:
        return f"TreeNode({self.value!r})"


class Tree(Generic[T]):
    __slots__ = ("_root", "_nodes", "_parents", "_children", "_index")

    def __init__(self, root: TreeNode[T]):
        self._root = root
        self._nodes: List[TreeNode[T]] = []
        self._parents: List[int] = []
        self._children: List[List[int]] = []
        self._index: Dict[int, int] = {}
        self._build(root)

    def _build(self, root: TreeNode[T]) -> None:
        stack = [(root, -1)]
        while stack:
            node, parent_id = stack.pop()
            arena_id = len(self._nodes)
            self._nodes.append(node)
            self._parents.append(parent_id)
            self._children.append([])
            self._index[id(node.value)] = arena_id
            if parent_id >= 0:
                self._children[parent_id].append(arena_id)
            for child in reversed(node.children):
                stack.append((child, arena_id))

    # ------------------------------------------------------------------
    # Arena access
    # ------------------------------------------------------------------
    def arena_id(self, value: Any) -> Optional[int]:
        return self._index.get(id(value))

    def node(self, value: Any) -> Optional[TreeNode[T]]:
        arena_id = self.arena_id(value)
        return None if arena_id is None else self._nodes[arena_id]

    def values(self) -> Iterator[T]:
        """Iterate values in pre-order."""
        return (node.value for node in self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    # ------------------------------------------------------------------
    # Lookups by identity
    # ------------------------------------------------------------------
    @property
    def root_node(self) -> TreeNode[T]:
        return self._root

    @property
    def root(self) -> T:
        return self._root.value

    def parent(self, value: Any) -> Optional[T]:
        arena_id = self.arena_id(value)
        if arena_id is None or self._parents[arena_id] < 0:
            return None
        return self._nodes[self._parents[arena_id]].value

    def children(self, value: Any) -> List[T]:
        arena_id = self.arena_id(value)
        if arena_id is None:
            return []
        return [self._nodes[child].value for child in self._children[arena_id]]

    def first_child(self, value: Any) -> Optional[T]:
        children = self.children(value)
        return children[0] if children else None

    def siblings(self, value: Any) -> List[T]:
        arena_id = self.arena_id(value)
        if arena_id is None or self._parents[arena_id] < 0:
            return []
        return [
            self._nodes[child].value
            for child in self._children[self._parents[arena_id]]
            if child != arena_id
        ]

    def path_from_root(self, value: Any) -> List[T]:
        arena_id = self.arena_id(value)
        path: List[T] = []
        while arena_id is not None and arena_id >= 0:
            path.append(self._nodes[arena_id].value)
            arena_id = self._parents[arena_id]
        path.reverse()
        return path


def node_children_as_map(node: Optional[TreeNode[Any]]) -> Dict[str, TreeNode[Any]]:
    """Map outlet name to child node (values must expose ``outlet``)."""
    if node is None:
        return {}
    return {child.value.outlet: child for child in node.children}
