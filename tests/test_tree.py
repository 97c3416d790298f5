"""Tests for the arena-backed ownership tree."""

from smartnav.core.tree import Tree, TreeNode, node_children_as_map


class Item:
    def __init__(self, name, outlet="primary"):
        self.name = name
        self.outlet = outlet

    def __repr__(self):
        return self.name


def _sample():
    root, a, b, c = Item("root"), Item("a"), Item("b", outlet="aux"), Item("c")
    tree = Tree(TreeNode(root, [TreeNode(a, [TreeNode(c)]), TreeNode(b)]))
    return tree, root, a, b, c


def test_arena_ids_follow_pre_order():
    tree, root, a, b, c = _sample()
    assert [tree.arena_id(value) for value in (root, a, c, b)] == [0, 1, 2, 3]
    assert list(tree.values()) == [root, a, c, b]
    assert len(tree) == 4


def test_navigation_helpers():
    tree, root, a, b, c = _sample()
    assert tree.root is root
    assert tree.parent(root) is None
    assert tree.parent(c) is a
    assert tree.children(root) == [a, b]
    assert tree.first_child(a) is c
    assert tree.first_child(c) is None
    assert tree.siblings(a) == [b]
    assert tree.siblings(root) == []
    assert tree.path_from_root(c) == [root, a, c]


def test_lookups_are_by_identity():
    tree, root, a, b, c = _sample()
    stranger = Item("a")
    assert tree.parent(stranger) is None
    assert tree.children(stranger) == []
    assert tree.path_from_root(stranger) == []
    assert tree.node(stranger) is None
    assert tree.node(a).value is a


def test_node_children_as_map_uses_outlets():
    tree, root, a, b, c = _sample()
    mapping = node_children_as_map(tree.root_node)
    assert set(mapping) == {"primary", "aux"}
    assert mapping["aux"].value is b
    assert node_children_as_map(None) == {}
