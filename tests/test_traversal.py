"""Tests for the filtered AST traversal engine."""

from cxt_cli.traversal import flatten, traverse

from conftest import FakeNode


def _names(nodes):
    return [n.name for n in nodes]


def test_reference_tree_with_ignore_set(sample_tree: FakeNode):
    """Test system-header and ignored-kind pruning on the reference tree."""
    assert _names(flatten(sample_tree, {"X"})) == ["root", "B"]


def test_reference_tree_without_ignore_set(sample_tree: FakeNode):
    """Test only the system-header subtree is pruned by default."""
    assert _names(flatten(sample_tree)) == ["root", "B", "B1"]


def test_root_kept_even_if_ignored_or_system():
    """Test the root is always kept, but an ignored root is not expanded."""
    root = FakeNode("X", "root", system=True, kids=[FakeNode("Y", "child")])

    assert _names(flatten(root)) == ["root", "child"]
    assert _names(flatten(root, {"X"})) == ["root"]


def test_ignored_kind_kept_but_not_expanded():
    """Test an ignored node is visited while its whole subtree is skipped."""
    root = FakeNode(
        "TU", "r",
        kids=[
            FakeNode("NAMESPACE", "ns", kids=[FakeNode("F", "inner", kids=[FakeNode("P", "deep")])]),
            FakeNode("F", "after"),
        ],
    )
    assert _names(flatten(root, {"NAMESPACE"})) == ["r", "ns", "after"]


def test_preorder_sibling_order():
    """Test parent before descendants and siblings in parser order."""
    root = FakeNode(
        "TU", "r",
        kids=[
            FakeNode("NS", "a", kids=[FakeNode("F", "a1"), FakeNode("F", "a2", kids=[FakeNode("P", "a2x")])]),
            FakeNode("F", "b"),
            FakeNode("NS", "c", kids=[FakeNode("F", "c1")]),
        ],
    )
    assert _names(flatten(root)) == ["r", "a", "a1", "a2", "a2x", "b", "c", "c1"]


def test_system_nodes_deep_in_tree_pruned():
    """Test a system-header node prunes its subtree at any depth."""
    root = FakeNode(
        "TU", "r",
        kids=[FakeNode("NS", "a", kids=[FakeNode("F", "sys", system=True, kids=[FakeNode("F", "inner")]), FakeNode("F", "user")])],
    )
    assert _names(flatten(root)) == ["r", "a", "user"]


def test_empty_ignore_set_prunes_nothing_by_kind(sample_tree: FakeNode):
    """Test an empty ignore set behaves like no ignore set."""
    assert _names(flatten(sample_tree, set())) == ["root", "B", "B1"]


def test_leaf_root():
    """Test a tree with a single node."""
    assert _names(flatten(FakeNode("TU", "only"))) == ["only"]


class TestTraverse:
    """Tests for visitor dispatch."""

    def test_visitor_called_in_order(self, sample_tree: FakeNode):
        """Test the visitor sees exactly the flattened sequence."""
        seen = []

        def visitor(node):
            seen.append(node.name)
            return node.kind == "X"

        stats = traverse(sample_tree, visitor)

        assert seen == ["root", "B", "B1"]
        assert stats.visited == 3
        assert stats.matched == 2

    def test_return_value_does_not_affect_traversal(self, sample_tree: FakeNode):
        """Test a visitor returning False for everything still sees every node."""
        seen = []
        stats = traverse(sample_tree, lambda n: seen.append(n.name) or False, {"X"})

        assert seen == ["root", "B"]
        assert stats.matched == 0
