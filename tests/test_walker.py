"""Tests for the pre-order walk and its per-node failure boundary."""

from extcompat.kernel.walker import visit_safely, walk


def _children(tree):
    def children(name):
        return tree.get(name, [])
    return children


TREE = {
    "root": ["a", "d"],
    "a": ["b", "c"],
    "d": ["e"],
}


def test_preorder_skips_root():
    seen = []
    count = walk("root", _children(TREE), seen.append)
    assert seen == ["a", "b", "c", "d", "e"]
    assert count == 5


def test_visitor_failure_does_not_stop_descent():
    """A raising visitor at a parent still lets its children be visited."""
    seen = []

    def visitor(node):
        seen.append(node)
        if node in ("a", "d"):
            raise ValueError(node)

    walk("root", _children(TREE), visitor)
    assert seen == ["a", "b", "c", "d", "e"]


def test_children_failure_skips_only_that_subtree():
    def children(name):
        if name == "a":
            raise RuntimeError("broken node")
        return TREE.get(name, [])

    seen = []
    walk("root", children, seen.append)
    assert seen == ["a", "d", "e"]


def test_visit_safely_reports_failure():
    def boom(_):
        raise KeyError("x")

    assert visit_safely(boom, "node") is False
    assert visit_safely(lambda node: None, "node") is True


def test_deep_tree_is_walked_iteratively():
    depth = 5000
    tree = {i: [i + 1] for i in range(depth)}
    count = walk(0, lambda n: tree.get(n, []), lambda n: None)
    assert count == depth
