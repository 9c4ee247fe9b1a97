"""Depth-first pre-order traversal with a per-node failure boundary."""

from typing import Any, Callable, Sequence

Visitor = Callable[[Any], None]
ChildrenFn = Callable[[Any], Sequence[Any]]


def visit_safely(visitor: Visitor, node: Any) -> bool:
    """Run visitor on one node; any exception means "no information here".

    Returns False when the visitor raised. Callers never need the exception:
    resolution failures on a single node must not abort the walk.
    """
    try:
        visitor(node)
    except Exception:
        return False
    return True


def walk(root: Any, children: ChildrenFn, visitor: Visitor) -> int:
    """Visit every descendant of root exactly once, parents before children.

    The root itself is not visited (a source file is a container, not a usage
    site). Children are always descended into, whatever the visitor found or
    raised at the parent. Iterative, so deep trees cannot exhaust the
    interpreter stack.

    Returns the number of nodes visited.
    """
    stack = list(reversed(children(root)))
    visited = 0
    while stack:
        node = stack.pop()
        visited += 1
        visit_safely(visitor, node)
        try:
            kids = children(node)
        except Exception:
            continue
        stack.extend(reversed(kids))
    return visited
