"""Structural checks for priority forests."""
from __future__ import annotations

from typing import TYPE_CHECKING

from .errors import ForestStructureError

if TYPE_CHECKING:  # pragma: no cover - import for type hints only
    from .forest import PriorityForest, TreeNode


def _check_tree(root: "TreeNode") -> int:
    """Validate one binomial tree and return its node count."""

    count = 0
    stack = [root]
    while stack:
        node = stack.pop()
        count += 1
        expected_degree = node.degree - 1
        child = node.child
        while child is not None:
            if child.parent is not node:
                raise ForestStructureError(f"{child!r} does not point back to its parent {node!r}")
            if child.degree != expected_degree:
                raise ForestStructureError(
                    f"{node!r} has a child of degree {child.degree}, expected {expected_degree}"
                )
            if child.priority < node.priority:
                raise ForestStructureError(f"heap order violated: {child!r} sits below {node!r}")
            stack.append(child)
            expected_degree -= 1
            child = child.sibling
        if expected_degree != -1:
            raise ForestStructureError(f"{node!r} is missing children of degree {expected_degree} and below")

    if count != 2 ** root.degree:
        raise ForestStructureError(
            f"tree rooted at {root!r} holds {count} nodes, expected {2 ** root.degree}"
        )
    return count


def check_forest(forest: "PriorityForest") -> None:
    """Raise :class:`ForestStructureError` on the first broken invariant."""

    previous_degree = -1
    total = 0
    for root in forest.roots():
        if root.parent is not None:
            raise ForestStructureError(f"root {root!r} still has a parent")
        if root.sibling is not None:
            raise ForestStructureError(f"root {root!r} carries a sibling link")
        if root.degree <= previous_degree:
            raise ForestStructureError(
                f"root degrees are not strictly increasing: {forest.root_degrees()}"
            )
        previous_degree = root.degree
        total += _check_tree(root)

    if total != forest.size():
        raise ForestStructureError(f"forest reports size {forest.size()} but holds {total} nodes")


def is_valid_forest(forest: "PriorityForest") -> bool:
    try:
        check_forest(forest)
    except ForestStructureError:
        return False
    return True


__all__ = ["check_forest", "is_valid_forest"]
