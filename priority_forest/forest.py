"""Binomial heap used to order waitlisted requests by priority.

A :class:`PriorityForest` is a list of binomial-tree roots kept in strictly
increasing degree order. Each tree is stored as explicit parent/child/sibling
links: a node's ``child`` is the head of a singly-linked chain of its children
(highest degree first), and ``sibling`` points to the next node in that chain.
Roots never carry a sibling link; the root list itself is a Python list.

Inserting and extracting both funnel through the same two passes:

* ``_merge_root_lists`` interleaves two degree-ordered root lists, leaving
  duplicate degrees in place;
* ``_consolidate`` links equal-degree roots until at most one root per degree
  remains.

Smaller priority values are served first.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, NamedTuple, Optional, Tuple

from .errors import EmptyHeapError, ForestStructureError
from .validation import check_forest

_CHECKS_ENABLED = os.environ.get("PRIORITY_FOREST_CHECKS", "").strip().lower() in {
    "1",
    "true",
    "yes",
}


class Entry(NamedTuple):
    """An immutable ``(priority, payload)`` pair stored in the forest."""

    priority: Any
    payload: Any


@dataclass(eq=False, repr=False)
class TreeNode:
    """One node of a binomial tree."""

    entry: Entry
    degree: int = 0
    parent: Optional["TreeNode"] = None
    child: Optional["TreeNode"] = None
    sibling: Optional["TreeNode"] = None

    @property
    def priority(self) -> Any:
        return self.entry.priority

    @property
    def payload(self) -> Any:
        return self.entry.payload

    def __repr__(self) -> str:
        return f"TreeNode(priority={self.priority!r}, payload={self.payload!r}, degree={self.degree})"


class PriorityForest:
    """Mergeable min-priority queue backed by binomial trees.

    ``check_invariants`` runs :func:`priority_forest.validation.check_forest`
    after every mutation. It defaults to the ``PRIORITY_FOREST_CHECKS``
    environment variable and is meant for tests and debugging.
    """

    def __init__(self, *, check_invariants: Optional[bool] = None) -> None:
        self._roots: List[TreeNode] = []
        self._count = 0
        self._check = _CHECKS_ENABLED if check_invariants is None else bool(check_invariants)

    @classmethod
    def from_entries(
        cls, entries: Iterable[Tuple[Any, Any]], *, check_invariants: Optional[bool] = None
    ) -> "PriorityForest":
        """Build a forest by inserting each ``(priority, payload)`` in turn."""

        forest = cls(check_invariants=check_invariants)
        for priority, payload in entries:
            forest.insert(priority, payload)
        return forest

    # -- public interface -------------------------------------------------

    def insert(self, priority: Any, payload: Any) -> None:
        node = TreeNode(Entry(priority, payload))
        self._roots = self._merge_root_lists(self._roots, [node])
        self._count += 1
        self._consolidate()
        self._verify()

    def peek_min(self) -> Entry:
        """Return the entry with the smallest priority without removing it."""

        return self._roots[self._min_root_index("peek_min")].entry

    def extract_min(self) -> Entry:
        """Remove and return the entry with the smallest priority."""

        node = self._roots.pop(self._min_root_index("extract_min"))

        # The child chain runs from degree d-1 down to 0; as roots they must
        # run upwards, so collect and reverse.
        orphans: List[TreeNode] = []
        child = node.child
        while child is not None:
            next_sibling = child.sibling
            child.parent = None
            child.sibling = None
            orphans.append(child)
            child = next_sibling
        orphans.reverse()
        node.child = None
        node.degree = 0

        self._roots = self._merge_root_lists(self._roots, orphans)
        self._count -= 1
        self._consolidate()
        self._verify()
        return node.entry

    def merge(self, other: "PriorityForest") -> None:
        """Move every entry of ``other`` into this forest, leaving ``other`` empty."""

        if other is self:
            raise ValueError("cannot merge a forest with itself")
        self._roots = self._merge_root_lists(self._roots, other._roots)
        self._count += other._count
        other._roots = []
        other._count = 0
        self._consolidate()
        self._verify()

    def size(self) -> int:
        return self._count

    def is_empty(self) -> bool:
        return not self._roots

    def clear(self) -> int:
        """Release every node and empty the forest.

        Returns the number of nodes visited. Traversal uses an explicit stack,
        so arbitrarily wide or deep forests are safe.
        """

        stack = list(self._roots)
        self._roots = []
        self._count = 0
        visited = 0
        while stack:
            node = stack.pop()
            if node.child is not None:
                stack.append(node.child)
            if node.sibling is not None:
                stack.append(node.sibling)
            node.parent = node.child = node.sibling = None
            visited += 1
        return visited

    # -- views ------------------------------------------------------------

    def roots(self) -> List[TreeNode]:
        return list(self._roots)

    def root_degrees(self) -> List[int]:
        return [root.degree for root in self._roots]

    def iter_nodes(self) -> Iterator[TreeNode]:
        """Yield every node once, each parent before its children."""

        stack = list(reversed(self._roots))
        while stack:
            node = stack.pop()
            yield node
            if node.sibling is not None:
                stack.append(node.sibling)
            if node.child is not None:
                stack.append(node.child)

    def count_nodes(self) -> int:
        """Count nodes by traversal instead of trusting the running counter."""

        return sum(1 for _ in self.iter_nodes())

    def copy(self) -> "PriorityForest":
        """Return an independent forest with the same shape and entries."""

        clone = type(self)(check_invariants=self._check)
        pairs: List[Tuple[TreeNode, TreeNode]] = []
        for root in self._roots:
            twin = TreeNode(root.entry, degree=root.degree)
            clone._roots.append(twin)
            pairs.append((root, twin))

        while pairs:
            source, twin = pairs.pop()
            previous: Optional[TreeNode] = None
            child = source.child
            while child is not None:
                child_twin = TreeNode(child.entry, degree=child.degree, parent=twin)
                if previous is None:
                    twin.child = child_twin
                else:
                    previous.sibling = child_twin
                pairs.append((child, child_twin))
                previous = child_twin
                child = child.sibling

        clone._count = self._count
        return clone

    def drain(self) -> Iterator[Entry]:
        """Extract entries in priority order until the forest is empty."""

        while self._roots:
            yield self.extract_min()

    def ordered(self) -> Iterator[Entry]:
        """Iterate entries in priority order without touching this forest."""

        return self.copy().drain()

    # -- internals --------------------------------------------------------

    @staticmethod
    def _merge_root_lists(first: List[TreeNode], second: List[TreeNode]) -> List[TreeNode]:
        merged: List[TreeNode] = []
        i = j = 0
        while i < len(first) and j < len(second):
            if first[i].degree <= second[j].degree:
                merged.append(first[i])
                i += 1
            else:
                merged.append(second[j])
                j += 1
        merged.extend(first[i:])
        merged.extend(second[j:])
        return merged

    def _consolidate(self) -> None:
        if len(self._roots) <= 1:
            return

        # pending[d] holds the single tree of degree d seen so far.
        pending: List[Optional[TreeNode]] = []
        for current in self._roots:
            degree = current.degree
            while degree < len(pending) and pending[degree] is not None:
                other = pending[degree]
                pending[degree] = None
                if current.priority < other.priority:
                    self._link(other, current)
                else:
                    self._link(current, other)
                    current = other
                degree += 1
            if degree >= len(pending):
                pending.extend([None] * (degree + 1 - len(pending)))
            pending[degree] = current

        self._roots = [root for root in pending if root is not None]

    @staticmethod
    def _link(child: TreeNode, parent: TreeNode) -> None:
        if child.degree != parent.degree:
            raise ForestStructureError(
                f"cannot link a degree {child.degree} tree under a degree {parent.degree} tree"
            )
        child.parent = parent
        child.sibling = parent.child
        parent.child = child
        parent.degree += 1

    def _min_root_index(self, operation: str) -> int:
        if not self._roots:
            raise EmptyHeapError(f"{operation}() on an empty forest")
        best = 0
        for index in range(1, len(self._roots)):
            if self._roots[index].priority < self._roots[best].priority:
                best = index
        return best

    def _verify(self) -> None:
        if self._check:
            check_forest(self)

    # -- protocol support -------------------------------------------------

    def __len__(self) -> int:
        return self._count

    def __bool__(self) -> bool:
        return bool(self._roots)

    def __enter__(self) -> "PriorityForest":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.clear()

    def __del__(self) -> None:
        if getattr(self, "_roots", None):
            self.clear()

    def __repr__(self) -> str:
        return f"PriorityForest(size={self._count}, root_degrees={self.root_degrees()})"


__all__ = ["Entry", "TreeNode", "PriorityForest"]
