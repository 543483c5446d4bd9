"""Binomial-heap priority queue used for flight waitlists."""
from .errors import EmptyHeapError, ForestStructureError
from .forest import Entry, PriorityForest, TreeNode
from .validation import check_forest, is_valid_forest

__all__ = [
    "Entry",
    "TreeNode",
    "PriorityForest",
    "EmptyHeapError",
    "ForestStructureError",
    "check_forest",
    "is_valid_forest",
]
