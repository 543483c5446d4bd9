"""Exceptions raised by the priority forest."""
from __future__ import annotations


class EmptyHeapError(IndexError):
    """Raised when reading or removing the minimum of an empty forest."""


class ForestStructureError(RuntimeError):
    """Raised when a binomial tree or the root list is structurally corrupt."""


__all__ = ["EmptyHeapError", "ForestStructureError"]
