"""
Errors raised while ordering and reconciling a set of trees.

Every error aborts the whole call. Tree indices are 1-based, the same way
trees are addressed with ``tip_order=N``.
"""

from __future__ import annotations

from collections.abc import Iterable


class DensitreeError(Exception):
    """Base exception for densitree errors."""

    def __init__(self, message: str, suggestion: str | None = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.full_message)

    @property
    def full_message(self) -> str:
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message


def _preview(labels: Iterable[str], limit: int = 5) -> str:
    labels = sorted(labels)
    shown = ", ".join(labels[:limit])
    if len(labels) > limit:
        shown += ", ... (%d more)" % (len(labels) - limit)
    return shown


class InconsistentTipSetError(DensitreeError):
    """Raised when a tree's tip labels are not the same set as the first tree's."""

    def __init__(self, tree_index: int, missing: Iterable[str] = (), extra: Iterable[str] = (), duplicate: str | None = None):
        self.tree_index = tree_index
        self.missing = set(missing)
        self.extra = set(extra)
        self.duplicate = duplicate

        details = []
        if self.missing:
            details.append(f"missing: {_preview(self.missing)}")
        if self.extra:
            details.append(f"not in tree 1: {_preview(self.extra)}")
        if duplicate is not None:
            details.append(f"duplicated tip label: {duplicate}")

        super().__init__(
            message=f"Tip labels of tree {tree_index} differ from tree 1 ({'; '.join(details)})",
            suggestion="All trees must share exactly the same set of uniquely named tips. Prune or rename tips before plotting.",
        )


class InvalidStrategyError(DensitreeError):
    """Raised for an unrecognised tip order token, an out-of-range tree index or an invalid explicit order."""

    def __init__(self, strategy: object, reason: str):
        self.strategy = strategy
        self.reason = reason
        super().__init__(
            message=f"Invalid tip order {strategy!r}: {reason}",
            suggestion="Use 'mode', 'mds', 'mds_dist', a 1-based tree index or a list holding every tip label once.",
        )


class MissingBranchLengthError(DensitreeError):
    """Raised when patristic distances are requested for a tree without branch lengths."""

    def __init__(self, tree_index: int):
        self.tree_index = tree_index
        super().__init__(
            message=f"Tree {tree_index} lacks branch lengths, patristic distances cannot be computed",
            suggestion="Use tip_order='mds' to order tips by topological path length instead.",
        )


class UnknownTipLabelError(DensitreeError):
    """Raised when a tree has a tip that the tip order does not list."""

    def __init__(self, tree_index: int, label: str):
        self.tree_index = tree_index
        self.label = label
        super().__init__(message=f"Tip '{label}' of tree {tree_index} is absent from the tip order")
