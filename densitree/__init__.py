from .core import densitree, layout_trees, reconcile_trees
from .exceptions import (
    DensitreeError,
    InconsistentTipSetError,
    InvalidStrategyError,
    MissingBranchLengthError,
    UnknownTipLabelError,
)
from .layout import LaidOutTree, NodeRow, fortify
from .ordering import resolve_tip_order
from .plotting import Compositor, Layer
from .reconcile import reconcile
from .tree import leaf, loadNewick, make_tree, node, tree

__all__ = [
    "densitree",
    "layout_trees",
    "reconcile_trees",
    "resolve_tip_order",
    "reconcile",
    "fortify",
    "LaidOutTree",
    "NodeRow",
    "Compositor",
    "Layer",
    "tree",
    "node",
    "leaf",
    "make_tree",
    "loadNewick",
    "DensitreeError",
    "InconsistentTipSetError",
    "InvalidStrategyError",
    "MissingBranchLengthError",
    "UnknownTipLabelError",
]
