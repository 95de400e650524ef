from collections.abc import Callable, Sequence

import numpy as np

from .exceptions import UnknownTipLabelError
from .layout import LaidOutTree, internal_y
from .utils import make_rng

__all__ = ["reconcile", "reorder_tips", "align_tree_tips", "jitter_tips"]


def reorder_tips(
    table: LaidOutTree,
    ranks: dict[str, int],
    aggregate: Callable[[Sequence[float]], float] = internal_y,
    tree_index: int = 1,
) -> LaidOutTree:
    """
    Copy of a laid-out tree with tips moved to the rank given by `ranks` (y = rank + 1) and internal nodes recomputed from their children.
    """
    result = table.copy()
    children = result.children()
    for row in result.postorder():
        if row.is_tip:
            if row.label not in ranks:
                raise UnknownTipLabelError(tree_index, row.label)
            row.y = float(ranks[row.label] + 1)
        else:
            if not children[row.node_id]:
                raise ValueError("Internal node %s of tree %d has no children" % (row.node_id, tree_index))
            row.y = aggregate([child.y for child in children[row.node_id]])
    return result


def align_tree_tips(table: LaidOutTree):
    """Shift a tree in place so its furthest tip sits at x = 0 and the root at negative x."""
    max_x = table.max_x()
    for row in table.rows:
        row.x -= max_x


def jitter_tips(table: LaidOutTree, jitter: float, rng: np.random.Generator):
    """Add normal noise with standard deviation `jitter` to every tip's y, in place."""
    tips = table.tips()
    noise = rng.normal(loc=0.0, scale=jitter, size=len(tips))
    for row, delta in zip(tips, noise):
        row.y += float(delta)


def reconcile(
    tables: Sequence[LaidOutTree],
    tip_order: Sequence[str],
    align_tips: bool = True,
    jitter: float = 0.0,
    rng: np.random.Generator | int | None = None,
    aggregate: Callable[[Sequence[float]], float] = internal_y,
    verbose: bool = False,
) -> list[LaidOutTree]:
    """
    Lay out every tree with the same tip order.

    Parameters:
    tables (sequence of LaidOutTree): The trees. They are not modified.
    tip_order (sequence of str): Tip labels from bottom to top, as returned by `resolve_tip_order()`.
    align_tips (bool): If True, each tree is shifted so its tips end at x = 0 (trees aligned by their tips), otherwise trees stay aligned by their root. Default is True.
    jitter (float): Standard deviation of normal noise added to the tip y coordinates of every tree but the first. Default is 0 (no noise).
    rng (numpy.random.Generator, int or None): Source of the noise, or a seed for one.
    aggregate (function): Computes an internal node's y from its children's. Default is the mean, as in `fortify()`.
    verbose (bool): If True, prints verbose output. Default is False.

    Returns:
    list: New laid-out trees in input order.

    Raises:
    UnknownTipLabelError: If a tree has a tip that `tip_order` does not list.
    ValueError: If `jitter` is negative.
    """
    if jitter < 0:
        raise ValueError("jitter must be non-negative, got %s" % (jitter))

    ranks = {label: i for i, label in enumerate(tip_order)}
    generator = make_rng(rng) if jitter > 0 else None

    reconciled = []
    for i, table in enumerate(tables):
        result = reorder_tips(table, ranks, aggregate=aggregate, tree_index=i + 1)
        if align_tips:
            align_tree_tips(result)
        if i > 0 and generator is not None:  ## first tree stays put as the reference
            jitter_tips(result, jitter, generator)
        if verbose:
            print("Reconciled tree %d (%d tips)" % (i + 1, len(result.tips())))
        reconciled.append(result)
    return reconciled
