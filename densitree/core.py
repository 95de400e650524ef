from collections.abc import Callable, Sequence
from typing import Any

import numpy as np
from matplotlib.axes import Axes

from .layout import LaidOutTree, NodeRow, check_layout, fortify
from .ordering import TipOrderSpec, check_tip_sets, resolve_tip_order
from .plotting import Compositor, Layer, table_extent
from .reconcile import reconcile
from .tree import make_tree, tree

__all__ = ["densitree", "reconcile_trees", "layout_trees"]

TreeLike = tree | LaidOutTree | str


def _as_tree(datum: TreeLike, i: int) -> tree | LaidOutTree:
    if isinstance(datum, str):
        return make_tree(datum)
    if isinstance(datum, (tree, LaidOutTree)):
        return datum
    raise TypeError("Item %d is a %s, expected a tree, a Newick string or a LaidOutTree" % (i + 1, type(datum).__name__))


def layout_trees(
    data: Sequence[TreeLike], layout: str = "slanted", ladderize: bool = True, verbose: bool = False
) -> list[LaidOutTree]:
    """
    Lay out a set of trees after checking they share their tips.

    Parameters:
    data (sequence): Trees, Newick strings or already laid-out trees (used as they are).
    layout (str): Layout style, see `fortify()`.
    ladderize (bool): Passed to `fortify()`.
    verbose (bool): If True, prints verbose output. Default is False.

    Returns:
    list: One LaidOutTree per input, in input order.

    Raises:
    InconsistentTipSetError: Before anything is laid out, if the tip sets differ.
    """
    check_layout(layout)
    if not data:
        raise ValueError("No trees provided")

    trees = [_as_tree(datum, i) for i, datum in enumerate(data)]
    check_tip_sets([t.tip_labels() if isinstance(t, LaidOutTree) else t.tipLabels() for t in trees])

    tables = []
    for i, t in enumerate(trees):
        if isinstance(t, LaidOutTree):
            tables.append(t)
        else:
            tables.append(fortify(t, layout=layout, ladderize=ladderize, name=str(i + 1), verbose=verbose))
    return tables


def reconcile_trees(
    data: Sequence[TreeLike],
    layout: str = "slanted",
    tip_order: TipOrderSpec = "mode",
    align_tips: bool = True,
    jitter: float = 0.0,
    rng: np.random.Generator | int | None = None,
    ladderize: bool = True,
    verbose: bool = False,
) -> list[LaidOutTree]:
    """
    Lay out every tree with one shared tip order.

    The tip order is resolved once from all trees before any tree is reconciled.
    See `resolve_tip_order()` and `reconcile()` for the parameters.

    Returns:
    list: Reconciled LaidOutTree objects in input order.
    """
    tables = layout_trees(data, layout=layout, ladderize=ladderize, verbose=verbose)
    order = resolve_tip_order(tables, tip_order, verbose=verbose)
    return reconcile(tables, order, align_tips=align_tips, jitter=jitter, rng=rng, verbose=verbose)


def densitree(
    data: Sequence[TreeLike],
    ax: Axes | None = None,
    layout: str = "slanted",
    tip_order: TipOrderSpec = "mode",
    align_tips: bool = True,
    jitter: float = 0.0,
    rng: np.random.Generator | int | None = None,
    ladderize: bool = True,
    colour: Any = "k",
    width: float | Callable[[NodeRow], float] = 1.0,
    alpha: float | None = None,
    open_angle: float = 0.0,
    verbose: bool = False,
    **kwargs,
) -> Axes:
    """
    Draw a set of trees on top of each other, with tips in the same position in every tree.

    Parameters:
    data (sequence): Trees, Newick strings or laid-out trees sharing the same tips.
    ax (matplotlib.axes.Axes or None): Axes to draw on. A new figure is created when None.
    layout (str): One of 'slanted', 'rectangular', 'fan', 'circular' or 'radial'. Default is 'slanted'.
    tip_order (str, int or list): 'mode' (default), 'mds', 'mds_dist', a 1-based tree index or a list of tip labels. See `resolve_tip_order()`.
    align_tips (bool): If True (default), trees are aligned by their tips, otherwise by their root.
    jitter (float): Standard deviation of the noise added to the tip positions of all trees but the first. Default is 0.
    rng (numpy.random.Generator, int or None): Source of the jitter noise, or a seed for one.
    ladderize (bool): If True (default), trees are ladderized before their tips are read off.
    colour (str, tuple, function or list): Line colour, a function of a `NodeRow`, or a list with one colour per tree. Default is 'k' (black).
    width (float or function): Line width, or a function of a `NodeRow`. Default is 1.
    alpha (float or None): Transparency of every tree. Default is 1/number of trees, at least 0.05.
    open_angle (float): Degrees left open in the 'fan' layout. Default is 0.
    verbose (bool): If True, prints verbose output. Default is False.
    **kwargs: Additional keyword arguments passed to every LineCollection.

    Returns:
    matplotlib.axes.Axes: The axes with all trees drawn, the first tree at the bottom.

    Example:
    >>> trees = [make_tree("((a:1,b:1):1.5,c:2.5);"), make_tree("((a:1,c:1):1,b:2);")]
    >>> ax = densitree(trees, layout="rectangular", tip_order="mds")
    """
    tables = reconcile_trees(
        data,
        layout=layout,
        tip_order=tip_order,
        align_tips=align_tips,
        jitter=jitter,
        rng=rng,
        ladderize=ladderize,
        verbose=verbose,
    )

    if isinstance(colour, (list, tuple)) and len(colour) == len(tables) and not isinstance(colour[0], (int, float)):
        colours = list(colour)  ## one colour per tree
    else:
        colours = [colour] * len(tables)

    if alpha is None:
        alpha = max(1.0 / len(tables), 0.05)

    plot = Compositor(ax=ax, layout=layout, extent=table_extent(tables), open_angle=open_angle)
    for i, (table, layer_colour) in enumerate(zip(tables, colours)):
        layer = Layer(table=table, colour=layer_colour, width=width, alpha=alpha, kwargs=kwargs)
        if i == 0:
            ax = plot.newPlot(layer)
        else:
            ax = plot.addLayer(layer)
        if verbose:
            print("Drew tree %d of %d" % (i + 1, len(tables)))
    return ax
