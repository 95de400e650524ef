from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from statistics import mean

from .tree import is_leaf, tree
from .utils import first_duplicate

__all__ = ["LAYOUTS", "NodeRow", "LaidOutTree", "fortify", "internal_y", "check_layout"]

LAYOUTS: tuple[str, ...] = ("slanted", "rectangular", "fan", "circular", "radial")


def check_layout(layout: str):
    if layout not in LAYOUTS:
        raise ValueError('Unrecognised layout "%s", expected one of %s' % (layout, ", ".join(LAYOUTS)))


def internal_y(children_y: Sequence[float]) -> float:
    """Internal branch is in the middle of the vertical bar spanned by its children."""
    return mean(children_y)


@dataclass
class NodeRow:
    """One node of a laid-out tree."""

    node_id: int
    parent_id: int | None
    is_tip: bool
    label: str | None
    x: float
    y: float
    length: float | None = None
    traits: dict = field(default_factory=dict)


@dataclass
class LaidOutTree:
    """
    Flat table of node coordinates for one tree.

    Attributes:
    rows (list): `NodeRow` objects in pre-order, every parent before its children.
    layout (str): The layout style the table is meant to be drawn with.
    name (str or None): Optional name of the tree, e.g. its position in the tree set.
    """

    rows: list[NodeRow]
    layout: str = "slanted"
    name: str | None = None

    def __post_init__(self):
        if not self.rows:
            raise ValueError("Laid-out tree has no rows")

        ids = [row.node_id for row in self.rows]
        if len(set(ids)) != len(ids):
            raise ValueError("Node ids are not unique")

        roots = [row for row in self.rows if row.parent_id is None]
        if len(roots) != 1:
            raise ValueError("Laid-out tree must have exactly one root, found %d" % (len(roots)))

        known = set(ids)
        for row in self.rows:
            if row.parent_id is not None and row.parent_id not in known:
                raise ValueError("Node %s points to unknown parent %s" % (row.node_id, row.parent_id))
            if row.is_tip and row.label is None:
                raise ValueError("Tip %s has no label" % (row.node_id))

        duplicate = first_duplicate(self.tip_labels())
        if duplicate is not None:
            raise ValueError("Tip label '%s' appears more than once" % (duplicate))

    @property
    def root(self) -> NodeRow:
        return next(row for row in self.rows if row.parent_id is None)

    def tips(self) -> list[NodeRow]:
        return [row for row in self.rows if row.is_tip]

    def tip_labels(self) -> list[str]:
        return [row.label for row in self.rows if row.is_tip]

    def sorted_tip_labels(self) -> list[str]:
        """Tip labels by y coordinate, ascending. Ties keep row order."""
        return [row.label for row in sorted(self.tips(), key=lambda row: row.y)]

    def children(self) -> dict[int, list[NodeRow]]:
        children: dict[int, list[NodeRow]] = {row.node_id: [] for row in self.rows}
        for row in self.rows:
            if row.parent_id is not None:
                children[row.parent_id].append(row)
        return children

    def postorder(self) -> list[NodeRow]:
        """Every node after all of its descendants."""
        children = self.children()
        order = []
        stack = [self.root]
        while stack:
            row = stack.pop()
            order.append(row)
            stack.extend(children[row.node_id])
        order.reverse()  ## reversed pre-order puts descendants first
        return order

    def max_x(self) -> float:
        return max(row.x for row in self.rows)

    def has_branch_lengths(self) -> bool:
        return all(row.length is not None for row in self.rows if row.parent_id is not None)

    def copy(self) -> "LaidOutTree":
        return LaidOutTree(
            rows=[replace(row, traits=dict(row.traits)) for row in self.rows],
            layout=self.layout,
            name=self.name,
        )


def fortify(
    ll: tree, layout: str = "slanted", ladderize: bool = True, name: str | None = None, verbose: bool = False
) -> LaidOutTree:
    """
    Assign x and y coordinates to every branch of a tree and return them as a flat table.

    Parameters:
    ll (tree): The tree to lay out. It is not modified apart from the `height` and `leaves` bookkeeping of `traverse_tree()`.
    layout (str): One of 'slanted', 'rectangular', 'fan', 'circular' or 'radial'. All styles share the same planar coordinates and only differ when drawn. Default is 'slanted'.
    ladderize (bool): If True, smaller clades are placed below larger ones. Default is True.
    name (str or None): Name stored on the table.
    verbose (bool): If True, prints verbose output. Default is False.

    Returns:
    LaidOutTree: One row per branch in pre-order. Tips sit at y = 1..n in traversal order, internal nodes at the mean y of their children, and x is the height of each branch.

    Example:
    >>> table = fortify(make_tree("((a:1,b:1):1.5,c:2.5);"), layout="rectangular")
    """
    check_layout(layout)
    order = ll.traverse_tree(ladderize=ladderize)
    if verbose:
        print("Laying out %d branches (%s, ladderize=%s)" % (len(order), layout, ladderize))

    node_ids = {id(k): i for i, k in enumerate(order)}
    tip_y = {}
    for k in order:
        if is_leaf(k):
            tip_y[id(k)] = float(len(tip_y) + 1)

    y_coords = dict(tip_y)
    for k in reversed(order):  ## children are done before their parents
        if not is_leaf(k):
            y_coords[id(k)] = internal_y([y_coords[id(child)] for child in k.children])

    rows = [
        NodeRow(
            node_id=node_ids[id(k)],
            parent_id=None if k.parent is None else node_ids[id(k.parent)],
            is_tip=is_leaf(k),
            label=k.name if is_leaf(k) else None,
            x=float(k.height),
            y=y_coords[id(k)],
            length=k.length,
            traits=dict(k.traits),
        )
        for k in order
    ]
    return LaidOutTree(rows=rows, layout=layout, name=name)
