import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.collections import LineCollection

from .layout import LaidOutTree, NodeRow, check_layout

__all__ = ["Layer", "Compositor", "table_extent", "POLAR_LAYOUTS"]

POLAR_LAYOUTS = ("fan", "circular", "radial")
SLANTED_LAYOUTS = ("slanted", "radial")

Extent = tuple[float, float, float, float]


@dataclass
class Layer:
    """
    One tree drawn on the plot.

    Attributes:
    table (LaidOutTree): Reconciled coordinates of the tree.
    colour (str, tuple or function): Line colour, or a function of a `NodeRow` returning one. Default is 'k' (black).
    width (float or function): Line width, or a function of a `NodeRow` returning one. Default is 1.
    alpha (float or None): Transparency of the whole layer.
    kwargs (dict): Additional keyword arguments passed to the LineCollection.
    """

    table: LaidOutTree
    colour: Any = "k"
    width: float | Callable[[NodeRow], float] = 1.0
    alpha: float | None = None
    kwargs: dict = field(default_factory=dict)


def table_extent(tables: Sequence[LaidOutTree]) -> Extent:
    """Smallest and largest x and y across all rows of all tables."""
    xs = [row.x for table in tables for row in table.rows]
    ys = [row.y for table in tables for row in table.rows]
    return min(xs), max(xs), min(ys), max(ys)


def linspace(start: float, stop: float, n: int) -> list[float]:
    return [start + ((stop - start) / (n - 1)) * i for i in range(n)] if n > 1 else [stop]


class Compositor:
    """
    Stacks trees on one matplotlib axes.

    The first tree drawn with `newPlot()` is the base layer and fixes the coordinate space, every further tree is
    added on top of it with `addLayer()` in the same space.

    Parameters:
    ax (matplotlib.axes.Axes or None): Axes to draw on. A new figure is created when None.
    layout (str): One of 'slanted', 'rectangular', 'fan', 'circular' or 'radial'. Default is 'slanted'.
    extent (tuple or None): (xmin, xmax, ymin, ymax) shared by all layers. Taken from the base layer when None.
    open_angle (float): Degrees left open in the 'fan' layout. Default is 0.
    precision (int): Number of points used to draw curved segments in circular layouts. Default is 15.

    Example:
    >>> plot = Compositor(ax, layout="rectangular")
    >>> plot.newPlot(Layer(tables[0]))
    >>> plot.addLayer(Layer(tables[1], colour="indianred", alpha=0.5))
    """

    def __init__(
        self,
        ax: Axes | None = None,
        layout: str = "slanted",
        extent: Extent | None = None,
        open_angle: float = 0.0,
        precision: int = 15,
    ):
        check_layout(layout)
        if not 0 <= open_angle < 360:
            raise ValueError("open_angle must be in [0, 360), got %s" % (open_angle))
        if ax is None:
            _, ax = plt.subplots()

        self.ax = ax
        self.layout = layout
        self.extent = extent
        self.open_angle = open_angle if layout == "fan" else 0.0
        self.precision = precision
        self.layers: list[Layer] = []

    def newPlot(self, layer: Layer) -> Axes:
        """Draw the base layer and set up the axes."""
        if self.layers:
            raise ValueError("Base layer has already been drawn, use addLayer() for further trees")
        if self.extent is None:
            self.extent = table_extent([layer.table])

        if self.layout in POLAR_LAYOUTS:
            self.ax.set_aspect("equal")
            self.ax.axis("off")
        else:
            self.ax.set_yticks([])
            for spine in ("left", "right", "top"):
                self.ax.spines[spine].set_visible(False)

        return self._draw(layer)

    def addLayer(self, layer: Layer) -> Axes:
        """Draw another tree on top of the base layer."""
        if not self.layers:
            raise ValueError("No base layer, call newPlot() first")
        return self._draw(layer)

    def _draw(self, layer: Layer) -> Axes:
        branches, colours, linewidths = self.segments(layer)

        kwargs = dict(layer.kwargs)
        if "capstyle" not in kwargs:
            kwargs["capstyle"] = "projecting"
        if layer.alpha is not None:
            kwargs["alpha"] = layer.alpha

        line_segments = LineCollection(branches, lw=linewidths, color=colours, **kwargs)
        self.ax.add_collection(line_segments)
        self.ax.autoscale_view()
        self.layers.append(layer)
        return self.ax

    def segments(self, layer: Layer) -> tuple[list, list, list]:
        """
        Line segments of one layer with a colour and width for each.

        Rectangular geometry has a horizontal line per branch and a vertical bar per internal node spanning its children,
        slanted geometry joins parent and child directly. Circular layouts bend the same geometry around a circle.
        """
        table = layer.table
        by_id = {row.node_id: row for row in table.rows}
        children = table.children()
        slanted = self.layout in SLANTED_LAYOUTS
        to_plane = self._polar if self.layout in POLAR_LAYOUTS else (lambda x, y: (x, y))

        branches = []
        colours = []
        linewidths = []
        for row in table.rows:
            try:
                colour = layer.colour(row) if callable(layer.colour) else layer.colour
            except KeyError:
                colour = (0.7, 0.7, 0.7)  ## in case no colour available for branch set it to grey
            width = layer.width(row) if callable(layer.width) else layer.width

            if row.parent_id is not None:
                parent = by_id[row.parent_id]
                if slanted:
                    branches.append((to_plane(parent.x, parent.y), to_plane(row.x, row.y)))
                else:
                    branches.append((to_plane(parent.x, row.y), to_plane(row.x, row.y)))
                colours.append(colour)
                linewidths.append(width)

            if not slanted and children[row.node_id]:
                yl = min(child.y for child in children[row.node_id])
                yr = max(child.y for child in children[row.node_id])
                if self.layout in POLAR_LAYOUTS:  ## what used to be a vertical bar is now an arc
                    ybar = linspace(yl, yr, self.precision)
                    arc = [to_plane(row.x, y) for y in ybar]
                    bar = list(zip(arc, arc[1:]))
                else:
                    bar = [((row.x, yl), (row.x, yr))]
                branches += bar
                colours += [colour] * len(bar)
                linewidths += [width] * len(bar)

        return branches, colours, linewidths

    def _polar(self, x: float, y: float) -> tuple[float, float]:
        assert self.extent is not None
        xmin, xmax, ymin, ymax = self.extent
        radius = (x - xmin) / (xmax - xmin) if xmax > xmin else 1.0
        circ = 2 * math.pi * (1.0 - self.open_angle / 360.0)
        angle = circ * (y - ymin + 0.5) / (ymax - ymin + 1.0)
        return math.sin(angle) * radius, math.cos(angle) * radius
