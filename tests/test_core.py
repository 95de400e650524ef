import pytest

import densitree.core
from densitree import densitree as draw_densitree
from densitree.core import layout_trees, reconcile_trees
from densitree.exceptions import InconsistentTipSetError
from densitree.layout import LAYOUTS, fortify
from densitree.tree import make_tree

from .conftest import T1, T2


def test_reconcile_trees_shared_order(tree_pair):
    tables = reconcile_trees(tree_pair, tip_order="mode", ladderize=False)

    assert [table.sorted_tip_labels() for table in tables] == [["a", "b", "c"]] * 2
    assert all(table.max_x() == 0 for table in tables)


def test_reconcile_trees_accepts_strings_and_tables():
    tables = reconcile_trees([T1, fortify(make_tree(T2), ladderize=False)], tip_order=2, align_tips=False)

    assert [table.sorted_tip_labels() for table in tables] == [["a", "c", "b"]] * 2
    assert tables[0].max_x() == 2.5


def test_layout_trees_names_tables(tree_pair):
    tables = layout_trees(tree_pair, layout="fan")

    assert [table.name for table in tables] == ["1", "2"]
    assert {table.layout for table in tables} == {"fan"}


def test_layout_trees_rejects_other_objects():
    with pytest.raises(TypeError):
        layout_trees([make_tree(T1), 42])
    with pytest.raises(ValueError):
        layout_trees([])


def test_inconsistent_tips_fail_before_layout(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("layout should not run")

    monkeypatch.setattr(densitree.core, "fortify", fail)
    with pytest.raises(InconsistentTipSetError) as excinfo:
        draw_densitree(["((a,b),c);", "((a,b),d);"])
    assert excinfo.value.tree_index == 2


@pytest.mark.parametrize("layout", LAYOUTS)
def test_densitree_draws_every_tree(ax, tree_pair, layout):
    returned = draw_densitree(tree_pair, ax=ax, layout=layout, tip_order="mds", jitter=0.1, rng=0)

    assert returned is ax
    assert len(ax.collections) == 2
    assert ax.collections[0].get_alpha() == 0.5


def test_densitree_colours_per_tree(ax, tree_pair):
    draw_densitree(tree_pair, ax=ax, colour=["red", "blue"], alpha=1.0, linestyle="--")

    first, second = ax.collections
    assert tuple(first.get_colors()[0][:3]) == (1.0, 0.0, 0.0)
    assert tuple(second.get_colors()[0][:3]) == (0.0, 0.0, 1.0)
    assert first.get_alpha() == 1.0


def test_densitree_creates_axes(tree_pair):
    import matplotlib.pyplot as plt

    ax = draw_densitree(tree_pair, tip_order=["c", "b", "a"], verbose=True)
    assert len(ax.collections) == 2
    plt.close(ax.figure)


def test_densitree_many_trees_alpha_floor(ax):
    draw_densitree(["((a,b),c);"] * 40, ax=ax)

    assert len(ax.collections) == 40
    assert ax.collections[-1].get_alpha() == 0.05
