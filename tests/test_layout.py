import pytest

from densitree.layout import LaidOutTree, NodeRow, fortify, internal_y
from densitree.tree import make_tree


def rows_by_label(table):
    return {row.label: row for row in table.tips()}


def test_fortify_coordinates():
    table = fortify(make_tree("((a:1,b:1):1.5,c:2.5);"), ladderize=False)

    tips = rows_by_label(table)
    assert [tips[k].y for k in "abc"] == [1.0, 2.0, 3.0]
    assert [tips[k].x for k in "abc"] == [2.5, 2.5, 2.5]

    root = table.root
    cherry = next(row for row in table.rows if not row.is_tip and row.parent_id is not None)
    assert cherry.y == 1.5
    assert cherry.x == 1.5
    assert root.y == internal_y([1.5, 3.0])
    assert root.x == 0.0
    assert root.parent_id is None
    assert table.sorted_tip_labels() == ["a", "b", "c"]


def test_fortify_rows_preorder():
    table = fortify(make_tree("((a,b),c);"), ladderize=False)

    seen = set()
    for row in table.rows:
        assert row.parent_id is None or row.parent_id in seen
        seen.add(row.node_id)
    assert [row.label for row in table.rows] == [None, None, "a", "b", "c"]


def test_fortify_ladderize():
    table = fortify(make_tree("((a,b),c);"), ladderize=True)

    assert table.sorted_tip_labels() == ["c", "a", "b"]


def test_fortify_without_lengths_is_cladogram():
    table = fortify(make_tree("((a,b),c);"), ladderize=False)

    assert rows_by_label(table)["a"].x == 2.0
    assert rows_by_label(table)["c"].x == 1.0
    assert not table.has_branch_lengths()


def test_fortify_does_not_reorder_input():
    ll = make_tree("((a,b),c);")
    fortify(ll, ladderize=True)

    assert ll.tipLabels() == ["a", "b", "c"]
    assert [k.name for k in ll.root.children[0].children] == ["a", "b"]


def test_fortify_keeps_traits_and_layout():
    table = fortify(make_tree("((a[&host=bat]:1,b:1):1,c:2);"), layout="circular", name="first")

    assert table.layout == "circular"
    assert table.name == "first"
    assert rows_by_label(table)["a"].traits == {"host": "bat"}
    assert table.has_branch_lengths()


def test_fortify_rejects_unknown_layout():
    with pytest.raises(ValueError):
        fortify(make_tree("((a,b),c);"), layout="unrooted")


def test_postorder_children_first():
    table = fortify(make_tree("(((a,b),c),(d,e));"))

    done = set()
    children = table.children()
    for row in table.postorder():
        assert all(child.node_id in done for child in children[row.node_id])
        done.add(row.node_id)
    assert table.postorder()[-1] is table.root


def test_copy_is_independent():
    table = fortify(make_tree("((a,b),c);"))
    copied = table.copy()
    copied.rows[0].y = 100.0
    copied.rows[0].traits["x"] = 1

    assert table.rows[0].y != 100.0
    assert "x" not in table.rows[0].traits


def test_laid_out_tree_validation():
    with pytest.raises(ValueError):
        LaidOutTree(rows=[])
    with pytest.raises(ValueError):
        LaidOutTree(
            rows=[
                NodeRow(0, None, False, None, 0.0, 1.5),
                NodeRow(1, 0, True, "a", 1.0, 1.0),
                NodeRow(2, 0, True, "a", 1.0, 2.0),
            ]
        )
    with pytest.raises(ValueError):
        LaidOutTree(rows=[NodeRow(0, None, False, None, 0.0, 1.0), NodeRow(1, 7, True, "a", 1.0, 1.0)])
    with pytest.raises(ValueError):
        LaidOutTree(rows=[NodeRow(0, None, True, "a", 0.0, 1.0), NodeRow(1, None, True, "b", 0.0, 2.0)])
