import numpy as np
import pytest

from densitree.exceptions import UnknownTipLabelError
from densitree.layout import fortify
from densitree.reconcile import reconcile
from densitree.tree import make_tree

from .conftest import T1, T2


@pytest.fixture
def tables():
    return [fortify(make_tree(s), ladderize=False) for s in (T1, T2, "((b:1,c:1):3,a:4);")]


def tip_y(table):
    return {row.label: row.y for row in table.tips()}


def test_tips_follow_order(tables):
    result = reconcile(tables, ["a", "b", "c"], align_tips=False)

    for table in result:
        assert tip_y(table) == {"a": 1.0, "b": 2.0, "c": 3.0}
        assert table.sorted_tip_labels() == ["a", "b", "c"]


def test_internal_nodes_recomputed(tables):
    second = reconcile(tables, ["a", "b", "c"], align_tips=False)[1]

    # rows of ((a,c),b): root, (a,c), a, c, b
    assert [row.y for row in second.rows] == [2.0, 2.0, 1.0, 3.0, 2.0]


def test_inputs_untouched(tables):
    before = [[(row.x, row.y) for row in table.rows] for table in tables]
    reconcile(tables, ["c", "b", "a"], align_tips=True, jitter=0.5, rng=1)

    assert [[(row.x, row.y) for row in table.rows] for table in tables] == before


def test_topology_and_labels_kept(tables):
    result = reconcile(tables, ["c", "a", "b"])

    for before, after in zip(tables, result):
        assert [(r.node_id, r.parent_id, r.is_tip, r.label) for r in before.rows] == [
            (r.node_id, r.parent_id, r.is_tip, r.label) for r in after.rows
        ]


def test_align_tips(tables):
    result = reconcile(tables, ["a", "b", "c"], align_tips=True)

    for before, after in zip(tables, result):
        assert after.max_x() == 0
        assert after.root.x == -before.max_x()
    assert [row.x for row in result[0].rows] == [-2.5, -1.0, 0.0, 0.0, 0.0]


def test_no_alignment_keeps_x(tables):
    result = reconcile(tables, ["a", "b", "c"], align_tips=False)

    for before, after in zip(tables, result):
        assert [row.x for row in before.rows] == [row.x for row in after.rows]


def test_idempotent_without_jitter(tables):
    first = reconcile(tables, ["b", "a", "c"])
    second = reconcile(tables, ["b", "a", "c"])
    again = reconcile(first, ["b", "a", "c"], align_tips=True)

    assert first == second
    assert [[(r.x, r.y) for r in t.rows] for t in again] == [[(r.x, r.y) for r in t.rows] for t in first]


def test_jitter_spares_first_tree(tables):
    plain = reconcile(tables, ["a", "b", "c"])
    jittered = reconcile(tables, ["a", "b", "c"], jitter=0.3, rng=np.random.default_rng(42))

    assert tip_y(jittered[0]) == tip_y(plain[0])
    for before, after in zip(plain[1:], jittered[1:]):
        for label, y in tip_y(before).items():
            assert tip_y(after)[label] != y
        internal_before = [row.y for row in before.rows if not row.is_tip]
        internal_after = [row.y for row in after.rows if not row.is_tip]
        assert internal_before == internal_after


def test_jitter_is_reproducible(tables):
    first = reconcile(tables, ["a", "b", "c"], jitter=0.3, rng=7)
    second = reconcile(tables, ["a", "b", "c"], jitter=0.3, rng=7)

    assert first == second


def test_jitter_keeps_rank_mean():
    tables = [fortify(make_tree("((a,b),c);"))] * 400
    result = reconcile(tables, ["a", "b", "c"], jitter=0.1, rng=3)

    mean_a = np.mean([tip_y(table)["a"] for table in result[1:]])
    assert mean_a == pytest.approx(1.0, abs=0.05)


def test_negative_jitter(tables):
    with pytest.raises(ValueError):
        reconcile(tables, ["a", "b", "c"], jitter=-1)


def test_unknown_tip_label(tables):
    with pytest.raises(UnknownTipLabelError) as excinfo:
        reconcile(tables, ["a", "b"])
    assert excinfo.value.tree_index == 1
    assert excinfo.value.label == "c"


def test_custom_aggregate(tables):
    result = reconcile(tables, ["a", "b", "c"], align_tips=False, aggregate=min)

    assert result[0].root.y == 1.0
