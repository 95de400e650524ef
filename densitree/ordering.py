"""
Consensus tip order for a set of laid-out trees.

The order is computed once from all trees and then applied to every tree by `densitree.reconcile`.
"""

from collections.abc import Sequence

import numpy as np

from .distances import classical_mds, profile_distances, stacked_profiles
from .exceptions import InconsistentTipSetError, InvalidStrategyError
from .layout import LaidOutTree
from .utils import first_duplicate

__all__ = [
    "TOKENS",
    "check_tip_sets",
    "resolve_tip_order",
    "order_by_labels",
    "order_by_tree",
    "order_by_mode",
    "order_by_mds",
]

TOKENS = ("mode", "mds", "mds_dist")

TipOrderSpec = str | int | Sequence[str]


def check_tip_sets(label_lists: Sequence[Sequence[str]]):
    """
    Check that every tree carries the same set of uniquely named tips as the first one.

    Parameters:
    label_lists (sequence): Tip labels of each tree.

    Raises:
    InconsistentTipSetError: Naming the first offending tree (1-based).
    """
    if not label_lists:
        raise ValueError("No trees provided")

    reference = set(label_lists[0])
    for i, labels in enumerate(label_lists):
        duplicate = first_duplicate(labels)
        current = set(labels)
        if duplicate is not None or current != reference:
            raise InconsistentTipSetError(
                i + 1, missing=reference - current, extra=current - reference, duplicate=duplicate
            )


def order_by_labels(tables: Sequence[LaidOutTree], labels: Sequence[str]) -> list[str]:
    """Use a given list of tip labels, after checking it holds every tip exactly once."""
    labels = list(labels)
    duplicate = first_duplicate(labels)
    if duplicate is not None:
        raise InvalidStrategyError(labels, "tip '%s' is listed more than once" % (duplicate))

    expected = set(tables[0].tip_labels())
    unknown = set(labels) - expected
    if unknown:
        raise InvalidStrategyError(labels, "unknown tips %s" % (", ".join(sorted(unknown))))
    absent = expected - set(labels)
    if absent:
        raise InvalidStrategyError(labels, "tips %s are not listed" % (", ".join(sorted(absent))))
    return labels


def order_by_tree(tables: Sequence[LaidOutTree], index: int) -> list[str]:
    """Tips of the index-th tree (1-based) from bottom to top."""
    if not 1 <= index <= len(tables):
        raise InvalidStrategyError(index, "tree index must be between 1 and %d" % (len(tables)))
    return tables[index - 1].sorted_tip_labels()


def order_by_mode(tables: Sequence[LaidOutTree], verbose: bool = False) -> list[str]:
    """
    Tip order shared by the largest number of trees.

    Each tree's bottom-to-top tip order is encoded as positions in the first tree's order. The most frequent encoding wins, ties going to the one seen first.
    """
    first_label = tables[0].sorted_tip_labels()
    position = {label: i for i, label in enumerate(first_label)}

    counts: dict[tuple[int, ...], int] = {}
    first_seen: list[tuple[int, ...]] = []
    for table in tables:
        permutation = tuple(position[label] for label in table.sorted_tip_labels())
        if permutation not in counts:
            counts[permutation] = 0
            first_seen.append(permutation)
        counts[permutation] += 1

    best = max(counts.values())
    winner = next(permutation for permutation in first_seen if counts[permutation] == best)
    if verbose:
        print("%d distinct tip orders, most common seen in %d of %d trees" % (len(counts), best, len(tables)))
    return [first_label[i] for i in winner]


def order_by_mds(tables: Sequence[LaidOutTree], method: str = "mds", verbose: bool = False) -> list[str]:
    """
    Order tips by one-dimensional scaling of their distance profiles across all trees.

    Parameters:
    tables (sequence of LaidOutTree): The trees.
    method (str): 'mds' for topological path lengths, 'mds_dist' for patristic distances.
    verbose (bool): If True, prints verbose output. Default is False.

    Returns:
    list: Tip labels by their embedding, ascending. Tips with similar distances to all other tips in all trees end up next to each other.
    """
    first_label = tables[0].sorted_tip_labels()
    profiles = stacked_profiles(tables, first_label, method)
    coords = classical_mds(profile_distances(profiles))
    if verbose:
        print("Scaled %d tip profiles of length %d" % (profiles.shape[1], profiles.shape[0]))
    return [first_label[i] for i in np.argsort(coords, kind="stable")]


def resolve_tip_order(tables: Sequence[LaidOutTree], tip_order: TipOrderSpec = "mode", verbose: bool = False) -> list[str]:
    """
    Compute a single consensus tip order for a set of trees.

    Parameters:
    tables (sequence of LaidOutTree): Laid-out trees sharing one set of tip labels.
    tip_order (str, int or sequence of str): How to order the tips:
        - a list of tip labels, used as is;
        - an integer N (or numeric string), to use the bottom-to-top order of the Nth tree (1-based);
        - 'mode', the most common tip order among the trees;
        - 'mds', MDS of the path lengths between tips;
        - 'mds_dist', MDS of the patristic distances between tips.
        Default is 'mode'.
    verbose (bool): If True, prints verbose output. Default is False.

    Returns:
    list: Tip labels, the first one at the bottom of the plot.

    Raises:
    InconsistentTipSetError: If the trees do not share the same tips.
    InvalidStrategyError: If `tip_order` is not understood or points at a tree that does not exist.
    MissingBranchLengthError: If 'mds_dist' is used on a tree without branch lengths.

    Example:
    >>> resolve_tip_order([fortify(t) for t in trees], "mds")
    """
    check_tip_sets([table.tip_labels() for table in tables])

    if isinstance(tip_order, bool):
        raise InvalidStrategyError(tip_order, "expected a tree index, not a boolean")

    if isinstance(tip_order, str):
        if verbose:
            print("Resolving tip order by %s across %d trees" % (tip_order, len(tables)))
        if tip_order == "mode":
            return order_by_mode(tables, verbose=verbose)
        if tip_order in ("mds", "mds_dist"):
            return order_by_mds(tables, method=tip_order, verbose=verbose)
        if tip_order.strip().isdigit():
            return order_by_tree(tables, int(tip_order))
        raise InvalidStrategyError(tip_order, "unrecognised token")

    if isinstance(tip_order, (int, np.integer)):
        if verbose:
            print("Resolving tip order from tree %d" % (tip_order))
        return order_by_tree(tables, int(tip_order))

    if isinstance(tip_order, (Sequence, np.ndarray)):
        if verbose:
            print("Using given tip order of %d tips" % (len(tip_order)))
        return order_by_labels(tables, tip_order)

    raise InvalidStrategyError(tip_order, "expected a token, a tree index or a list of tip labels")
