"""
Tip-to-tip distance matrices and the classical scaling used to turn them into a tip order.
"""

from collections.abc import Sequence
from typing import Literal

import numpy as np

from .exceptions import MissingBranchLengthError
from .layout import LaidOutTree

__all__ = ["tip_distance_matrix", "stacked_profiles", "profile_distances", "classical_mds"]

DistanceMethod = Literal["mds", "mds_dist"]


def tip_distance_matrix(
    table: LaidOutTree, labels: Sequence[str], method: DistanceMethod = "mds", tree_index: int = 1
) -> np.ndarray:
    """
    Pairwise distances between the tips of one tree.

    Parameters:
    table (LaidOutTree): The tree.
    labels (sequence of str): Row and column order of the returned matrix. Must list every tip of the tree.
    method (str): 'mds' counts edges along the path between two tips, 'mds_dist' sums their branch lengths (patristic distance).
    tree_index (int): 1-based position of the tree, used in error messages.

    Returns:
    numpy.ndarray: Symmetric matrix with a zero diagonal.

    Raises:
    MissingBranchLengthError: If method is 'mds_dist' and the tree lacks branch lengths.
    """
    if method == "mds_dist" and not table.has_branch_lengths():
        raise MissingBranchLengthError(tree_index)

    ## undirected adjacency with edge weights
    neighbours: dict[int, list[tuple[int, float]]] = {row.node_id: [] for row in table.rows}
    for row in table.rows:
        if row.parent_id is not None:
            weight = float(row.length) if method == "mds_dist" else 1.0
            neighbours[row.node_id].append((row.parent_id, weight))
            neighbours[row.parent_id].append((row.node_id, weight))

    tip_ids = {row.label: row.node_id for row in table.tips()}
    positions = [tip_ids[label] for label in labels]

    n = len(labels)
    matrix = np.zeros((n, n))
    for i, source in enumerate(positions):
        dist = {source: 0.0}
        stack = [source]
        while stack:  ## one walk from each tip reaches every other node exactly once
            current = stack.pop()
            for nb, weight in neighbours[current]:
                if nb not in dist:
                    dist[nb] = dist[current] + weight
                    stack.append(nb)
        matrix[i] = [dist[target] for target in positions]
    return matrix


def stacked_profiles(tables: Sequence[LaidOutTree], labels: Sequence[str], method: DistanceMethod = "mds") -> np.ndarray:
    """
    Stack every tree's distance matrix on top of each other.

    Column j of the result is the distance profile of `labels[j]` across all trees (length = number of trees x number of tips).
    """
    return np.vstack([tip_distance_matrix(table, labels, method, tree_index=i + 1) for i, table in enumerate(tables)])


def profile_distances(profiles: np.ndarray) -> np.ndarray:
    """Euclidean distances between the columns of `profiles`."""
    squared = np.sum(profiles**2, axis=0)
    gram = profiles.T @ profiles
    d2 = squared[:, None] + squared[None, :] - 2.0 * gram
    np.fill_diagonal(d2, 0.0)
    return np.sqrt(np.clip(d2, 0.0, None))


def classical_mds(distances: np.ndarray, tol: float = 1e-10) -> np.ndarray:
    """
    One-dimensional classical (Torgerson) scaling of a distance matrix.

    Squared distances are double-centred and the leading eigenvector, scaled by the square root of its eigenvalue, gives the coordinates.
    The sign is fixed so that the first point is not placed after the last one.
    A spectrum without a positive eigenvalue (all points coincide) gives all-zero coordinates.

    Parameters:
    distances (numpy.ndarray): Symmetric n x n distance matrix.
    tol (float): Eigenvalues at or below this are treated as zero.

    Returns:
    numpy.ndarray: Coordinates, one per point.
    """
    n = distances.shape[0]
    if n < 2:
        return np.zeros(n)

    centring = np.eye(n) - np.full((n, n), 1.0 / n)
    b = -0.5 * centring @ (distances**2) @ centring
    values, vectors = np.linalg.eigh((b + b.T) / 2.0)  ## eigenvalues ascending

    if values[-1] <= tol:
        return np.zeros(n)

    coords = vectors[:, -1] * np.sqrt(values[-1])
    if coords[0] > coords[-1]:
        coords = -coords
    return coords
