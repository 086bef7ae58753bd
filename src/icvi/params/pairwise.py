from __future__ import annotations

import logging

import numpy as np
from sklearn.metrics import pairwise_distances

logger = logging.getLogger(__name__)


def squared_distances(point: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Squared euclidean distance from ``point`` to every row of ``centroids``."""
    diffs = centroids - point
    return np.einsum("ij,ij->i", diffs, diffs)


def pairwise_squared_distances(centroids: np.ndarray) -> np.ndarray:
    """Full symmetric matrix of squared centroid distances (batch path)."""
    if centroids.shape[0] == 0:
        return np.zeros((0, 0))
    D = pairwise_distances(centroids, metric="sqeuclidean")
    # enforce exact symmetry and a zero diagonal
    D = 0.5 * (D + D.T)
    np.fill_diagonal(D, 0.0)
    return D


class PairwiseMatrix:
    """
    Growable square matrix with one entry per ordered pair of clusters.

    With ``symmetric=True`` (the default) every row write is mirrored into
    the matching column, so ``get(i, j) == get(j, i)`` always holds. The
    centroid-silhouette index stores a non-symmetric quantity and writes
    rows and columns independently through ``set_cross``.
    """

    def __init__(self, symmetric: bool = True):
        self.symmetric = symmetric
        self._values = np.zeros((0, 0))

    @classmethod
    def from_array(cls, values: np.ndarray, symmetric: bool = True) -> "PairwiseMatrix":
        values = np.asarray(values, dtype=float)
        if values.ndim != 2 or values.shape[0] != values.shape[1]:
            raise ValueError(f"PairwiseMatrix expects a square 2D array, got shape={values.shape}")
        matrix = cls(symmetric=symmetric)
        matrix._values = values.copy()
        return matrix

    # ------------------------------------------------------------------
    @property
    def size(self) -> int:
        return self._values.shape[0]

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the underlying matrix."""
        view = self._values.view()
        view.flags.writeable = False
        return view

    def get(self, i: int, j: int) -> float:
        return float(self._values[i, j])

    # ------------------------------------------------------------------
    def grow_by_one(self) -> int:
        """Append a zero row and column; return the new index."""
        n = self.size
        grown = np.zeros((n + 1, n + 1))
        grown[:n, :n] = self._values
        self._values = grown
        return n

    def set_row(self, i: int, values) -> None:
        """Write row ``i`` and mirror it into column ``i``."""
        values = np.asarray(values, dtype=float)
        if values.shape != (self.size,):
            raise ValueError(f"Row length {values.shape} does not match matrix size {self.size}")
        self._values[i, :] = values
        if self.symmetric:
            self._values[:, i] = values

    def set_cross(self, i: int, row, column) -> None:
        """Write row ``i`` and column ``i`` independently (``row[i]`` wins on the diagonal)."""
        row = np.asarray(row, dtype=float)
        column = np.asarray(column, dtype=float)
        if row.shape != (self.size,) or column.shape != (self.size,):
            raise ValueError(f"Row/column length does not match matrix size {self.size}")
        self._values[:, i] = column
        self._values[i, :] = row

    def __repr__(self) -> str:
        kind = "symmetric" if self.symmetric else "general"
        return f"PairwiseMatrix({kind}, size={self.size})"


# ---- Centroid-silhouette quantities ------------------------------------------
def silhouette_cross(k: int, scatter: np.ndarray, d_row: np.ndarray):
    """
    Row ``k`` and column ``k`` of the centroid-silhouette matrix.

    ``S[i, j]`` is the mean squared distance from the samples of cluster
    ``i`` to the centroid of cluster ``j``, which decomposes exactly into
    ``CP[i] / n[i] + D[i, j]``. ``scatter`` holds ``CP / n`` for every
    cluster (already updated for ``k``) and ``d_row`` is row ``k`` of the
    squared centroid distance matrix.
    """
    row = scatter[k] + d_row
    column = scatter + d_row
    return row, column


def silhouette_matrix(data: np.ndarray, internal: np.ndarray, centroids: np.ndarray, n: np.ndarray):
    """Batch centroid-silhouette matrix computed directly from every sample."""
    n_clusters = centroids.shape[0]
    if n_clusters == 0:
        return np.zeros((0, 0))
    # (n_samples, n_clusters) squared distances of every sample to every centroid
    d2 = pairwise_distances(data, centroids, metric="sqeuclidean")
    sums = np.zeros((n_clusters, n_clusters))
    np.add.at(sums, internal, d2)
    return sums / n[:, None]
