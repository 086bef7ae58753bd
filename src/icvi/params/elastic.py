"""
Elastic per-cluster sufficient statistics and their incremental algebra.

For every internal cluster id ``k`` the container keeps:

    n[k]   sample count
    v[k]   centroid (mean of the assigned samples)
    CP[k]  compactness: sum of squared deviations from v[k]
    G[k]   sum of deviations of the assigned samples from the *current* v[k]

``G`` is zero in exact arithmetic; carrying it keeps the compactness
recurrence exact when the centroid drifts:

    Δv     = v_old - v_new
    δ      = x - v_new
    CP_new = CP_old + δᵀδ + n_old·ΔvᵀΔv + 2·ΔvᵀG_old
    G_new  = G_old + δ + n_old·Δv
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np

from icvi.label_map import LabelMap

logger = logging.getLogger(__name__)


# ---- Shared algebra ----------------------------------------------------------
def centroid_update(v_old: np.ndarray, n_old: int, sample: np.ndarray) -> np.ndarray:
    """Exact running-mean update for one new sample."""
    return v_old + (sample - v_old) / (n_old + 1)


def compactness_increment(
    CP_old: float, G_old: np.ndarray, delta_v: np.ndarray, diff_x_v: np.ndarray, n_old: int
) -> float:
    return (
        float(CP_old)
        + float(diff_x_v @ diff_x_v)
        + n_old * float(delta_v @ delta_v)
        + 2.0 * float(delta_v @ G_old)
    )


def deviation_sum_update(
    G_old: np.ndarray, delta_v: np.ndarray, diff_x_v: np.ndarray, n_old: int
) -> np.ndarray:
    return G_old + diff_x_v + n_old * delta_v


def compactness_update(
    CP_old: float,
    G_old: np.ndarray,
    v_old: np.ndarray,
    v_new: np.ndarray,
    n_old: int,
    sample: np.ndarray,
) -> Tuple[float, np.ndarray]:
    """Return ``(CP_new, G_new)`` after ``sample`` moved the centroid to ``v_new``."""
    delta_v = v_old - v_new
    diff_x_v = sample - v_new
    return (
        compactness_increment(CP_old, G_old, delta_v, diff_x_v, n_old),
        deviation_sum_update(G_old, delta_v, diff_x_v, n_old),
    )


def partition(labels) -> Tuple[LabelMap, np.ndarray]:
    """
    Map a full label vector to dense internal ids.

    Returns the label map (order of first appearance) and the internal id
    of every sample.
    """
    label_map = LabelMap()
    internal = np.fromiter(
        (label_map.resolve(lbl) for lbl in labels), dtype=int, count=len(labels)
    )
    return label_map, internal


def cluster_means(data: np.ndarray, internal: np.ndarray, n_clusters: int):
    """Per-cluster counts and means computed directly from the data."""
    n = np.bincount(internal, minlength=n_clusters)
    sums = np.zeros((n_clusters, data.shape[1]))
    np.add.at(sums, internal, data)
    return n, sums / n[:, None]


def cluster_compactness(data: np.ndarray, internal: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Sum of squared deviations from the own centroid, per cluster."""
    diffs = data - v[internal]
    sq = np.einsum("ij,ij->i", diffs, diffs)
    return np.bincount(internal, weights=sq, minlength=v.shape[0])


# ---- Container ---------------------------------------------------------------
class ElasticParams:
    """
    Growable per-cluster statistics indexed by dense internal cluster id.

    Rows are appended for new clusters and mutated in place for existing
    ones; clusters are never removed. With ``compactness=False`` only
    ``n`` and ``v`` are maintained.
    """

    def __init__(self, dim: int = 0, compactness: bool = True):
        self.compactness = compactness
        self.n = np.zeros(0, dtype=int)
        self.CP = np.zeros(0)
        self.setup(dim)

    @property
    def n_clusters(self) -> int:
        return int(self.n.shape[0])

    # ------------------------------------------------------------------
    def setup(self, dim: int) -> None:
        """Fix the feature dimension (first sample)."""
        self.dim = int(dim)
        self.v = np.zeros((0, self.dim))
        self.G = np.zeros((0, self.dim))

    # ------------------------------------------------------------------
    def append_cluster(self, sample: np.ndarray) -> int:
        """Create a new cluster holding only ``sample``; return its id."""
        self.n = np.append(self.n, 1)
        self.v = np.vstack([self.v, sample])
        if self.compactness:
            self.CP = np.append(self.CP, 0.0)
            self.G = np.vstack([self.G, np.zeros(self.dim)])
        return self.n_clusters - 1

    # ------------------------------------------------------------------
    def compute_update(
        self, k: int, sample: np.ndarray
    ) -> Tuple[int, np.ndarray, Optional[float], Optional[np.ndarray]]:
        """
        Compute the new statistics of cluster ``k`` after adding ``sample``
        without writing anything. Returns ``(n_new, v_new, CP_new, G_new)``.
        """
        n_old = int(self.n[k])
        v_old = self.v[k]
        v_new = centroid_update(v_old, n_old, sample)
        if not self.compactness:
            return n_old + 1, v_new, None, None
        CP_new, G_new = compactness_update(self.CP[k], self.G[k], v_old, v_new, n_old, sample)
        return n_old + 1, v_new, CP_new, G_new

    def commit_update(self, k: int, n_new: int, v_new, CP_new=None, G_new=None) -> None:
        self.n[k] = n_new
        self.v[k] = v_new
        if self.compactness:
            self.CP[k] = CP_new
            self.G[k] = G_new

    def update_cluster(self, k: int, sample: np.ndarray) -> None:
        """Add ``sample`` to the existing cluster ``k``."""
        self.commit_update(k, *self.compute_update(k, sample))

    # ------------------------------------------------------------------
    def rebuild(self, data: np.ndarray, internal: np.ndarray, n_clusters: int) -> None:
        """
        Discard all statistics and recompute them directly from ``data``.

        ``internal`` holds the dense internal id of every row of ``data``.
        """
        self.setup(data.shape[1])
        self.n, self.v = cluster_means(data, internal, n_clusters)
        if self.compactness:
            self.CP = cluster_compactness(data, internal, self.v)
            self.G = np.zeros((n_clusters, self.dim))
        else:
            self.CP = np.zeros(0)

    def __repr__(self) -> str:
        return f"ElasticParams(dim={self.dim}, n_clusters={self.n_clusters}, n={self.n.tolist()})"
