"""
Davies-Bouldin (DB) cluster validity index, batch and incremental.

References:
    D. L. Davies and D. W. Bouldin, "A cluster separation measure,"
    IEEE TPAMI, vol. 1, no. 2, pp. 224-227, 1979.
    M. Moshtaghi et al., "Online Cluster Validity Indices for Streaming
    Data," arXiv:1801.02937, 2018.
"""

import logging
from typing import Any, Mapping

import numpy as np

from .base import (
    DEGENERATE_VALUE,
    CentroidCVI,
    CriterionResult,
    coincident,
    off_diagonal_mask,
    pairwise_scale,
)

logger = logging.getLogger(__name__)


class DB(CentroidCVI):
    """
    Davies-Bouldin index. Lower is better.

    For every pair of clusters ``R[i, j] = (S[i] + S[j]) / D[i, j]`` with
    ``S[i] = CP[i] / n[i]``; the criterion is the mean over clusters of the
    worst (largest) ratio against any other cluster.
    """

    name = "db"
    requires = ("n", "v", "CP", "D")

    def _reset_params(self) -> None:
        super()._reset_params()
        self.S = np.zeros(0)
        self.R = np.zeros((0, 0))

    @staticmethod
    def criterion(params: Mapping[str, Any], n_samples: int) -> CriterionResult:
        n, v, CP, D = params["n"], params["v"], params["CP"], params["D"]
        n_clusters = len(n)
        S = CP / n if n_clusters else np.zeros(0)
        if n_clusters < 2:
            return CriterionResult(0.0, extras={"S": S, "R": np.zeros((n_clusters, n_clusters))})

        mask = off_diagonal_mask(n_clusters)
        if np.any(coincident(D[mask], pairwise_scale(v)[mask])):
            return CriterionResult(
                DEGENERATE_VALUE,
                degenerate=True,
                extras={"S": S, "R": np.zeros((n_clusters, n_clusters))},
            )

        R = np.zeros((n_clusters, n_clusters))
        R[mask] = ((S[:, None] + S[None, :])[mask]) / D[mask]
        value = float(np.sum(np.max(np.where(mask, R, -np.inf), axis=1)) / n_clusters)
        return CriterionResult(value, extras={"S": S, "R": R})
