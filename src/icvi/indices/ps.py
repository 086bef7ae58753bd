"""
Partition Separation (PS) cluster validity index, batch and incremental.

References:
    M.-S. Yang and K.-L. Wu, "A new validity index for fuzzy clustering,"
    10th IEEE International Conference on Fuzzy Systems, 2001, pp. 89-92.
    E. Lughofer, "Extensions of vector quantization for incremental
    clustering," Pattern Recognit., vol. 41, no. 3, pp. 995-1011, 2008.
"""

import logging
from typing import Any, Mapping

import numpy as np

from .base import DEGENERATE_VALUE, CentroidCVI, CriterionResult, coincident, off_diagonal_mask

logger = logging.getLogger(__name__)


class PS(CentroidCVI):
    """
    Partition Separation index. Higher is better.

    ``PS_i = n[i] / max(n) - exp(-min_{j != i} D[i, j] / beta_t)`` where
    ``beta_t`` is the mean squared distance of the centroids to their mean.
    """

    name = "ps"
    requires = ("n", "v", "D")
    higher_is_better = True
    track_compactness = False

    def _reset_params(self) -> None:
        super()._reset_params()
        self.v_bar = np.zeros(0)
        self.beta_t = 0.0
        self.PS_i = np.zeros(0)

    @staticmethod
    def criterion(params: Mapping[str, Any], n_samples: int) -> CriterionResult:
        n, v, D = params["n"], params["v"], params["D"]
        n_clusters = len(n)
        if n_clusters < 2:
            return CriterionResult(0.0, extras={"PS_i": np.zeros(n_clusters)})

        v_bar = v.mean(axis=0)
        diffs = v - v_bar
        beta_t = float(np.einsum("ij,ij->", diffs, diffs) / n_clusters)
        extras = {"v_bar": v_bar, "beta_t": beta_t}
        if coincident(beta_t, np.einsum("ij,ij->i", v, v).max()):
            extras["PS_i"] = np.zeros(n_clusters)
            return CriterionResult(DEGENERATE_VALUE, True, extras)

        nearest = np.where(off_diagonal_mask(n_clusters), D, np.inf).min(axis=1)
        PS_i = n / np.max(n) - np.exp(-nearest / beta_t)
        extras["PS_i"] = PS_i
        return CriterionResult(float(np.sum(PS_i)), extras=extras)
