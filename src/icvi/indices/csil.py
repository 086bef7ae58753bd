"""
Centroid-based Silhouette (cSIL) cluster validity index, batch and incremental.

References:
    L. E. Brito da Silva, N. M. Melton, and D. C. Wunsch II, "Incremental
    Cluster Validity Indices for Hard Partitions: Extensions and
    Comparative Study," arXiv:1902.06711, 2019.
    M. Rawashdeh and A. Ralescu, "Center-wise intra-inter silhouettes,"
    Scalable Uncertainty Management, Springer, 2012, pp. 406-419.
"""

import logging
from typing import Any, Mapping

import numpy as np

from icvi.params.pairwise import PairwiseMatrix, silhouette_cross, silhouette_matrix

from .base import CentroidCVI, CriterionResult, off_diagonal_mask

logger = logging.getLogger(__name__)


class CSIL(CentroidCVI):
    """
    Centroid-based silhouette. Higher is better, in [-1, 1].

    Maintains ``S[i, j]``, the mean squared distance from the samples of
    cluster ``i`` to the centroid of cluster ``j``. ``S`` is not symmetric;
    a step on cluster ``k`` rewrites row ``k`` and column ``k`` only.
    """

    name = "csil"
    requires = ("S_sil",)
    higher_is_better = True

    def _reset_params(self) -> None:
        super()._reset_params()
        self.S = PairwiseMatrix(symmetric=False)
        self.sil_coefs = np.zeros(0)

    # ------------------------------------------------------------------
    def _stage_inc(self, k, is_new, update, d_row):
        p = self.params
        if is_new:
            scatter = np.append(p.CP / p.n, 0.0)
        else:
            n_new, _, CP_new, _ = update
            scatter = p.CP / p.n
            scatter[k] = CP_new / n_new
        return silhouette_cross(k, scatter, d_row)

    def _commit_inc(self, k, is_new, staged) -> None:
        if is_new:
            self.S.grow_by_one()
        self.S.set_cross(k, *staged)

    def _param_batch(self, data, internal, n_clusters) -> None:
        super()._param_batch(data, internal, n_clusters)
        S = silhouette_matrix(data, internal, self.params.v, self.params.n)
        self.S = PairwiseMatrix.from_array(S, symmetric=False)

    def _criterion_inputs(self) -> Mapping[str, Any]:
        return {"S_sil": self.S}

    # ------------------------------------------------------------------
    @staticmethod
    def criterion(params: Mapping[str, Any], n_samples: int) -> CriterionResult:
        S = params["S_sil"]
        n_clusters = S.shape[0]
        if n_clusters < 2:
            return CriterionResult(0.0, extras={"sil_coefs": np.zeros(n_clusters)})

        a = np.diag(S)
        b = np.where(off_diagonal_mask(n_clusters), S, np.inf).min(axis=1)
        denom = np.maximum(a, b)
        sil_coefs = np.divide(b - a, denom, out=np.zeros(n_clusters), where=denom > 0)
        return CriterionResult(float(np.mean(sil_coefs)), extras={"sil_coefs": sil_coefs})
