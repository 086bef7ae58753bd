"""
Xie-Beni (XB) cluster validity index, batch and incremental.

References:
    X. L. Xie and G. Beni, "A Validity Measure for Fuzzy Clustering,"
    IEEE TPAMI, vol. 13, no. 8, pp. 841-847, 1991.
"""

import logging
from typing import Any, Mapping

import numpy as np

from .base import DEGENERATE_VALUE, CentroidCVI, CriterionResult, coincident, pairwise_scale

logger = logging.getLogger(__name__)


class XB(CentroidCVI):
    """
    Xie-Beni index: total within-cluster scatter over
    ``n_samples * (closest squared centroid distance)``. Lower is better.
    """

    name = "xb"
    requires = ("v", "CP", "D")

    def _reset_params(self) -> None:
        super()._reset_params()
        self.WGSS = 0.0
        self.SEP = 0.0

    @staticmethod
    def criterion(params: Mapping[str, Any], n_samples: int) -> CriterionResult:
        v, CP, D = params["v"], params["CP"], params["D"]
        WGSS = float(np.sum(CP))
        n_clusters = D.shape[0]
        if n_clusters < 2:
            return CriterionResult(0.0, extras={"WGSS": WGSS, "SEP": 0.0})

        upper = np.triu_indices(n_clusters, k=1)
        SEP = float(D[upper].min())
        if np.any(coincident(D[upper], pairwise_scale(v)[upper])):
            return CriterionResult(DEGENERATE_VALUE, True, {"WGSS": WGSS, "SEP": SEP})
        return CriterionResult(WGSS / (n_samples * SEP), extras={"WGSS": WGSS, "SEP": SEP})
