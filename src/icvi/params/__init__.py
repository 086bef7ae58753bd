"""
Shared sufficient statistics for the validity indices.

- ElasticParams: growable per-cluster counts, centroids and compactness
- PairwiseMatrix: growable cluster-by-cluster matrix
- ParamGraph: dependency-ordered parameter declarations
"""

from .elastic import ElasticParams, centroid_update, compactness_update
from .graph import CVIOpts, EvalPlan, ParamGraph, ParamSpec, ParamState
from .pairwise import PairwiseMatrix, pairwise_squared_distances, squared_distances
from .registry import DEFAULT_SPECS, default_graph

__all__ = [
    "ElasticParams",
    "centroid_update",
    "compactness_update",
    "CVIOpts",
    "EvalPlan",
    "ParamGraph",
    "ParamSpec",
    "ParamState",
    "PairwiseMatrix",
    "pairwise_squared_distances",
    "squared_distances",
    "DEFAULT_SPECS",
    "default_graph",
]
