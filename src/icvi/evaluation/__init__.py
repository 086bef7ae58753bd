"""
Evaluation helpers for icvi.

Provides:
- ClusterEvaluator: several indices over one dataset, batch or streamed
- compute_criterion: one index over one dataset, batch
"""

from .evaluator import ClusterEvaluator
from .batch import compute_criterion

__all__ = [
    "ClusterEvaluator",
    "compute_criterion",
]
