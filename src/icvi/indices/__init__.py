"""
Cluster validity indices with matching batch and incremental modes.

Provides:
- DB   (Davies-Bouldin)
- XB   (Xie-Beni)
- PS   (Partition Separation)
- CSIL (centroid-based silhouette)
- GraphCVI, several indices over shared statistics
"""

from .base import DEGENERATE_VALUE, BaseCVI, CentroidCVI, CriterionResult
from .composite import GraphCVI
from .csil import CSIL
from .db import DB
from .ps import PS
from .registry import INDICES, available_indices, get_cvi_class, make_cvi
from .xb import XB

__all__ = [
    "DEGENERATE_VALUE",
    "BaseCVI",
    "CentroidCVI",
    "CriterionResult",
    "DB",
    "XB",
    "PS",
    "CSIL",
    "GraphCVI",
    "INDICES",
    "available_indices",
    "get_cvi_class",
    "make_cvi",
]
