"""
icvi: batch and incremental cluster validity indices.

Example:
    from icvi import DB

    cvi = DB()
    for x, label in stream:
        value = cvi.get_cvi(x, label)
"""

from icvi.errors import (
    CVIError,
    CycleError,
    DimensionMismatchError,
    ParamGraphError,
    UnknownIndexError,
)
from icvi.indices import CSIL, DB, PS, XB, GraphCVI, available_indices, get_cvi_class, make_cvi
from icvi.label_map import LabelMap

__version__ = "0.1.0"

__all__ = [
    "CVIError",
    "CycleError",
    "DimensionMismatchError",
    "ParamGraphError",
    "UnknownIndexError",
    "CSIL",
    "DB",
    "PS",
    "XB",
    "GraphCVI",
    "LabelMap",
    "available_indices",
    "get_cvi_class",
    "make_cvi",
]
