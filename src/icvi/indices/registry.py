from typing import Dict, List, Type

from icvi.errors import UnknownIndexError

from .base import BaseCVI
from .csil import CSIL
from .db import DB
from .ps import PS
from .xb import XB

INDICES: Dict[str, Type[BaseCVI]] = {cls.name: cls for cls in (DB, XB, PS, CSIL)}


def available_indices() -> List[str]:
    return sorted(INDICES)


def get_cvi_class(name: str) -> Type[BaseCVI]:
    """Look up an index class by its short name (case-insensitive)."""
    cls = INDICES.get(str(name).lower())
    if cls is None:
        raise UnknownIndexError(
            f"Unknown validity index '{name}'. Available: {', '.join(available_indices())}"
        )
    return cls


def make_cvi(name: str) -> BaseCVI:
    return get_cvi_class(name)()
