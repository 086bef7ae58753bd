from __future__ import annotations

import logging
from typing import Dict, Hashable, Iterable, List, Optional

logger = logging.getLogger(__name__)


class LabelMap:
    """
    Translate arbitrary external cluster labels into dense internal ids.

    Internal ids are assigned in order of first appearance, starting at 0.
    Mappings are created lazily and never removed.

    Example:
        lm = LabelMap()
        lm.resolve(5)    # -> 0
        lm.resolve(100)  # -> 1
        lm.resolve(5)    # -> 0
    """

    def __init__(self):
        self._ids: Dict[Hashable, int] = {}
        self._labels: List[Hashable] = []

    @classmethod
    def from_labels(cls, labels: Iterable[Hashable]) -> "LabelMap":
        """Build a map from a full label sequence (order of first appearance)."""
        label_map = cls()
        for label in labels:
            label_map.resolve(label)
        return label_map

    def resolve(self, label: Hashable) -> int:
        """Return the internal id for ``label``, assigning the next one if unseen."""
        label = _normalize(label)
        internal = self._ids.get(label)
        if internal is None:
            internal = len(self._labels)
            self._ids[label] = internal
            self._labels.append(label)
            logger.debug(f"New label {label!r} mapped to internal id {internal}.")
        return internal

    def peek(self, label: Hashable) -> Optional[int]:
        """Non-mutating lookup; ``None`` if the label has not been seen."""
        return self._ids.get(_normalize(label))

    @property
    def labels(self) -> List[Hashable]:
        """External labels ordered by internal id."""
        return list(self._labels)

    def __contains__(self, label) -> bool:
        return _normalize(label) in self._ids

    def __len__(self) -> int:
        return len(self._labels)

    def __repr__(self) -> str:
        return f"LabelMap({dict(self._ids)!r})"


def _normalize(label):
    # numpy scalars hash like their Python counterparts, but unwrap them so
    # the stored keys stay plain Python values
    if hasattr(label, "item") and getattr(label, "ndim", None) == 0:
        label = label.item()
    hash(label)
    return label
