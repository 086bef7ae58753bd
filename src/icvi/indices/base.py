from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Hashable, Mapping, Sequence, Tuple

import numpy as np

from icvi.errors import DimensionMismatchError
from icvi.label_map import LabelMap
from icvi.params.elastic import ElasticParams, partition
from icvi.params.pairwise import PairwiseMatrix, pairwise_squared_distances, squared_distances

logger = logging.getLogger(__name__)

# Criterion value reported when the geometry makes a formula undefined
# (coincident centroids, zero centroid spread). ``degenerate`` is set too.
DEGENERATE_VALUE = 0.0

# Centroids closer than this fraction of their norm count as coincident,
# on the batch and the incremental path alike.
COINCIDENCE_RTOL = 1024 * np.finfo(float).eps


@dataclass
class CriterionResult:
    value: float
    degenerate: bool = False
    extras: Dict[str, Any] = field(default_factory=dict)


def as_arrays(params: Mapping[str, Any]) -> Dict[str, Any]:
    """Unwrap PairwiseMatrix containers so criterion formulas see plain arrays."""
    return {
        name: (value.values if isinstance(value, PairwiseMatrix) else value)
        for name, value in params.items()
    }


# ==============================================================================
#   StreamingEvaluator
# ==============================================================================


class StreamingEvaluator(ABC):
    """
    Input handling shared by every evaluator that consumes (sample, label)
    streams or full labeled datasets.

    Owns the label map, the feature dimension and the sample count. Inputs
    are validated before anything is mutated, so a rejected step leaves the
    instance unchanged.
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        """Return to the empty state (no samples, no clusters)."""
        self.label_map = LabelMap()
        self.dim = 0
        self.n_samples = 0
        self._reset_params()

    @property
    def n_clusters(self) -> int:
        return len(self.label_map)

    # ------------------------------------------------------------------
    def param_inc(self, sample, label: Hashable) -> None:
        """Fold one labeled sample into the running statistics."""
        sample = self._check_sample(sample)
        k = self.label_map.peek(label)
        is_new = k is None
        if is_new:
            k = self.n_clusters

        first = self.dim == 0
        if first:
            self.dim = sample.shape[0]
            self._setup(self.dim)

        try:
            self._param_inc(sample, k, is_new)
        except Exception:
            if first:
                self.dim = 0
                self._reset_params()
            raise

        if is_new:
            self.label_map.resolve(label)
            logger.debug(f"{type(self).__name__}: label {label!r} opened cluster {k}.")
        self.n_samples += 1

    def param_batch(self, data, labels) -> None:
        """Rebuild every statistic from a complete labeled dataset."""
        data, labels = self._check_batch(data, labels)
        self.reset()
        self.label_map, internal = partition(labels)
        self.dim = data.shape[1]
        self.n_samples = data.shape[0]
        self._setup(self.dim)
        self._param_batch(data, internal, self.n_clusters)
        logger.info(
            f"{type(self).__name__}: batch rebuild over {self.n_samples} samples, "
            f"{self.n_clusters} clusters."
        )

    # ------------------------------------------------------------------
    def _check_sample(self, sample) -> np.ndarray:
        sample = np.asarray(sample, dtype=float)
        if sample.ndim != 1 or sample.shape[0] == 0:
            raise ValueError(f"Sample must be a non-empty 1D vector, got shape={sample.shape}")
        if self.dim and sample.shape[0] != self.dim:
            raise DimensionMismatchError(self.dim, sample.shape[0])
        return sample

    @staticmethod
    def _check_batch(data, labels) -> Tuple[np.ndarray, np.ndarray]:
        data = np.asarray(data, dtype=float)
        labels = np.asarray(labels)
        if data.ndim != 2:
            raise ValueError(f"Batch data must be 2D (n_samples, dim), got shape={data.shape}")
        if data.shape[0] == 0 or data.shape[1] == 0:
            raise ValueError(f"Batch data must be non-empty, got shape={data.shape}")
        if labels.ndim != 1 or labels.shape[0] != data.shape[0]:
            raise ValueError(
                f"Expected {data.shape[0]} labels, got array of shape {labels.shape}"
            )
        return data, labels

    # ------------------------------------------------------------------
    @abstractmethod
    def _reset_params(self) -> None: ...

    @abstractmethod
    def _setup(self, dim: int) -> None: ...

    @abstractmethod
    def _param_inc(self, sample: np.ndarray, k: int, is_new: bool) -> None:
        """Apply one step for internal cluster ``k``; compute first, then write."""

    @abstractmethod
    def _param_batch(self, data: np.ndarray, internal: np.ndarray, n_clusters: int) -> None: ...

    @abstractmethod
    def evaluate(self): ...


# ==============================================================================
#   BaseCVI
# ==============================================================================


class BaseCVI(StreamingEvaluator):
    """
    A single cluster validity index with a uniform
    {param_inc, param_batch, evaluate} contract.

    Subclasses declare ``name``, the shared parameters they read
    (``requires``, resolved through the parameter graph when indices are
    composed) and a pure ``criterion`` formula over those parameters.
    """

    name: ClassVar[str] = ""
    requires: ClassVar[Sequence[str]] = ()
    higher_is_better: ClassVar[bool] = False

    def reset(self) -> None:
        self.criterion_value = 0.0
        self.degenerate = False
        super().reset()

    # ------------------------------------------------------------------
    def evaluate(self) -> float:
        """Compute the criterion value from the current statistics."""
        result = self.criterion(as_arrays(self._criterion_inputs()), self.n_samples)
        if result.degenerate and not self.degenerate:
            logger.warning(
                f"{type(self).__name__}: degenerate geometry (coincident centroids); "
                f"criterion set to {DEGENERATE_VALUE}."
            )
        self.criterion_value = float(result.value)
        self.degenerate = result.degenerate
        for attr, value in result.extras.items():
            setattr(self, attr, value)
        return self.criterion_value

    def get_cvi(self, sample, label: Hashable) -> float:
        """Incremental step followed by evaluation."""
        self.param_inc(sample, label)
        return self.evaluate()

    def get_cvi_batch(self, data, labels) -> float:
        """Batch rebuild followed by evaluation."""
        self.param_batch(data, labels)
        return self.evaluate()

    # ------------------------------------------------------------------
    @staticmethod
    @abstractmethod
    def criterion(params: Mapping[str, Any], n_samples: int) -> CriterionResult:
        """Pure formula over the shared parameters named in ``requires``."""

    @abstractmethod
    def _criterion_inputs(self) -> Mapping[str, Any]: ...

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(dim={self.dim}, n_samples={self.n_samples}, "
            f"n_clusters={self.n_clusters}, criterion_value={self.criterion_value:.6g})"
        )


# ==============================================================================
#   CentroidCVI
# ==============================================================================


class CentroidCVI(BaseCVI):
    """
    Indices built on per-cluster centroids and the symmetric matrix of
    squared centroid distances ``D``.

    Also tracks the running global data mean ``mu``.
    """

    track_compactness: ClassVar[bool] = True

    def _reset_params(self) -> None:
        self.params = ElasticParams(compactness=self.track_compactness)
        self.D = PairwiseMatrix(symmetric=True)
        self.mu = np.zeros(0)

    def _setup(self, dim: int) -> None:
        self.params.setup(dim)
        self.mu = np.zeros(dim)

    # ------------------------------------------------------------------
    def _param_inc(self, sample: np.ndarray, k: int, is_new: bool) -> None:
        p = self.params
        mu_new = self.mu + (sample - self.mu) / (self.n_samples + 1)
        if is_new:
            d_row = np.append(squared_distances(sample, p.v), 0.0)
            update = None
        else:
            update = p.compute_update(k, sample)
            d_row = squared_distances(update[1], p.v)
            d_row[k] = 0.0
        extra = self._stage_inc(k, is_new, update, d_row)

        # commit
        if is_new:
            p.append_cluster(sample)
            self.D.grow_by_one()
        else:
            p.commit_update(k, *update)
        self.D.set_row(k, d_row)
        self.mu = mu_new
        self._commit_inc(k, is_new, extra)

    def _param_batch(self, data: np.ndarray, internal: np.ndarray, n_clusters: int) -> None:
        self.params.rebuild(data, internal, n_clusters)
        self.D = PairwiseMatrix.from_array(pairwise_squared_distances(self.params.v))
        self.mu = data.mean(axis=0)

    # hooks for indices that maintain more pairwise state --------------
    def _stage_inc(self, k: int, is_new: bool, update, d_row: np.ndarray):
        return None

    def _commit_inc(self, k: int, is_new: bool, staged) -> None:
        pass

    def _criterion_inputs(self) -> Mapping[str, Any]:
        return {
            "n": self.params.n,
            "v": self.params.v,
            "CP": self.params.CP,
            "D": self.D,
        }


def off_diagonal_mask(n_clusters: int) -> np.ndarray:
    return ~np.eye(n_clusters, dtype=bool)


def coincident(sq_dist, sq_scale):
    """
    True where a squared distance is rounding noise relative to the squared
    norm ``sq_scale`` of the points it separates.
    """
    return np.asarray(sq_dist) <= COINCIDENCE_RTOL**2 * np.asarray(sq_scale)


def pairwise_scale(v: np.ndarray) -> np.ndarray:
    """``max(|v_i|^2, |v_j|^2)`` for every pair of centroids."""
    sq_norms = np.einsum("ij,ij->i", v, v)
    return np.maximum.outer(sq_norms, sq_norms)
