"""
Declarative, dependency-ordered parameter evaluation.

Each named parameter declares how to compute its new value on the
incremental path and on the batch path, which other parameters it reads,
and how it is stored. ``ParamGraph.resolve`` turns a requested subset into a
linear evaluation order (dependencies first, each name once), so several
indices can share sub-statistics such as centroids instead of recomputing
them.

Update functions never write state. On the incremental path every function
receives a ``StepContext`` and returns the new value for the touched
cluster; on the batch path it receives a ``BatchContext`` and returns the
full value. All values are committed only after the whole order ran.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Sequence, Tuple

import numpy as np

from icvi.errors import CycleError, ParamGraphError
from icvi.params.pairwise import PairwiseMatrix

logger = logging.getLogger(__name__)

SHAPES = ("scalar", "vector", "matrix", "pairwise")
GROWTHS = ("extend", "replace")


@dataclass(frozen=True)
class ParamSpec:
    """
    Declaration of one shared parameter.

    shape:
        "scalar"    one number for the whole state
        "vector"    one number per cluster (or one ``dim`` vector if replaced)
        "matrix"    one ``dim`` row per cluster
        "pairwise"  one entry per ordered pair of clusters
    growth:
        "extend"    a slot is appended for every new cluster
        "replace"   the whole value is recomputed in place
    """

    name: str
    inc: Callable[["StepContext"], Any]
    batch: Callable[["BatchContext"], Any]
    deps: Tuple[str, ...] = ()
    shape: str = "vector"
    dtype: type = float
    growth: str = "extend"
    symmetric: bool = True

    def __post_init__(self):
        if self.shape not in SHAPES:
            raise ParamGraphError(f"Parameter '{self.name}': unknown shape '{self.shape}'")
        if self.growth not in GROWTHS:
            raise ParamGraphError(f"Parameter '{self.name}': unknown growth '{self.growth}'")
        if self.shape in ("matrix", "pairwise") and self.growth != "extend":
            raise ParamGraphError(f"Parameter '{self.name}': {self.shape} parameters must extend")

    # ------------------------------------------------------------------
    def empty(self, dim: int):
        """Initial value before any cluster exists."""
        if self.growth == "replace":
            return self.dtype(0) if self.shape == "scalar" else np.zeros(dim, dtype=self.dtype)
        if self.shape == "pairwise":
            return PairwiseMatrix(symmetric=self.symmetric)
        if self.shape == "matrix":
            return np.zeros((0, dim), dtype=self.dtype)
        return np.zeros(0, dtype=self.dtype)

    def commit_inc(self, current, value, k: int, is_new: bool):
        """Write the staged value for cluster ``k`` into ``current``."""
        if self.growth == "replace":
            return value
        if self.shape == "pairwise":
            if is_new:
                current.grow_by_one()
            if self.symmetric:
                current.set_row(k, value)
            else:
                current.set_cross(k, *value)
            return current
        if is_new:
            if self.shape == "matrix":
                return np.vstack([current, value])
            return np.append(current, np.asarray(value, dtype=self.dtype))
        current[k] = value
        return current

    def commit_batch(self, value):
        if self.shape == "pairwise":
            return PairwiseMatrix.from_array(value, symmetric=self.symmetric)
        if self.growth == "replace" and self.shape == "scalar":
            return self.dtype(value)
        return np.asarray(value, dtype=self.dtype)


@dataclass
class ParamState:
    """Committed values of every tracked parameter."""

    dim: int = 0
    params: Dict[str, Any] = field(default_factory=dict)

    def setup(self, dim: int, specs: Iterable[ParamSpec]) -> None:
        self.dim = dim
        self.params = {spec.name: spec.empty(dim) for spec in specs}


class StepContext:
    """Read access for incremental update functions during one step."""

    def __init__(self, state: ParamState, sample: np.ndarray, k: int, is_new: bool, n_samples: int):
        self.state = state
        self.sample = sample
        self.k = k
        self.is_new = is_new
        self.n_samples = n_samples  # before this step
        self.staged: Dict[str, Any] = {}

    @property
    def dim(self) -> int:
        return self.state.dim

    def old(self, name: str):
        """Committed value (before this step)."""
        return self.state.params[name]

    def new(self, name: str):
        """Value staged earlier in this step (for cluster ``k``)."""
        return self.staged[name]


class BatchContext:
    """Read access for batch update functions."""

    def __init__(self, data: np.ndarray, internal: np.ndarray, n_clusters: int):
        self.data = data
        self.internal = internal
        self.n_clusters = n_clusters
        self.staged: Dict[str, Any] = {}

    @property
    def dim(self) -> int:
        return self.data.shape[1]

    def get(self, name: str):
        return self.staged[name]


# ==============================================================================
#   ParamGraph
# ==============================================================================


class ParamGraph:
    """
    Registry of parameter declarations with dependency resolution.

    The whole graph is checked at construction: every dependency must be
    declared and no cycle may exist.
    """

    def __init__(self, specs: Iterable[ParamSpec]):
        self.specs: Dict[str, ParamSpec] = {}
        for spec in specs:
            if spec.name in self.specs:
                raise ParamGraphError(f"Parameter '{spec.name}' declared twice")
            self.specs[spec.name] = spec
        self.resolve(self.specs)

    def __contains__(self, name: str) -> bool:
        return name in self.specs

    def resolve(self, names: Iterable[str]) -> List[str]:
        """
        Depth-first topological order covering ``names`` and all their
        dependencies; each parameter appears once, after its dependencies.
        """
        order: List[str] = []
        done = set()
        path: List[str] = []

        def visit(name: str) -> None:
            if name in done:
                return
            if name in path:
                raise CycleError(path[path.index(name):] + [name])
            spec = self.specs.get(name)
            if spec is None:
                requester = f" (required by '{path[-1]}')" if path else ""
                raise ParamGraphError(f"Unknown parameter '{name}'{requester}")
            path.append(name)
            for dep in spec.deps:
                visit(dep)
            path.pop()
            done.add(name)
            order.append(name)

        for name in names:
            visit(name)
        return order

    # ------------------------------------------------------------------
    def plan(self, names: Iterable[str]) -> "EvalPlan":
        """Resolve once into a reusable execution plan."""
        order = self.resolve(names)
        logger.debug(f"Parameter evaluation order: {order}")
        return EvalPlan([self.specs[name] for name in order])


class EvalPlan:
    """A cached linear order of parameter specs, executed once per step."""

    def __init__(self, specs: Sequence[ParamSpec]):
        self.specs = list(specs)

    @property
    def names(self) -> List[str]:
        return [spec.name for spec in self.specs]

    def run_inc(self, state: ParamState, sample, k: int, is_new: bool, n_samples: int) -> None:
        ctx = StepContext(state, sample, k, is_new, n_samples)
        for spec in self.specs:
            ctx.staged[spec.name] = spec.inc(ctx)
        for spec in self.specs:
            state.params[spec.name] = spec.commit_inc(
                state.params[spec.name], ctx.staged[spec.name], k, is_new
            )

    def run_batch(self, state: ParamState, data, internal, n_clusters: int) -> None:
        ctx = BatchContext(data, internal, n_clusters)
        for spec in self.specs:
            ctx.staged[spec.name] = spec.batch(ctx)
        state.setup(data.shape[1], self.specs)
        for spec in self.specs:
            state.params[spec.name] = spec.commit_batch(ctx.staged[spec.name])

    def __repr__(self) -> str:
        return f"EvalPlan({' -> '.join(self.names)})"


@dataclass
class CVIOpts:
    """Parameters always tracked by a composite evaluator, whatever indices it runs."""

    params: Tuple[str, ...] = ("n", "v", "CP", "G", "mu")
