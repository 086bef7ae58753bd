import logging
from typing import Dict, Hashable, Iterable, Optional

import numpy as np

from icvi.params.graph import CVIOpts, ParamGraph, ParamState
from icvi.params.registry import default_graph

from .base import DEGENERATE_VALUE, StreamingEvaluator, as_arrays
from .registry import get_cvi_class

logger = logging.getLogger(__name__)


class GraphCVI(StreamingEvaluator):
    """
    Several validity indices evaluated over one shared set of statistics.

    The parameters needed by every requested index (plus ``opts.params``)
    are resolved once, at construction, into a linear plan through the
    parameter graph. Each step runs that plan once, so a statistic shared
    by several indices (centroids, compactness, distances) is computed a
    single time.

    Example:
        cvi = GraphCVI(["db", "xb"])
        for x, label in stream:
            values = cvi.get_cvi(x, label)   # {"db": ..., "xb": ...}
    """

    def __init__(
        self,
        indices: Iterable[str] = ("db", "xb", "ps", "csil"),
        opts: Optional[CVIOpts] = None,
        graph: Optional[ParamGraph] = None,
    ):
        self.index_classes = {name: get_cvi_class(name) for name in indices}
        self.opts = opts or CVIOpts()
        self.graph = graph or default_graph()

        requested = list(self.opts.params)
        for cls in self.index_classes.values():
            requested.extend(cls.requires)
        self.plan = self.graph.plan(requested)

        logger.info(
            f"GraphCVI initialized for {list(self.index_classes)} "
            f"with plan {self.plan.names}."
        )
        super().__init__()

    # ------------------------------------------------------------------
    def _reset_params(self) -> None:
        self.state = ParamState()
        self.criterion_values: Dict[str, float] = {name: 0.0 for name in self.index_classes}
        self.degenerate: Dict[str, bool] = {name: False for name in self.index_classes}

    def _setup(self, dim: int) -> None:
        self.state.setup(dim, self.plan.specs)

    def _param_inc(self, sample: np.ndarray, k: int, is_new: bool) -> None:
        self.plan.run_inc(self.state, sample, k, is_new, self.n_samples)

    def _param_batch(self, data: np.ndarray, internal: np.ndarray, n_clusters: int) -> None:
        self.plan.run_batch(self.state, data, internal, n_clusters)

    @property
    def params(self):
        """Current values of every tracked parameter."""
        return self.state.params

    # ------------------------------------------------------------------
    def evaluate(self) -> Dict[str, float]:
        """Criterion value of every requested index."""
        inputs = as_arrays(self.state.params)
        for name, cls in self.index_classes.items():
            result = cls.criterion(inputs, self.n_samples)
            if result.degenerate and not self.degenerate[name]:
                logger.warning(
                    f"GraphCVI[{name}]: degenerate geometry; criterion set to {DEGENERATE_VALUE}."
                )
            self.criterion_values[name] = float(result.value)
            self.degenerate[name] = result.degenerate
        return dict(self.criterion_values)

    def get_cvi(self, sample, label: Hashable) -> Dict[str, float]:
        self.param_inc(sample, label)
        return self.evaluate()

    def get_cvi_batch(self, data, labels) -> Dict[str, float]:
        self.param_batch(data, labels)
        return self.evaluate()

    def __repr__(self) -> str:
        return (
            f"GraphCVI(indices={list(self.index_classes)}, n_samples={self.n_samples}, "
            f"n_clusters={self.n_clusters})"
        )
