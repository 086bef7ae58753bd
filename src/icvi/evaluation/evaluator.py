import logging
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd
from tqdm import tqdm

from icvi.errors import DimensionMismatchError
from icvi.indices import GraphCVI, available_indices, make_cvi
from icvi.utils.timing import catch_time

logger = logging.getLogger(__name__)


class ClusterEvaluator:
    """
    Run several validity indices side by side over one labeled dataset.

    Example:
        evaluator = ClusterEvaluator(X, labels)
        final = evaluator.evaluate_all()            # batch, {"db": ..., ...}
        trace = evaluator.evaluate_stream()         # one row per sample
    """

    def __init__(self, embeddings, labels):
        self.embeddings = np.asarray(embeddings, dtype=float)
        self.labels = np.asarray(labels)
        if self.embeddings.ndim != 2:
            raise ValueError(
                f"ClusterEvaluator expected 2D array, got shape={self.embeddings.shape}"
            )
        if self.labels.shape != (self.embeddings.shape[0],):
            raise ValueError("Length mismatch between embeddings and labels")

    @staticmethod
    def _metric_names(metrics: Optional[Iterable[str]]) -> List[str]:
        known = set(available_indices())
        names = []
        for name in metrics if metrics is not None else available_indices():
            if name.lower() not in known:
                logger.warning(f"Unknown metric '{name}', skipping.")
                continue
            names.append(name.lower())
        return names

    # ------------------------------------------------------------------
    def evaluate_all(self, metrics=None) -> Dict[str, float]:
        """
        Compute all (or selected) indices in batch mode.

        Args:
            metrics (list[str], optional):
                Subset of indices to compute, e.g. ["db", "csil"]

        Returns:
            dict[str, float]: index name → criterion value
        """
        results = {}
        for name in self._metric_names(metrics):
            try:
                with catch_time(f"batch {name}", level=logging.DEBUG):
                    value = make_cvi(name).get_cvi_batch(self.embeddings, self.labels)
            except Exception as e:
                logger.error(f"Metric '{name}' failed: {e}")
                value = float("nan")
            results[name] = value

        msg = ", ".join(f"{k}: {v:.4f}" for k, v in results.items())
        logger.info(f"Evaluation metrics → {msg}")
        return results

    # ------------------------------------------------------------------
    def evaluate_stream(
        self, metrics=None, shared: bool = False, progress: bool = False
    ) -> pd.DataFrame:
        """
        Feed the samples one at a time and record every index after each step.

        Args:
            metrics (list[str], optional): subset of indices to compute.
            shared (bool): evaluate all indices over one ``GraphCVI`` so
                common statistics are updated once per step.
            progress (bool): show a tqdm progress bar.

        Returns:
            pd.DataFrame: one column per index, one row per sample.
        """
        names = self._metric_names(metrics)
        n_samples = self.embeddings.shape[0]
        values = np.full((n_samples, len(names)), np.nan)

        steps = zip(self.embeddings, self.labels)
        if progress:
            steps = tqdm(steps, total=n_samples, desc="ICVI stream")

        with catch_time(f"stream of {n_samples} samples over {names}"):
            if shared:
                cvi = GraphCVI(names)
                for ix, (x, label) in enumerate(steps):
                    out = cvi.get_cvi(x, label)
                    values[ix] = [out[name] for name in names]
            else:
                cvis = [make_cvi(name) for name in names]
                failed = set()
                for ix, (x, label) in enumerate(steps):
                    for jx, cvi in enumerate(cvis):
                        if jx in failed:
                            continue
                        try:
                            values[ix, jx] = cvi.get_cvi(x, label)
                        except DimensionMismatchError:
                            raise
                        except Exception as e:
                            logger.error(f"Metric '{names[jx]}' failed at sample {ix}: {e}")
                            failed.add(jx)

        return pd.DataFrame(values, columns=names).rename_axis("sample")
