import logging

from icvi.indices import make_cvi

logger = logging.getLogger(__name__)


def compute_criterion(embeddings, labels, index: str = "db") -> float:
    """
    Batch criterion value of a single validity index.

    Returns 0.0 for partitions with fewer than two clusters, like every
    index in incremental mode.
    """
    cvi = make_cvi(index)
    value = cvi.get_cvi_batch(embeddings, labels)
    logger.info(f"{index.upper()} computed over {cvi.n_clusters} clusters: {value:.4f}")
    return value
