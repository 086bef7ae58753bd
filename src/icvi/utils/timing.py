import logging
import time
from contextlib import contextmanager

logger = logging.getLogger(__name__)


@contextmanager
def catch_time(task_name: str = "operation", level: int = logging.INFO):
    """Log how long the wrapped block took; log and re-raise on failure."""
    start = time.perf_counter()
    try:
        yield
        duration = time.perf_counter() - start
        logger.log(level, f"{task_name} completed in {duration:.4f}s")
    except Exception as e:
        duration = time.perf_counter() - start
        logger.error(f"{task_name} failed after {duration:.4f}s: {e}")
        raise
