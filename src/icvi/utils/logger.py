import logging
import sys

LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def setup_logger(name: str, level=logging.INFO) -> logging.Logger:
    """Set up a clean, single-stream logger (no duplication)."""
    # Remove any pre-existing handlers (e.g., Jupyter root handler)
    root = logging.getLogger()
    for h in root.handlers[:]:
        root.removeHandler(h)

    # Configure base logging once; module loggers emit through root only
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger
