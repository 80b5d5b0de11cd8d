"""Logging setup. The dashboard owns the terminal, so records go to a file."""

import logging
import os

from whale.constants import PROJECT_ROOT

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str = "INFO", path: str = "whale.log") -> str:
    """Send all ``whale.*`` records to ``path`` (relative to the project root). Returns the path."""
    if not os.path.isabs(path):
        path = os.path.join(PROJECT_ROOT, path)
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        print(f"[warning] Invalid log level '{level}', using INFO")
        numeric = logging.INFO

    handler = logging.FileHandler(path)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger = logging.getLogger("whale")
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    logger.addHandler(handler)
    logger.setLevel(numeric)
    logger.propagate = False
    return path
