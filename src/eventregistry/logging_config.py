import logging
import os
import sys
from typing import Optional


def configure_logging(level: Optional[int] = None) -> None:
    """Install a single stdout handler on the root logger.

    Respects EVREG_LOG_LEVEL env var when no level is given.
    """
    if level is None:
        level = logging.INFO
        level_name = os.getenv("EVREG_LOG_LEVEL")
        if level_name:
            level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(stream=sys.stdout)
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    # Remove existing handlers to avoid duplicates on repeated calls
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
