import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: Optional[str] = "WARNING") -> None:
    """
    Configure logging globally; ``KMEANS_LOG_LEVEL`` overrides ``level``.
    """
    env_level = os.getenv("KMEANS_LOG_LEVEL")
    resolved_level = (env_level or level or "WARNING").upper()

    logging.basicConfig(
        level=getattr(logging, resolved_level, logging.WARNING),
        format=LOG_FORMAT,
    )
