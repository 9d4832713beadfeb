"""
Logging helpers shared by the CLI, the recommendation client and the mock service.
"""

import json
import logging
import os
from typing import Any, Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging with timestamps.

    Args:
        level: Level name (e.g. "DEBUG"). Defaults to LOG_LEVEL env var, then INFO.
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT
    )


def log_json(logger: logging.Logger, label: str, data: Any, level: int = logging.DEBUG) -> None:
    """Log a JSON-serializable value pretty-printed under a label."""
    if not logger.isEnabledFor(level):
        return
    try:
        rendered = json.dumps(data, indent=2, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        rendered = repr(data)
    logger.log(level, f"{label}:\n{rendered}")
