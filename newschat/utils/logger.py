"""
Logging
Pre-configured logger factory shared by every NewsChat module
"""

import logging
import sys
from typing import Optional

from newschat.config import settings


_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: Optional[str]) -> int:
    resolved = logging.getLevelName((level or settings.LOG_LEVEL).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Create and return a named logger with the standard formatter.

    Args:
        name: Usually ``__name__`` of the calling module
        level: Level name override (defaults to settings.LOG_LEVEL)

    Returns:
        Configured logging.Logger
    """
    logger = logging.getLogger(name)

    # Avoid duplicate handlers when a module is re-imported
    if not logger.handlers:
        resolved = _resolve_level(level)
        logger.setLevel(resolved)

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(resolved)
        handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    return logger
