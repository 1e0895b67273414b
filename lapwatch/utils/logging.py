"""Logging utilities built on top of :mod:`loguru`."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

LOG_LEVEL_ENV = "LAPWATCH_LOG_LEVEL"
LOG_FORMAT = "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | {name}:{line} - {message}"


def setup_logging(log_file: Optional[Path] = None, level: str = "INFO") -> None:
    """Configure the global loguru logger.

    Args:
        log_file: Optional file path for a rotating log sink.
        level: Minimum log level. ``$LAPWATCH_LOG_LEVEL`` wins when set.
    """

    level = os.getenv(LOG_LEVEL_ENV, level).upper()
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, level=level, rotation="10 MB", retention="7 days", enqueue=True)


__all__ = ["setup_logging", "logger"]
