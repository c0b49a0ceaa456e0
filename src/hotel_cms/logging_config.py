"""Logging configuration for hotel-cms."""

import sys
from pathlib import Path

from loguru import logger


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> None:
    """Configure loguru sinks.

    Args:
        verbose: Emit DEBUG messages on stderr instead of INFO.
        log_file: Optional file that additionally receives every DEBUG+ record,
            rotated at 5 MB.
    """
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(sys.stderr, level=level, format="{level.icon} {message}")
    if log_file is not None:
        logger.add(
            log_file,
            level="DEBUG",
            rotation="5 MB",
            format="{time:YYYY-MM-DD HH:mm:ss} {level: <8} {name}:{line} {message}",
        )
