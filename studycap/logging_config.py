"""Loguru sink setup shared by the CLI and tests."""

import sys
from typing import Optional

from loguru import logger

from studycap.config import settings


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Replace loguru's default handler with the configured sinks.

    Args:
        level: Minimum level for stderr (defaults to settings.log_level)
        log_file: Optional path for a rotating debug log (defaults to settings.log_file)
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=level or settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )

    log_file = log_file or settings.log_file
    if log_file:
        logger.add(
            log_file,
            level="DEBUG",
            rotation="5 MB",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        )
