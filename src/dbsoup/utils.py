"""Logging setup shared by the CLI and library callers."""

import sys
from typing import Optional

from loguru import logger

LOG_FORMAT = "<level>{level: <8}</level> | <cyan>{name}</cyan> - <level>{message}</level>"


def setup_logging(level: str = "WARNING", log_file: Optional[str] = None) -> None:
    """Configure loguru sinks.

    Library modules only emit; the entry point decides where records go.

    Args:
        level: Minimum level for the stderr sink
        log_file: Optional path of an additional rotating file sink (always DEBUG)
    """
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT, colorize=None)
    if log_file:
        logger.add(
            log_file,
            level="DEBUG",
            rotation="10 MB",
            retention="10 days",
            backtrace=True,
            diagnose=False,
            enqueue=False,
        )
    logger.debug(f"Logging configured: level={level}, log_file={log_file}")
