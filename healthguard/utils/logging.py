"""
Logging setup.

Configures loguru logger for the ledger integrity services and scripts.
Sets up log rotation and retention policies for the optional file sink.
"""

import sys

from loguru import logger


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure stderr sink and optional rotating file sink."""
    logger.remove()
    logger.add(sys.stderr, level=level)

    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            level=level,
            encoding="utf-8",
        )
