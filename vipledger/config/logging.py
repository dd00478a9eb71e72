"""
Logging configuration.

Configures loguru sinks with rotation and retention policies.
"""

import sys

from loguru import logger

from vipledger.config.settings import settings


def setup_logging(log_file: str | None = None) -> None:
    """Configure logger with stderr and rotating file sinks."""
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)
    logger.add(
        log_file or settings.log_file,
        rotation="1 day",
        retention="7 days",
        level=settings.log_level,
        encoding="utf-8",
    )

    logger.info(
        f"Logging configured (level={settings.log_level}, "
        f"environment={settings.environment})"
    )
