"""Logging configuration for the RemNote bridge."""

import sys

from loguru import logger

LOG_PREFIX = "[remnote-bridge] "


def configure_logging(*, verbose: bool = False) -> None:
    """Configure loguru with appropriate level."""
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(sys.stderr, level=level, format="{level.icon} " + LOG_PREFIX + "{message}")
