"""
Logging setup.

All modules log through loguru's shared ``logger``; this only decides
where the records go.
"""
from __future__ import annotations

import sys

from loguru import logger

from cadence.config import Settings


def configure_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """
    Replace the default loguru handler.

    Args:
        level: Minimum level for stderr (and the file sink, if any)
        log_file: Optional path for an additional file sink
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<level>{level: <8}</level> | {name}:{function} - <level>{message}</level>",
    )

    if log_file:
        logger.add(log_file, level=level)


def configure_from_settings(settings: Settings) -> None:
    """Apply the log level and file from settings."""
    configure_logging(settings.log_level, settings.log_file)
