"""
Loguru sink configuration.
"""

import sys

from loguru import logger

from chatwidget.config import settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - {message}"
)


def setup_logging(level: str = None) -> None:
    """Replace loguru's default stderr sink with one at the configured level."""
    level = (level or ("DEBUG" if settings.DEBUG else settings.LOG_LEVEL)).upper()
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT, backtrace=settings.DEBUG)
