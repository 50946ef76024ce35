import sys
from typing import Optional

from loguru import logger

from .config.settings import get_settings


def setup_logging(level: Optional[str] = None):
    """Configure loguru with a single stderr sink; level defaults to settings."""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>",
        level=level or get_settings().log_level,
        backtrace=True,
        diagnose=False,
    )
    return logger
