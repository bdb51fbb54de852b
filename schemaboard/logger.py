"""Loguru configuration shared by the API, the pipeline and the CLI.

Import the configured logger everywhere::

    from schemaboard.logger import logger
"""

from __future__ import annotations

import sys

from loguru import logger

from schemaboard.config import settings

# Remove default handlers and configure our own
logger.remove()

logger.add(
    sys.stderr,
    level=settings.log_level,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>",
)

if settings.log_dir is not None:
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    logger.add(
        settings.log_dir / "schemaboard.log",
        rotation="10 MB",
        retention="10 days",
        level=settings.log_level,
        encoding="utf-8",
        enqueue=True,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
    )

__all__ = ["logger"]
