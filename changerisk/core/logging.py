"""
Centralized logging configuration for the risk engine.

The engine logs under the ``changerisk`` namespace; everything else
(LangGraph, pydantic-settings) is held at a separate, quieter level.

Usage:
    from changerisk.core.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Evaluating change %s", change.id)
"""

import logging
import sys
from typing import Optional

ENGINE_LOGGER = "changerisk"


def setup_logging(level: str = "INFO", library_level: str = "WARNING") -> None:
    """
    Route log records to stdout with the engine's format.

    Should be called once by the embedding process (worker, API server, CLI).

    Args:
        level: Level for the engine's own loggers (DEBUG, INFO, WARNING, ...).
        library_level: Level for the root logger, which third-party libraries
            inherit.
    """
    log_format = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"

    logging.basicConfig(
        level=_to_level(library_level, logging.WARNING),
        format=log_format,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    logging.getLogger(ENGINE_LOGGER).setLevel(_to_level(level, logging.INFO))


def _to_level(name: str, fallback: int) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else fallback


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger, typically ``get_logger(__name__)``."""
    return logging.getLogger(name)
