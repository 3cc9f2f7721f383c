"""Mini README: Application-wide logging helpers for dailybudget.

Structure:
    * get_logger - factory returning module loggers with baseline setup.
    * configure_root_logger - configures the root handler exactly once.

Usage:
    Modules call ``get_logger(__name__)`` at import time. The CLI calls
    ``configure_root_logger`` with the level it wants before starting the
    server; repeated calls only adjust the level and never stack handlers.
"""

from __future__ import annotations

import logging
from typing import Optional

_LOGGER_INITIALISED = False


def configure_root_logger(level: int = logging.INFO) -> None:
    """Configure the root logger with a readable single-line formatter."""

    global _LOGGER_INITIALISED
    root_logger = logging.getLogger()
    if _LOGGER_INITIALISED:
        root_logger.setLevel(level)
        return

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    root_logger.setLevel(level)
    root_logger.addHandler(handler)
    _LOGGER_INITIALISED = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module-specific logger ensuring baseline configuration."""

    if not _LOGGER_INITIALISED:
        configure_root_logger()
    return logging.getLogger(name)
