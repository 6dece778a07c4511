"""Logging for the engine.

Every module logger lives under the ``holdem`` namespace and propagates to
a single stdout handler installed on the package root logger.
"""
import logging
import sys
from typing import Optional, Union

from holdem.config import config

ROOT_LOGGER = "holdem"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)
        root.setLevel(getattr(logging, config.log_level.upper(), logging.INFO))
    return root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger in the ``holdem`` namespace.

    Args:
        name: Logger name, typically __name__ of the calling module. Names
            outside the package are nested under ``holdem``.

    Returns:
        Logger that writes through the package handler.
    """
    root = _configure_root()
    if not name or name == ROOT_LOGGER:
        return root
    if not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def set_log_level(level: Union[int, str]) -> None:
    """Change the level of every engine logger at once."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    _configure_root().setLevel(level)
