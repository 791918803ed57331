"""Logging setup for conform.

All loggers live under the `conform` namespace. Only the namespace root
owns a stderr handler; module loggers (`conform.engine.traversal`, ...)
propagate to it, so one `configure_logging()` call changes every module.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

ROOT_LOGGER_NAME = "conform"
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _root_logger() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.propagate = False

    if root.level == logging.NOTSET:
        root.setLevel(logging.INFO)

    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(logging.Formatter(fmt=_LOG_FORMAT))
        root.addHandler(handler)

    return root


def configure_logging(level: str) -> logging.Logger:
    """Set the level shared by every conform logger.

    Args:
        level: Level name such as "DEBUG" or "warning".

    Returns:
        The namespace root logger.
    """

    root = _root_logger()
    root.setLevel(level.upper())
    return root


def get_logger(name: str = ROOT_LOGGER_NAME, level: Optional[str] = None) -> logging.Logger:
    """Return a logger inside the conform namespace.

    Args:
        name: Dotted module name. Names outside `conform.` are nested under it.
        level: Optional level for this logger only. If omitted, inherits from root.
    """

    _root_logger()

    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level.upper())
    return logger
