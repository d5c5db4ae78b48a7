# Path: artindex/log.py
# Purpose: Configure process-wide logging for scripts and the HTTP surface.
# Layer: artindex.
# Details: Modules log through logging.getLogger(__name__); this installs one stream handler on the package root.

from __future__ import annotations

import logging
from typing import Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s | %(message)s"
PACKAGE_LOGGER = "artindex"


def configure_logging(level: Union[str, int] = "INFO") -> logging.Logger:
    """Attach a single stream handler to the package logger and set its level."""

    logger = logging.getLogger(PACKAGE_LOGGER)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)
    if not any(getattr(handler, "_artindex", False) for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._artindex = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
