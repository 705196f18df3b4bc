"""Logging setup shared by the API process and operator scripts."""
from __future__ import annotations

import logging

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | int = logging.INFO, *, stream=None) -> logging.Logger:
    """Attach a single stream handler to the ``app`` logger tree.

    Calling it again only updates the level, so reloads and tests do not
    stack duplicate handlers.
    """

    logger = logging.getLogger("app")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
        logger.addHandler(handler)

    return logger


__all__ = ["configure_logging", "DEFAULT_LOG_FORMAT"]
