"""Logging helpers."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _is_stream_handler(handler: logging.Handler) -> bool:
    # FileHandler subclasses StreamHandler
    return isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler)


def _has_file_handler(logger: logging.Logger, log_file: str) -> bool:
    path = os.path.abspath(log_file)
    return any(isinstance(h, RotatingFileHandler) and h.baseFilename == path for h in logger.handlers)


def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> logging.Logger:
    """Configure the ``runlens`` logger. Repeat calls add no duplicate handlers.

    Warnings go to stderr (everything with ``verbose``); ``log_file`` adds a
    rotating file handler at DEBUG.
    """
    logger = logging.getLogger("runlens")
    logger.setLevel(logging.DEBUG)
    fmt = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    if not any(_is_stream_handler(h) for h in logger.handlers):
        stream = logging.StreamHandler()
        stream.setFormatter(fmt)
        logger.addHandler(stream)

    if log_file and not _has_file_handler(logger, log_file):
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        handler = RotatingFileHandler(log_file, maxBytes=2_000_000, backupCount=3)
        handler.setFormatter(fmt)
        handler.setLevel(logging.DEBUG)
        logger.addHandler(handler)

    for handler in logger.handlers:
        if not isinstance(handler, RotatingFileHandler):
            handler.setLevel(logging.DEBUG if verbose else logging.WARNING)

    return logger
