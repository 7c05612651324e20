"""Logging setup shared by the CLI and library callers."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_HANDLER_NAME = "espn_slate.stderr"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach one stderr handler to the package logger; safe to call repeatedly."""
    logger = logging.getLogger("espn_slate")
    resolved = getattr(logging, level.strip().upper(), None)
    if not isinstance(resolved, int):
        raise ValueError(f"unknown log level: {level}")
    logger.setLevel(resolved)

    for handler in logger.handlers:
        if handler.get_name() == _HANDLER_NAME:
            handler.setLevel(resolved)
            return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    return logger
