"""Logging setup for the CLI and the HTTP server."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "takedown_insights"

_handler: logging.Handler | None = None


def setup_logging(level: str | int = "INFO", console: Console | None = None) -> logging.Logger:
    """Attach a Rich handler to the package logger (idempotent).

    Calling again only adjusts the level.
    """
    global _handler

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if _handler is None:
        _handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        _handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(_handler)
        logger.propagate = False

    _handler.setLevel(level)
    return logger


def reset_logging() -> None:
    """Detach the handler installed by :func:`setup_logging`. Mainly for tests."""
    global _handler
    logger = logging.getLogger(LOGGER_NAME)
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler = None
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
