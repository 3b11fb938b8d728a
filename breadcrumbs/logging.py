"""The ``breadcrumbs`` logger tree and its console setup."""

from __future__ import annotations

import logging
from pathlib import Path

ROOT_LOGGER = "breadcrumbs"
CONSOLE_FORMAT = f"[{ROOT_LOGGER}] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(component: str | None = None) -> logging.Logger:
    """Return ``breadcrumbs.<component>``, or the root logger when no component is named."""
    if not component:
        return logging.getLogger(ROOT_LOGGER)
    return logging.getLogger(f"{ROOT_LOGGER}.{component}")


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send breadcrumbs records to stderr; ``verbose`` lowers the threshold to DEBUG.

    Calling this again replaces the handlers from the previous call. A
    ``log_file`` receives the same records with timestamps.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False
    logger.handlers.clear()

    logger.addHandler(_handler(logging.StreamHandler(), level, CONSOLE_FORMAT))
    if log_file is not None:
        logger.addHandler(
            _handler(logging.FileHandler(log_file, encoding="utf-8"), level, FILE_FORMAT)
        )
    return logger


__all__ = ["configure_logging", "get_logger"]
