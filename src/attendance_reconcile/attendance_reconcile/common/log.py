"""Logging initialization with labeled prefixes (INFO|WARN|ERROR).

Every module logs through a child of the ``attendance_reconcile`` logger,
obtained with ``get_logger(__name__)``. ``setup_logging`` configures the parent
once; calling it again only adjusts the level.
"""

from __future__ import annotations

import logging
import sys

__all__ = [
    "setup_logging",
    "get_logger",
]

ROOT_LOGGER_NAME = "attendance_reconcile"

_configured: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """Prefix each line with a short level label."""

    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        level_label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        message = f"{level_label} [{record.name}] {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def setup_logging(level: str | int = logging.INFO) -> logging.Logger:
    global _configured

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    if _configured is not None:
        _configured.setLevel(level)
        return _configured

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)

    # Prevent propagation to root logger to avoid duplicate output
    logger.propagate = False

    _configured = logger
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the application logger or one of its children.

    Module names inside the package (``attendance_reconcile.staging.store``...)
    are already children; anything else is nested under the application logger.
    """

    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    short = name.rsplit(f"{ROOT_LOGGER_NAME}.", 1)[-1]
    if short == ROOT_LOGGER_NAME:
        return logging.getLogger(ROOT_LOGGER_NAME)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{short}")


def reset_logging() -> None:
    """Reset the configured state. Mainly for testing purposes."""
    global _configured
    _configured = None
