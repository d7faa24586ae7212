"""Logging setup for Fabric Finder.

Every module logs through a child of the ``fabric_finder`` logger. Output goes
to stdout (the Streamlit server console) with short level labels:

    INFO fetched 183 rows from https://docs.google.com/...
    WARN invalid image link for fabric 'Linen Grey': ...
"""

from __future__ import annotations

import logging
import sys

__all__ = [
    "LOGGER_NAME",
    "LabeledFormatter",
    "setup_logging",
    "get_logger",
    "reset_logging",
]

LOGGER_NAME = "fabric_finder"

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """Prefix each message with a short level label (INFO|WARN|ERROR)."""

    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        level_label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        message = f"{level_label} {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def setup_logging(level: str | int = "INFO") -> logging.Logger:
    """Configure the application logger once and return it.

    Streamlit re-executes the page script on every interaction, so repeated
    calls must not stack handlers.
    """
    global _logger

    if _logger is not None:
        return _logger

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)

    # Streamlit installs its own root handlers
    logger.propagate = False

    _logger = logger
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the application logger, or a named child of it."""
    if not name:
        return logging.getLogger(LOGGER_NAME)
    if name.startswith(LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def reset_logging() -> None:
    """Reset the global logger state. Mainly for testing purposes."""
    global _logger
    if _logger is not None:
        for handler in _logger.handlers[:]:
            _logger.removeHandler(handler)
        _logger.propagate = True
    _logger = None
