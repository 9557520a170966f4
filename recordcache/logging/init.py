from __future__ import annotations

import logging
import sys

"""Logging initialization with labeled prefixes.

Every line written by the CLI carries a label (INFO|WARN|ERROR|SUMMARY) so the
output stays grep-able in CI logs. Standard logging only.

Module loggers are created with ``logging.getLogger(__name__)`` below the
``recordcache`` package, so they inherit the handler configured here.
Per-row import failures additionally go to the JSON Lines buffer in
``recordcache.logging.error_log``.
"""

__all__ = [
    "setup_logging",
    "get_logger",
    "log_summary",
    "reset_logging",
]

LOGGER_NAME = "recordcache"

# Custom SUMMARY level (between INFO=20 and WARNING=30)
SUMMARY_LEVEL = 25

_logger: logging.Logger | None = None


def _origin(logger_name: str) -> str:
    """Module path below the package, e.g. ``store.local_cache``; empty for the app logger."""
    prefix = LOGGER_NAME + "."
    return logger_name[len(prefix):] if logger_name.startswith(prefix) else ""


class LabeledFormatter(logging.Formatter):
    """Formatter that prefixes each message with a short level label.

    - INFO: informational messages
    - WARN: warnings (dropped rows, degraded local storage)
    - ERROR: fatal problems
    - SUMMARY: the final summary line of a command
    """

    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def __init__(self, show_origin: bool = False) -> None:
        super().__init__()
        self.show_origin = show_origin

    def format(self, record: logging.LogRecord) -> str:
        level_label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        origin = _origin(record.name) if self.show_origin else ""
        if origin:
            return f"{level_label} [{origin}] {record.getMessage()}"
        return f"{level_label} {record.getMessage()}"


def setup_logging() -> logging.Logger:
    """Configure the ``recordcache`` logger (stdout, labeled prefixes).

    Idempotent: repeated calls return the same logger without stacking
    handlers.

    Returns:
        Configured logger instance for the application
    """
    global _logger

    if _logger is not None:
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.INFO)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)

    # Avoid duplicate output through the root logger
    logger.propagate = False

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """Get the configured application logger, configuring it on first use."""
    if _logger is None:
        return setup_logging()
    return _logger


def enable_debug(logger: logging.Logger) -> None:
    """Lower levels to DEBUG and tag each line with the module that logged it."""
    for h in logger.handlers:
        h.setLevel(logging.DEBUG)
        if isinstance(h.formatter, LabeledFormatter):
            h.formatter.show_origin = True
    logger.setLevel(logging.DEBUG)


def log_summary(message: str) -> None:
    """Log a message at SUMMARY level.

    Args:
        message: The summary message to log (without the ``SUMMARY`` label)
    """
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Reset the global logger state. Mainly for testing purposes."""
    global _logger
    _logger = None
