"""Centralized logging configuration for Sizwe Guide."""

import logging
import sys
from typing import Optional


NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "google.genai",
    "google_genai",
    "google.auth",
    "urllib3",
    "moviepy",
    "PIL",
    "numba",
    "gradio",
)

PROGRESS_PREFIXES = {
    "start": "🚀 ",
    "update": "   ▶ ",
    "complete": "✅ ",
}


class ProgressFormatter(logging.Formatter):
    """Prefixes progress records emitted by log_start/log_update/log_complete."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        prefix = PROGRESS_PREFIXES.get(getattr(record, "progress_type", None))
        if prefix:
            head, sep, tail = message.rpartition("| ")
            return f"{head}{sep}{prefix}{tail}" if sep else f"{prefix}{message}"
        return message


def configure_logging(
    level: str = "INFO",
    format: Optional[str] = None,
    suppress_external: bool = True
) -> None:
    """Configure logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        format: Custom format string, or None for default
        suppress_external: If True, suppress noisy external library logs
    """
    # Default format: levelname | time | filename:lineno | message
    if format is None:
        format = "%(levelname)-5s | %(asctime)s | %(filename)s:%(lineno)d | %(message)s"

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ProgressFormatter(format, datefmt="%H:%M:%S"))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[handler],
        force=True  # Reconfigure if already configured
    )

    if suppress_external:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name (usually __name__)."""
    return logging.getLogger(name)


def _log_progress(logger: logging.Logger, message: str, progress_type: str) -> None:
    logger.info(message, extra={"progress_type": progress_type}, stacklevel=3)


def log_start(logger: logging.Logger, message: str) -> None:
    """Log the start of a task."""
    _log_progress(logger, message, "start")


def log_update(logger: logging.Logger, message: str) -> None:
    """Log a progress update."""
    _log_progress(logger, message, "update")


def log_complete(logger: logging.Logger, message: str) -> None:
    """Log task completion."""
    _log_progress(logger, message, "complete")
