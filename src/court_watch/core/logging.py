"""
Logging configuration for court-watch.

Every module logs through a child of the ``court_watch`` logger.  The
first ``get_logger()`` call installs one handler on that logger:

    - a ``RichHandler`` on stderr when stderr is a terminal
    - a plain ``StreamHandler`` with a timestamped line format otherwise
      (containers, cron runs of the scheduler, piped CLI output)

Queries, party names and filing titles are logged verbatim and often
contain square brackets, so Rich markup is off.

Configuration:
    LOG_LEVEL environment variable controls the logging level.
    Valid values: DEBUG, INFO, WARNING, ERROR, CRITICAL (default: INFO)

Usage:
    from court_watch.core.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Processing filing %s", case_number)
"""

import logging
import os
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "court_watch"

LINE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Library loggers and the level they are held at.  PyMuPDF reports every
# malformed object in a scanned court PDF, so it only gets through at ERROR.
THIRD_PARTY_LEVELS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "anthropic": logging.WARNING,
    "fitz": logging.ERROR,
    "uvicorn.access": logging.WARNING,
}

_logging_configured = False


def _get_log_level() -> int:
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def _build_handler(use_rich: bool) -> logging.Handler:
    if use_rich and sys.stderr.isatty():
        handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LINE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def configure_logging(
    level: Optional[int] = None,
    use_rich: bool = True,
) -> None:
    """
    Configure the package-level logger.

    The handler is installed once.  A later call with an explicit
    ``level`` (``court-watch --verbose`` after modules were imported)
    only changes the level of the existing logger and handler.

    Args:
        level: Logging level. If None, reads from LOG_LEVEL env var.
        use_rich: Whether to use RichHandler when stderr is a terminal.
    """
    global _logging_configured

    logger = logging.getLogger(LOGGER_NAME)

    if _logging_configured:
        if level is not None:
            logger.setLevel(level)
            for handler in logger.handlers:
                handler.setLevel(level)
        return

    log_level = level if level is not None else _get_log_level()
    logger.setLevel(log_level)
    logger.handlers.clear()

    handler = _build_handler(use_rich)
    handler.setLevel(log_level)
    logger.addHandler(handler)
    logger.propagate = False

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the ``court_watch`` namespace.

    Configures logging with default settings on first use.  A name
    outside the namespace (a script, a test module) is prefixed with it.
    """
    if not _logging_configured:
        configure_logging()

    if not name.startswith(LOGGER_NAME):
        name = f"{LOGGER_NAME}.{name}"

    return logging.getLogger(name)


def suppress_third_party_loggers() -> None:
    """Hold the libraries in ``THIRD_PARTY_LEVELS`` at their listed levels."""
    for logger_name, level in THIRD_PARTY_LEVELS.items():
        logging.getLogger(logger_name).setLevel(level)
