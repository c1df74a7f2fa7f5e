"""Logging for the host-side modules.

``storage`` and ``service`` obtain loggers through ``get_logger(__name__)``.
The analytics functions themselves never log; they report skipped records in
their return values and leave messaging to the caller.

Importing the package installs only a ``NullHandler``, so an application
keeps control of where records go.  Scripts that want console output call
``configure_logging()`` once at start-up.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Optional

from .config import LOG_LEVEL

PACKAGE_LOGGER = "finance_tracker"

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_console_handler: Optional[logging.Handler] = None

_package_logger = logging.getLogger(PACKAGE_LOGGER)
_package_logger.addHandler(logging.NullHandler())
_package_logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))


def configure_logging(level: Optional[str] = None, stream: Optional[IO[str]] = None) -> logging.Handler:
    """Send package log records to ``stream`` (stdout by default).

    Calling it again swaps the previous console handler instead of adding a
    second one.
    """
    global _console_handler
    if _console_handler is not None:
        _package_logger.removeHandler(_console_handler)
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))
    _package_logger.addHandler(handler)
    if level is not None:
        _package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    _console_handler = handler
    return handler


def get_logger(name: str) -> logging.Logger:
    """Get a named logger instance.

    Args:
        name: Usually ``__name__`` of the calling module; names outside the
            package are nested under it so they share its handlers.

    Returns:
        A logging.Logger below the ``finance_tracker`` logger.
    """
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
