"""Log destination setup for the command line.

Library modules only ever call ``logging.getLogger(__name__)``; this module
decides where those records end up.
"""

from __future__ import annotations

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

from quotedl.core.exceptions import ConfigError

LOGGER_NAME = "quotedl"

_FILE_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"

_handler: logging.Handler | None = None


def configure_logging(destination: str = "stdout", level: str = "INFO") -> logging.Handler:
    """Route quotedl log records to ``destination``.

    Args:
        destination: ``stdout``, ``stderr``, ``discard``, or a file path
            that is opened in append mode.
        level: Logging level name.

    Returns:
        The handler that was installed. Any handler from a previous call is
        removed and closed first.

    Raises:
        ConfigError: If the log file cannot be opened.
    """
    global _handler

    logger = logging.getLogger(LOGGER_NAME)
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler.close()
        _handler = None

    handler: logging.Handler
    if destination == "stdout":
        handler = RichHandler(console=Console(file=sys.stdout), show_path=False)
    elif destination == "stderr":
        handler = RichHandler(console=Console(file=sys.stderr), show_path=False)
    elif destination == "discard":
        handler = logging.NullHandler()
    else:
        try:
            handler = logging.FileHandler(destination, mode="a", encoding="utf-8")
        except OSError as e:
            raise ConfigError(
                f"Cannot open log file {destination}: {e}",
                context={"field": "log", "value": destination},
            ) from e
        handler.setFormatter(logging.Formatter(_FILE_FORMAT))

    logger.addHandler(handler)
    logger.setLevel(level.upper())
    _handler = handler
    return handler
