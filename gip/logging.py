"""Logging utilities for gip commands.

gip shares the terminal with git, so its own messages go to stderr in git's
``prefix: severity: message`` shape and never mix with the stdout of a wrapped
git command or with ``gip context`` output.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_LOGGER_NAME = "gip"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the gip hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


class ConsoleFormatter(logging.Formatter):
    """Format records the way git reports its own messages.

    ``INFO`` lines read ``gip: message``; warnings and errors gain a lowercase
    severity (``gip: warning: ...``). Debug lines name the emitting component,
    e.g. ``gip[merge.enricher]: ...``.
    """

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.exc_info and record.levelno <= logging.DEBUG:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        if record.levelno <= logging.DEBUG:
            component = record.name[len(_LOGGER_NAME) + 1 :] if record.name != _LOGGER_NAME else ""
            prefix = f"{_LOGGER_NAME}[{component}]" if component else _LOGGER_NAME
            return f"{prefix}: {message}"
        if record.levelno >= logging.WARNING:
            return f"{_LOGGER_NAME}: {record.levelname.lower()}: {message}"
        return f"{_LOGGER_NAME}: {message}"


def reset_logging() -> logging.Logger:
    """Detach every handler from the gip logger and let records propagate again."""
    logger = logging.getLogger(_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    return logger


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send gip records to stderr and, optionally, to ``log_file``.

    Safe to call repeatedly in one process; earlier handlers are replaced.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = reset_logging()
    logger.setLevel(level)
    logger.propagate = False

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(ConsoleFormatter())
    logger.addHandler(stream_handler)

    if log_file is not None:
        # The control directory may not exist before `gip init`.
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)
        # The file always records debug detail; the console honours --verbose.
        logger.setLevel(logging.DEBUG)

    return logger


__all__ = ["ConsoleFormatter", "configure_logging", "get_logger", "reset_logging"]
