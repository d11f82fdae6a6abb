"""Logging for texcopy.

Records from the ``texcopy`` logger (including those emitted on device
queue threads) are forwarded to the active reporter. With ``-vv`` the
emitting thread is prefixed so interleaved queue activity stays readable.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from .reporting import get_reporter

_LOGGER_NAME = "texcopy"
_STEP_PREFIX = "  ->"

__all__ = [
    "get_logger",
    "configure_logging",
    "section",
    "step",
]


class _ReporterHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:  # noqa: D401
        try:
            msg = self.format(record)
        except Exception:  # pragma: no cover
            self.handleError(record)
            return
        rep = get_reporter()
        if record.levelno >= logging.ERROR:
            rep.error(msg)
        elif record.levelno >= logging.WARNING:
            rep.warning(msg)
        elif record.levelno >= logging.INFO:
            rep.status(msg)
        else:
            rep.verbose(msg, level=2)


class _ThreadFormatter(logging.Formatter):
    """Prefix records that did not come from the main thread."""

    def format(self, record: logging.LogRecord) -> str:
        msg = super().format(record)
        if record.threadName != threading.main_thread().name:
            return f"[{record.threadName}] {msg}"
        return msg


def get_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)


def configure_logging(verbosity: int = 0) -> None:
    logger = get_logger()
    logger.setLevel(logging.DEBUG if verbosity >= 1 else logging.INFO)
    for h in list(logger.handlers):
        logger.removeHandler(h)
    handler = _ReporterHandler()
    if verbosity >= 2:
        handler.setFormatter(_ThreadFormatter("%(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def step(message: str) -> None:
    get_reporter().status(f"{_STEP_PREFIX} {message}")


@contextmanager
def section(title: str) -> Iterator[logging.Logger]:
    get_reporter().section(title)
    logger = get_logger()
    yield logger
    logger.debug("end section: %s", title)
