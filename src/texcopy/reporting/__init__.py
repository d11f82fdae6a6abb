"""Progress and result reporting backends.

``get_reporter()`` returns the process-wide reporter; the CLI installs one
per ``--reporter`` choice. Case outcomes go through ``case_result``.
"""

from .base import (
    STAT_KEYS,
    Reporter,
    TaskRecord,
    TaskStatus,
    format_stats,
    get_reporter,
    get_verbosity,
    set_reporter,
    set_verbosity,
    task,
)
from .jsonl import JsonLinesReporter
from .plain import PlainReporter
from .rich_reporter import RichReporter
from .silent import SilentReporter

__all__ = [
    "STAT_KEYS",
    "Reporter",
    "TaskRecord",
    "TaskStatus",
    "format_stats",
    "get_reporter",
    "get_verbosity",
    "set_reporter",
    "set_verbosity",
    "task",
    "JsonLinesReporter",
    "PlainReporter",
    "RichReporter",
    "SilentReporter",
]
