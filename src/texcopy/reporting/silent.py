from __future__ import annotations

from collections import Counter
from typing import List

from .base import Reporter, TaskStatus


class SilentReporter(Reporter):
    """Prints nothing; keeps case tallies and error messages for callers."""

    def __init__(self) -> None:
        super().__init__()
        self.case_counts: Counter[str] = Counter()
        self.errors: List[str] = []

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta
    ):
        pass

    def advance(self, task_id: str, step: int = 1, **meta):
        pass

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta,
    ):
        pass

    def case_result(self, case_id: str, status: str, **fields):
        with self._lock:
            self.case_counts[status] += 1

    def status(self, message: str, **fields):
        pass

    def error(self, message: str, **fields):
        with self._lock:
            self.errors.append(message)

    def section(self, title: str) -> None:
        pass
