from __future__ import annotations

import json
import sys
import time
from itertools import count
from typing import Any, Dict
from .base import Reporter, TaskStatus, TaskRecord, get_verbosity

# "<Prefix> summary: k=v k=v" status messages become structured events.
SUMMARY_TYPES: Dict[str, str] = {
    "run summary": "run",
    "matrix summary": "matrix",
    "layout summary": "layout",
}


def _coerce(value: str) -> Any:
    if value in ("true", "false"):
        return value == "true"
    try:
        return int(value)
    except ValueError:
        return value


def parse_summary(message: str) -> Dict[str, Any] | None:
    """``{"summary_type": ..., k: v, ...}`` for a summary line, else None."""
    head, _, tail = message.partition(":")
    stype = SUMMARY_TYPES.get(head.strip().lower())
    if stype is None:
        return None
    values: Dict[str, Any] = {"summary_type": stype}
    for token in tail.split():
        key, sep, value = token.partition("=")
        if sep:
            values[key] = _coerce(value)
    return values


class JsonLinesReporter(Reporter):
    """One JSON object per line: task, case and summary events."""

    supports_progress = False

    def __init__(self, stream=None):
        super().__init__()
        self.stream = stream or sys.stdout
        self._tasks: Dict[str, TaskRecord] = {}
        self._case_seq = count(1)

    def _emit(self, obj: dict):
        line = json.dumps(obj, sort_keys=True, default=str)
        with self._lock:
            self.stream.write(line + "\n")

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        self._tasks[task_id] = TaskRecord(task_id, name, total, meta=meta)
        self._emit(
            {
                "event": "task_start",
                "id": task_id,
                "name": name,
                "total": total,
                **meta,
            }
        )

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        rec = self._tasks.get(task_id)
        if not rec:
            return
        rec.completed += step
        self._emit(
            {
                "event": "task_progress",
                "id": task_id,
                "completed": rec.completed,
                "total": rec.total,
                **meta,
            }
        )

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        rec = self._tasks.pop(task_id, None)
        if not rec:
            return
        rec.end_time = time.time()
        self._emit(
            {
                "event": "task_end",
                "id": task_id,
                "status": status.name.lower(),
                "completed": rec.completed,
                "total": rec.total,
                "duration_seconds": rec.duration,
                **rec.meta,
                **final_meta,
            }
        )

    def case_result(self, case_id: str, status: str, **fields: Any) -> None:
        self._emit(
            {
                "event": "case_result",
                "seq": next(self._case_seq),
                "case": case_id,
                "status": status,
                **fields,
            }
        )

    def status(self, message: str, **fields: Any) -> None:
        summary = parse_summary(message)
        if summary is not None:
            self._emit({"event": "summary", "raw": message, **summary})
        self._emit(
            {"event": "status", "message": message, "level": "info", **fields}
        )

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() < level:
            return
        self._emit(
            {
                "event": "status",
                "message": message,
                "level": f"verbose{level}",
                **fields,
            }
        )

    def error(self, message: str, **fields: Any) -> None:
        self._emit(
            {"event": "status", "message": message, "level": "error", **fields}
        )

    def warning(self, message: str, **fields: Any) -> None:
        self._emit(
            {"event": "status", "message": message, "level": "warning", **fields}
        )

    def section(self, title: str) -> None:
        self._emit({"event": "section", "title": title})
