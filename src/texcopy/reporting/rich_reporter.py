from __future__ import annotations

import os
import time
from typing import Any, Dict, List

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from .base import (
    Reporter,
    TaskStatus,
    TaskRecord,
    format_stats,
    get_verbosity,
)

_STATUS_ICON = {
    TaskStatus.SUCCESS: "[green]✔[/]",
    TaskStatus.FAILED: "[red]✖[/]",
    TaskStatus.SKIPPED: "[cyan]→[/]",
}

_CASE_STYLE = {
    "passed": "green",
    "failed": "bold red",
    "error": "red",
    "skipped": "cyan",
}


class RichReporter(Reporter):
    """Progress bars for case batches; other output goes to the console."""

    supports_progress = True

    def __init__(self, console: Console | None = None):
        super().__init__()
        self.console = console or Console(
            stderr=True, highlight=False, soft_wrap=False
        )
        self._transient = os.getenv(
            "TEXCOPY_PROGRESS_TRANSIENT", "0"
        ).lower() in ("1", "true", "yes")
        self.progress: Progress | None = None
        self._tasks: Dict[str, TaskRecord] = {}
        self._task_ids: Dict[str, TaskID] = {}
        self._deferred: List[str] = []

    def _ensure_progress(self) -> Progress:
        if self.progress is None:
            self.progress = Progress(
                SpinnerColumn(spinner_name="dots"),
                TextColumn("{task.description}", justify="left"),
                BarColumn(bar_width=None),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                transient=self._transient,
                console=self.console,
                expand=True,
            )
            self.progress.start()
        return self.progress

    def _print(self, markup: str) -> None:
        with self._lock:
            self.console.print(markup)

    # Tasks --------------------------------------------------------------------
    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        self._tasks[task_id] = TaskRecord(task_id, name, total, meta=meta)
        if total is None:
            # Tasks without a known size are headers, not progress bars.
            self.console.rule(name)
            return
        progress = self._ensure_progress()
        self._task_ids[task_id] = progress.add_task(name, total=total)

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        rec = self._tasks.get(task_id)
        if not rec:
            return
        rec.completed += step
        rec.meta.update(meta)
        rid = self._task_ids.get(task_id)
        if rid is not None and self.progress is not None:
            item = meta.get("current_item")
            desc = f"{rec.name} [dim]{item}[/]" if item else rec.name
            self.progress.update(rid, completed=rec.completed, description=desc)

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        rec = self._tasks.pop(task_id, None)
        if not rec:
            return
        rec.status = status
        rec.end_time = time.time()
        rec.meta.update(final_meta)
        rid = self._task_ids.pop(task_id, None)
        if rid is not None and self.progress is not None:
            self.progress.update(rid, completed=rec.total, description=rec.name)
        total_part = (
            f" {rec.completed}/{rec.total}" if rec.total is not None else ""
        )
        line = (
            f"{_STATUS_ICON.get(status, '')} {rec.name}{total_part} "
            f"({rec.duration:.2f}s){format_stats(rec.meta)}"
        )
        if self._transient:
            self._deferred.append(line)
        else:
            self._print(line)
        if not self._task_ids:
            self.flush()

    def case_result(self, case_id: str, status: str, **fields: Any) -> None:
        if status == "passed" and get_verbosity() < 1:
            return
        if status == "skipped" and get_verbosity() < 2:
            return
        style = _CASE_STYLE.get(status, "red")
        detail = fields.get("detail")
        line = f"  [{style}]{status.upper()}[/] {escape(case_id)}"
        if detail:
            line += f" [dim]{escape(str(detail))}[/]"
        self._print(line)

    # Messaging / sections ------------------------------------------------------
    def status(self, message: str, **fields: Any) -> None:
        self._print(f"[green]INFO[/]: {escape(message)}")

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() < level:
            return
        self._print(f"[cyan]VERB{level}[/]: {escape(message)}")

    def error(self, message: str, **fields: Any) -> None:
        self._print(f"[bold red]ERROR[/]: {escape(message)}")

    def warning(self, message: str, **fields: Any) -> None:
        self._print(f"[yellow]WARN[/]: {escape(message)}")

    def section(self, title: str) -> None:
        self.console.rule(title)

    def flush(self) -> None:
        if self.progress is not None:
            try:
                self.progress.stop()
            finally:
                self.progress = None
                self._task_ids.clear()
        if self._deferred:
            self._print("\n".join(self._deferred))
            self._deferred.clear()
