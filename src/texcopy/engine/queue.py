"""Single in-order command queue backed by one worker thread."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, List, TypeVar

from ..logging import get_logger

__all__ = ["CommandQueue"]

T = TypeVar("T")


class CommandQueue:
    """Commands execute one at a time in submission order.

    A command that raises is recorded in ``failures`` so later commands
    (typically a read-back) can report it.
    """

    def __init__(self, name: str = "queue"):
        self.name = name
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"texcopy-{name}"
        )
        self.failures: List[BaseException] = []
        self.submitted = 0

    def submit(
        self, label: str, fn: Callable[..., T], *args: Any
    ) -> "Future[T]":
        self.submitted += 1
        seq = self.submitted
        logger = get_logger()
        logger.debug("%s: submit #%d %s", self.name, seq, label)

        def _run() -> T:
            try:
                return fn(*args)
            except Exception as exc:
                self.failures.append(exc)
                logger.error(
                    "%s: command #%d %s failed: %s", self.name, seq, label, exc
                )
                raise

        return self._executor.submit(_run)

    def close(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
