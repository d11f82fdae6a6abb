"""High-level API: run batches of copy cases with progress reporting."""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .config import RunConfig, load_config
from .errors import PreconditionError, TransferError
from .logging import get_logger
from .matrix import MatrixPlan, SkippedCase, cases_from_config
from .reporting import get_reporter, task
from .runner import CopyCase, run_case
from .verify import DEFAULT_MAX_REPORTED_MISMATCHES, CheckResult

__all__ = [
    "CaseStatus",
    "CaseResult",
    "RunSummary",
    "run_cases",
    "run_config",
    "plan_config",
]


class CaseStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"
    SKIPPED = "skipped"


@dataclass(slots=True)
class CaseResult:
    case_id: str
    status: CaseStatus
    check: Optional[CheckResult] = None
    error: Optional[Dict[str, Any]] = None
    duration: float = 0.0
    case: Optional[Dict[str, Any]] = None

    @property
    def detail(self) -> str:
        if self.error is not None:
            return f"{self.error['code']}: {self.error['message']}"
        if self.check is not None and not self.check.passed:
            return self.check.summary()
        return ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "case_id": self.case_id,
            "status": self.status.value,
            "check": self.check.to_dict() if self.check else None,
            "error": self.error,
            "duration_seconds": round(self.duration, 6),
            "case": self.case,
        }


@dataclass(slots=True)
class RunSummary:
    results: List[CaseResult] = field(default_factory=list)

    def count(self, status: CaseStatus) -> int:
        return sum(1 for r in self.results if r.status is status)

    @property
    def ok(self) -> bool:
        return not any(
            r.status in (CaseStatus.FAILED, CaseStatus.ERROR)
            for r in self.results
        )

    def stats(self) -> Dict[str, int]:
        return {
            "cases": len(self.results),
            "passed": self.count(CaseStatus.PASSED),
            "failed": self.count(CaseStatus.FAILED),
            "errors": self.count(CaseStatus.ERROR),
            "skipped": self.count(CaseStatus.SKIPPED),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "statistics": self.stats(),
            "results": [r.to_dict() for r in self.results],
        }


def _run_one(
    case: CopyCase,
    copy_row_alignment: int,
    timeout: float | None,
    max_reported: int,
) -> CaseResult:
    start = time.perf_counter()
    try:
        check = run_case(
            case,
            copy_row_alignment=copy_row_alignment,
            timeout=timeout,
            max_reported=max_reported,
        )
    except (PreconditionError, TransferError) as e:
        return CaseResult(
            case.case_id,
            CaseStatus.ERROR,
            error=e.to_dict(),
            duration=time.perf_counter() - start,
            case=case.to_dict(),
        )
    return CaseResult(
        case.case_id,
        CaseStatus.PASSED if check.passed else CaseStatus.FAILED,
        check=check,
        duration=time.perf_counter() - start,
        case=case.to_dict(),
    )


def run_cases(
    cases: Sequence[CopyCase],
    *,
    jobs: int = 1,
    copy_row_alignment: int = 1,
    timeout: float | None = None,
    max_reported: int = DEFAULT_MAX_REPORTED_MISMATCHES,
    skipped: Iterable[SkippedCase] = (),
) -> RunSummary:
    """Run every case on its own device and collect the outcomes.

    With ``jobs > 1`` cases run concurrently; each still owns its device,
    queue and surface.
    """
    rep = get_reporter()
    summary = RunSummary()
    for s in skipped:
        summary.results.append(
            CaseResult(s.description, CaseStatus.SKIPPED, error=None)
        )
        rep.case_result(s.description, "skipped", detail=s.reason)

    def _record(result: CaseResult) -> None:
        summary.results.append(result)
        rep.case_result(
            result.case_id, result.status.value, detail=result.detail
        )
        rep.advance("run.cases", current_item=result.case_id)

    with task("run.cases", "Run copy cases", total=len(cases)) as final:
        if jobs <= 1:
            for case in cases:
                _record(
                    _run_one(case, copy_row_alignment, timeout, max_reported)
                )
        else:
            with ThreadPoolExecutor(
                max_workers=jobs, thread_name_prefix="texcopy-run"
            ) as pool:
                futures = [
                    pool.submit(
                        _run_one,
                        case,
                        copy_row_alignment,
                        timeout,
                        max_reported,
                    )
                    for case in cases
                ]
                # Keep submission order in the results.
                for fut in futures:
                    _record(fut.result())
        final.update(summary.stats())

    stats = summary.stats()
    rep.status(
        "Run summary: "
        + " ".join(f"{k}={v}" for k, v in stats.items())
        + f" ok={str(summary.ok).lower()}"
    )
    get_logger().debug("run finished: %s", stats)
    return summary


def plan_config(config: RunConfig | str | Path) -> tuple[RunConfig, MatrixPlan]:
    if not isinstance(config, RunConfig):
        config = load_config(config)
    plan = cases_from_config(config)
    get_reporter().status(
        "Matrix summary: "
        + f"cases={len(plan.cases)} skipped={len(plan.skipped)} "
        + f"formats={len(config.formats)}"
    )
    return config, plan


def run_config(config: RunConfig | str | Path) -> RunSummary:
    config, plan = plan_config(config)
    return run_cases(
        plan.cases,
        jobs=config.jobs,
        copy_row_alignment=config.copy_row_alignment,
        timeout=config.readback_timeout,
        max_reported=config.max_reported_mismatches,
        skipped=plan.skipped,
    )
