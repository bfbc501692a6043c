from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from domain.report import RunReport, StageOutcome


@dataclass(frozen=True)
class ExecutionErrorDetail:
    code: str
    message: str
    stage_id: Optional[str]
    rolled_back: tuple = ()


class ExecutionErrorBuilder:
    def build_from_report(self, report: RunReport) -> Optional[ExecutionErrorDetail]:
        if report.success:
            return None
        fatal = [r for r in report.results if r.outcome == StageOutcome.FAILED_FATAL]
        stage_id = fatal[-1].stage_id if fatal else None
        return ExecutionErrorDetail(
            code="cancelled" if report.cancelled and not fatal else "stage_failed",
            message=report.failure_reason or "deployment failed",
            stage_id=stage_id,
            rolled_back=report.rolled_back,
        )

    def build_from_exception(self, message: str) -> ExecutionErrorDetail:
        return ExecutionErrorDetail(
            code="exception",
            message=message,
            stage_id=None,
        )
