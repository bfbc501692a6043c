from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class RunStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def finished(self) -> bool:
        return self in (RunStatus.SUCCEEDED, RunStatus.FAILED)


@dataclass(frozen=True)
class RunRecord:
    run_id: str
    plan_id: str
    status: RunStatus
    created_at: datetime
    updated_at: datetime
    report: Optional[Dict[str, Any]]
    error: Optional[str]
    error_detail: Optional[Dict[str, Any]] = None

    def with_status(
        self,
        status: RunStatus,
        updated_at: datetime,
        report: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
        error_detail: Optional[Dict[str, Any]] = None,
    ) -> "RunRecord":
        return RunRecord(
            run_id=self.run_id,
            plan_id=self.plan_id,
            status=status,
            created_at=self.created_at,
            updated_at=updated_at,
            report=report if report is not None else self.report,
            error=error if error is not None else self.error,
            error_detail=error_detail if error_detail is not None else self.error_detail,
        )
