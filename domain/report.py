from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class StageOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED_FATAL = "failed-fatal"
    FAILED_NONFATAL = "failed-nonfatal"


class RunState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    ROLLING_BACK = "rolling-back"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (RunState.COMPLETED, RunState.FAILED)


@dataclass(frozen=True)
class ExecutionResult:
    stage_id: str
    outcome: StageOutcome
    output: str = ""
    error: Optional[str] = None
    elapsed_sec: float = 0.0

    @property
    def ok(self) -> bool:
        return self.outcome in (StageOutcome.SUCCEEDED, StageOutcome.SKIPPED)


@dataclass(frozen=True)
class RunReport:
    run_id: str
    plan_name: str
    state: RunState
    results: Tuple[ExecutionResult, ...] = field(default_factory=tuple)
    rolled_back: Tuple[str, ...] = field(default_factory=tuple)
    rollback_failures: Tuple[str, ...] = field(default_factory=tuple)
    failure_reason: Optional[str] = None
    cancelled: bool = False

    @property
    def success(self) -> bool:
        return self.state == RunState.COMPLETED

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    def result_for(self, stage_id: str) -> Optional[ExecutionResult]:
        for result in self.results:
            if result.stage_id == stage_id:
                return result
        return None

    def outcomes(self) -> List[Tuple[str, StageOutcome]]:
        return [(r.stage_id, r.outcome) for r in self.results]

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "plan": self.plan_name,
            "state": self.state.value,
            "success": self.success,
            "cancelled": self.cancelled,
            "failure_reason": self.failure_reason,
            "rolled_back": list(self.rolled_back),
            "rollback_failures": list(self.rollback_failures),
            "stages": [
                {
                    "id": r.stage_id,
                    "outcome": r.outcome.value,
                    "output": r.output,
                    "error": r.error,
                    "elapsed_sec": round(r.elapsed_sec, 3),
                }
                for r in self.results
            ],
        }
