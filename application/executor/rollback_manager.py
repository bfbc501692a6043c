from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from application.executor.step_executor import StepExecutor
from application.services.execution_deps import ExecutionDeps
from domain.exceptions import RollbackError
from domain.run import RunContext
from domain.stages.base import Stage


@dataclass(frozen=True)
class RollbackSummary:
    rolled_back: Tuple[str, ...] = field(default_factory=tuple)  # compensations attempted, in order
    failed: Tuple[str, ...] = field(default_factory=tuple)


class RollbackManager:
    """
    Remembers succeeded stages that can be undone and undoes them in reverse.
    Compensation failures are logged as RollbackError and never raised, so
    every recorded compensation is attempted.
    """

    def __init__(self, executor: StepExecutor):
        self._executor = executor
        self._recorded: List[Stage] = []

    def record(self, stage: Stage) -> None:
        if stage.compensation is None:
            return
        self._recorded.append(stage)

    @property
    def recorded(self) -> List[str]:
        return [s.id for s in self._recorded]

    def rollback_all(self, ctx: RunContext, deps: ExecutionDeps) -> RollbackSummary:
        rolled_back: List[str] = []
        failed: List[str] = []
        deps.logger.info("rollback.start", stages=[s.id for s in reversed(self._recorded)])

        for stage in reversed(self._recorded):
            rolled_back.append(stage.id)
            try:
                outcome = self._executor.compensate(stage, ctx, deps)
                if not outcome.ok:
                    raise RollbackError(outcome.error_message or "compensation failed", stage_id=stage.id)
            except Exception as exc:
                error = exc if isinstance(exc, RollbackError) else RollbackError(str(exc), stage_id=stage.id)
                failed.append(stage.id)
                deps.logger.error("rollback.failed", stage_id=stage.id, error=str(error))
                continue
            deps.logger.info("rollback.stage", stage_id=stage.id, output=outcome.output)

        self._recorded.clear()
        return RollbackSummary(rolled_back=tuple(rolled_back), failed=tuple(failed))
