from __future__ import annotations

import uuid
from typing import Dict, List, Optional

from application.executor.rollback_manager import RollbackManager, RollbackSummary
from application.executor.step_executor import StepExecutor
from application.services.execution_deps import ExecutionDeps
from domain.config import DeploymentConfig
from domain.config_validator import ConfigValidator
from domain.report import ExecutionResult, RunReport, RunState, StageOutcome
from domain.run import RunContext
from domain.stage_graph import StageGraph
from domain.stages.base import Stage

SATISFIED = (StageOutcome.SUCCEEDED, StageOutcome.SKIPPED)


class DeploymentOrchestrator:
    """
    Drives a StageGraph to a terminal state.

    Pending -> Running(stage_i) -> Running(stage_i+1) | RollingBack | Completed
    RollingBack -> Failed

    The config is validated here, before any stage can have a side effect.
    """

    def __init__(
        self,
        config: DeploymentConfig,
        executor: StepExecutor,
        validator: Optional[ConfigValidator] = None,
    ):
        (validator or ConfigValidator()).validate(config)
        self._config = config
        self._executor = executor
        self._state = RunState.PENDING
        self._current_stage: Optional[str] = None

    @property
    def config(self) -> DeploymentConfig:
        return self._config

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def current_stage(self) -> Optional[str]:
        return self._current_stage

    def run(self, graph: StageGraph, deps: ExecutionDeps, run_id: Optional[str] = None) -> RunReport:
        ctx = RunContext(config=self._config, run_id=run_id or uuid.uuid4().hex)
        logger = deps.logger.bind(run_id=ctx.run_id, plan=graph.name)
        deps = deps.with_logger(logger)

        rollback = RollbackManager(self._executor)
        results: List[ExecutionResult] = []
        outcomes: Dict[str, StageOutcome] = {}
        failure_reason: Optional[str] = None

        self._state = RunState.PENDING
        self._transition(RunState.RUNNING, deps)
        logger.info("run.start", stages=len(graph), host=self._config.host)

        cursor = graph.cursor()
        while True:
            if deps.cancel_token.cancelled:
                failure_reason = f"run cancelled: {deps.cancel_token.reason}"
                logger.warning("run.cancelled", skipped=[s.id for s in cursor.remaining()])
                break

            stage = cursor.next()
            if stage is None:
                break
            self._current_stage = stage.id

            result = self._run_stage(stage, outcomes, ctx, deps)
            results.append(result)
            outcomes[stage.id] = result.outcome

            if result.outcome == StageOutcome.SUCCEEDED:
                rollback.record(stage)
            elif result.outcome == StageOutcome.FAILED_NONFATAL:
                logger.warning("run.degraded", stage_id=stage.id, error=result.error)
            elif result.outcome == StageOutcome.FAILED_FATAL:
                if deps.cancel_token.cancelled:
                    failure_reason = f"run cancelled: {deps.cancel_token.reason}"
                else:
                    failure_reason = f"{stage.id}: {result.error}"
                break

        self._current_stage = None
        summary = RollbackSummary()
        if failure_reason is not None:
            self._transition(RunState.ROLLING_BACK, deps)
            summary = rollback.rollback_all(ctx, deps)
            self._transition(RunState.FAILED, deps)
        else:
            self._transition(RunState.COMPLETED, deps)

        report = RunReport(
            run_id=ctx.run_id,
            plan_name=graph.name,
            state=self._state,
            results=tuple(results),
            rolled_back=summary.rolled_back,
            rollback_failures=summary.failed,
            failure_reason=failure_reason,
            cancelled=deps.cancel_token.cancelled,
        )
        logger.info(
            "run.end",
            state=report.state.value,
            attempted=len(report.results),
            rolled_back=list(report.rolled_back),
            failure_reason=failure_reason,
        )
        return report

    def _run_stage(
        self,
        stage: Stage,
        outcomes: Dict[str, StageOutcome],
        ctx: RunContext,
        deps: ExecutionDeps,
    ) -> ExecutionResult:
        unmet = [dep for dep in stage.depends_on if outcomes.get(dep) not in SATISFIED]
        if not unmet:
            return self._executor.execute(stage, ctx, deps)

        outcome = StepExecutor.failure_for(stage)
        error = "unmet dependency: " + ", ".join(unmet)
        deps.logger.warning("stage.blocked", stage_id=stage.id, outcome=outcome.value, error=error)
        return ExecutionResult(stage_id=stage.id, outcome=outcome, error=error)

    def _transition(self, new_state: RunState, deps: ExecutionDeps) -> None:
        deps.logger.debug("run.state", previous=self._state.value, state=new_state.value)
        self._state = new_state
