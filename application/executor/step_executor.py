from __future__ import annotations

import time
from typing import Callable, Optional

from application.executor.handler_registry import HandlerRegistry
from application.outcome import ActionOutcome
from application.services.execution_deps import ExecutionDeps
from application.services.template_renderer import RenderSources, TemplateRenderer
from domain.exceptions import FatalStageError, MalformedResponseError, NonFatalStageError
from domain.report import ExecutionResult, StageOutcome
from domain.run import RunContext
from domain.stages.base import Stage


class StepExecutor:
    """
    Runs one stage and always returns an ExecutionResult.

    Order: `when` condition, idempotency check, action. Exceptions never leave
    execute(); they are mapped to failed-fatal / failed-nonfatal here.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        renderer: Optional[TemplateRenderer] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self._registry = registry
        self._renderer = renderer or TemplateRenderer()
        self._clock = clock

    def execute(self, stage: Stage, ctx: RunContext, deps: ExecutionDeps) -> ExecutionResult:
        logger = deps.logger.bind(stage_id=stage.id)
        deps = deps.with_logger(logger)
        logger.info(
            "stage.start",
            description=stage.description,
            classification=stage.classification.value,
            action=type(stage.action).__name__,
        )
        t0 = self._clock()

        try:
            if stage.when is not None and not self._condition_met(stage, ctx):
                return self._finish(stage, deps, t0, StageOutcome.SKIPPED, output="condition not met")

            if stage.check is not None and self._already_satisfied(stage, ctx, deps):
                return self._finish(stage, deps, t0, StageOutcome.SKIPPED, output="already satisfied")

            handler = self._registry.get_handler(stage.action)
            outcome: ActionOutcome = handler.handle(stage.action, ctx, deps)
        except MalformedResponseError as exc:
            return self._finish(stage, deps, t0, self.failure_for(stage), error=str(exc))
        except FatalStageError as exc:
            return self._finish(stage, deps, t0, StageOutcome.FAILED_FATAL, error=str(exc))
        except NonFatalStageError as exc:
            return self._finish(stage, deps, t0, StageOutcome.FAILED_NONFATAL, error=str(exc))
        except Exception as exc:
            return self._finish(stage, deps, t0, self.failure_for(stage), error=f"{type(exc).__name__}: {exc}")

        if outcome is None:
            return self._finish(
                stage,
                deps,
                t0,
                self.failure_for(stage),
                error=f"handler returned no outcome: {type(handler).__name__}",
            )

        if outcome.ok:
            return self._finish(stage, deps, t0, StageOutcome.SUCCEEDED, output=outcome.output)

        return self._finish(
            stage,
            deps,
            t0,
            self.failure_for(stage),
            output=outcome.output,
            error=outcome.error_message or "action failed",
        )

    def compensate(self, stage: Stage, ctx: RunContext, deps: ExecutionDeps) -> ActionOutcome:
        """Run the stage's undo action. Errors propagate to the caller."""
        if stage.compensation is None:
            return ActionOutcome(ok=True, output="nothing to undo")
        handler = self._registry.get_handler(stage.compensation)
        return handler.handle(stage.compensation, ctx, deps)

    @staticmethod
    def failure_for(stage: Stage) -> StageOutcome:
        return StageOutcome.FAILED_FATAL if stage.fatal else StageOutcome.FAILED_NONFATAL

    def _condition_met(self, stage: Stage, ctx: RunContext) -> bool:
        return self._renderer.is_truthy(stage.when, RenderSources.from_context(ctx))

    def _already_satisfied(self, stage: Stage, ctx: RunContext, deps: ExecutionDeps) -> bool:
        try:
            handler = self._registry.get_handler(stage.check)
            return handler.handle(stage.check, ctx, deps).ok
        except Exception as exc:
            # a check that cannot run means "not done yet"
            deps.logger.debug("stage.check_failed", error=str(exc))
            return False

    def _finish(
        self,
        stage: Stage,
        deps: ExecutionDeps,
        t0: float,
        outcome: StageOutcome,
        output: str = "",
        error: Optional[str] = None,
    ) -> ExecutionResult:
        elapsed = self._clock() - t0
        result = ExecutionResult(
            stage_id=stage.id,
            outcome=outcome,
            output=output,
            error=error,
            elapsed_sec=elapsed,
        )
        if outcome == StageOutcome.FAILED_FATAL:
            deps.logger.error("stage.failed", outcome=outcome.value, error=error)
        elif outcome == StageOutcome.FAILED_NONFATAL:
            deps.logger.warning("stage.failed", outcome=outcome.value, error=error)
        elif outcome == StageOutcome.SKIPPED:
            deps.logger.info("stage.skipped", reason=output)
        deps.logger.info("stage.end", outcome=outcome.value, elapsed_ms=int(elapsed * 1000))
        return result
