from __future__ import annotations

from application.executor.handler_registry import HandlerRegistry
from application.handlers.base import ActionHandler
from application.outcome import ActionOutcome
from application.services.execution_deps import ExecutionDeps
from application.services.readiness_poller import ReadinessPoller
from domain.poll import PollSpec
from domain.run import RunContext
from domain.stages.poll import PollAction


class PollActionHandler(ActionHandler):
    """
    Readiness stage: polls until the probe action succeeds. The probe is run
    through its own registry so polls cannot nest.
    """

    def __init__(self, probes: HandlerRegistry, poller: ReadinessPoller):
        self._probes = probes
        self._poller = poller

    def supports(self, action) -> bool:
        return isinstance(action, PollAction)

    def handle(self, action: PollAction, ctx: RunContext, deps: ExecutionDeps) -> ActionOutcome:
        probe_handler = self._probes.get_handler(action.probe)

        def condition() -> bool:
            return probe_handler.handle(action.probe, ctx, deps).ok

        spec = PollSpec(
            condition=condition,
            interval_sec=action.interval_sec,
            max_attempts=action.max_attempts,
            timeout_sec=action.timeout_sec,
        )
        result = self._poller.poll(spec, deps.cancel_token)

        if result.ready:
            return ActionOutcome(ok=True, output=f"ready after {result.attempts} attempt(s)")
        if result.cancelled:
            return ActionOutcome(ok=False, error_message=f"cancelled after {result.attempts} attempt(s)")
        return ActionOutcome(ok=False, error_message=f"not ready after {result.attempts} attempt(s)")
