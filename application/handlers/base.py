from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from application.outcome import ActionOutcome
from domain.stages.base import Action

if TYPE_CHECKING:
    from domain.run import RunContext
    from application.services.execution_deps import ExecutionDeps

# keep captured process/HTTP output readable in reports and logs
MAX_OUTPUT_CHARS = 4000


def tail(text: str, limit: int = MAX_OUTPUT_CHARS) -> str:
    if len(text) <= limit:
        return text
    return "..." + text[-limit:]


class ActionHandler(ABC):
    @abstractmethod
    def supports(self, action: Action) -> bool: ...

    @abstractmethod
    def handle(self, action: Action, ctx: "RunContext", deps: "ExecutionDeps") -> ActionOutcome:
        """
        Perform the action. Ordinary failures come back as ActionOutcome(ok=False);
        FatalStageError / NonFatalStageError may be raised to force a classification.
        """
        ...
