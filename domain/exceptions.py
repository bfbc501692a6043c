from __future__ import annotations

from typing import Optional


class ValidationError(Exception):
    pass


class ConfigError(ValidationError):
    pass


class PlanValidationError(ValidationError):
    pass


class PlanLoadError(Exception):
    pass


class RunStateError(Exception):
    pass


class TransientError(Exception):
    """
    Failure that may go away on its own (timeouts, refused connections).
    Inside a poll loop it only means "not ready yet".
    """


class StageError(Exception):
    def __init__(self, message: str, stage_id: Optional[str] = None):
        super().__init__(message)
        self.stage_id = stage_id


class FatalStageError(StageError):
    pass


class NonFatalStageError(StageError):
    pass


class MalformedResponseError(StageError):
    """Response that cannot be decoded. Fails its stage per the stage's classification."""


class RollbackError(StageError):
    pass
