from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional

from domain.exceptions import ValidationError


@dataclass(frozen=True)
class PollSpec:
    condition: Callable[[], bool]
    interval_sec: float = 1.0
    max_attempts: int = 30
    timeout_sec: Optional[float] = None  # None => max_attempts * interval_sec

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValidationError("max_attempts must be >= 1")
        if self.interval_sec < 0:
            raise ValidationError("interval_sec must not be negative")
        if self.timeout_sec is not None and self.timeout_sec < 0:
            raise ValidationError("timeout_sec must not be negative")

    @property
    def effective_timeout_sec(self) -> float:
        if self.timeout_sec is not None:
            return self.timeout_sec
        return self.max_attempts * self.interval_sec


class PollResult(NamedTuple):
    ready: bool
    attempts: int
    cancelled: bool = False
