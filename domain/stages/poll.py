from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from domain.stages.base import Action


@dataclass(frozen=True)
class PollAction(Action):
    probe: Action
    interval_sec: float = 1.0
    max_attempts: int = 30
    timeout_sec: Optional[float] = None

    @property
    def side_effects(self) -> bool:
        return False
