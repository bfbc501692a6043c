from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class StageClass(str, Enum):
    FATAL = "fatal"
    BEST_EFFORT = "best-effort"


@dataclass(frozen=True)
class Action:
    """Declarative unit of work performed by a handler."""

    @property
    def side_effects(self) -> bool:
        return True


@dataclass(frozen=True)
class Stage:
    id: str
    description: str
    action: Action
    check: Optional[Action] = None         # success => already done
    compensation: Optional[Action] = None  # undo, run on rollback
    classification: StageClass = StageClass.FATAL
    depends_on: Tuple[str, ...] = ()
    when: Optional[str] = None             # template; falsy => skipped

    @property
    def fatal(self) -> bool:
        return self.classification == StageClass.FATAL

    @property
    def reversible(self) -> bool:
        return self.compensation is not None
