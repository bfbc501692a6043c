"""
Ordered, validated plan of stages.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from domain.exceptions import PlanValidationError
from domain.stages.base import Stage


class StageCursor:
    """Walks a StageGraph once, in declaration order."""

    def __init__(self, stages: Tuple[Stage, ...]):
        self._stages = stages
        self._position = 0

    def next(self) -> Optional[Stage]:
        if self._position >= len(self._stages):
            return None
        stage = self._stages[self._position]
        self._position += 1
        return stage

    @property
    def position(self) -> int:
        return self._position

    def remaining(self) -> List[Stage]:
        return list(self._stages[self._position :])


@dataclass(frozen=True)
class StageGraph:
    """
    Linear chain of stages. Order is fixed at construction; stages are never
    reordered or run concurrently.

    Validation:
    - stage ids are non-empty and unique
    - depends_on only names earlier stages
    - a compensation is only attached to an action with observable side effects
    """

    name: str
    stages: Tuple[Stage, ...] = field(default_factory=tuple)
    description: str = ""

    def __post_init__(self) -> None:
        # accept any iterable, store an immutable tuple
        object.__setattr__(self, "stages", tuple(self.stages))
        self._validate()

    @classmethod
    def build(cls, name: str, stages: Iterable[Stage], description: str = "") -> "StageGraph":
        return cls(name=name, stages=tuple(stages), description=description)

    def __iter__(self) -> Iterator[Stage]:
        return iter(self.stages)

    def __len__(self) -> int:
        return len(self.stages)

    def cursor(self) -> StageCursor:
        return StageCursor(self.stages)

    def get(self, stage_id: str) -> Optional[Stage]:
        for stage in self.stages:
            if stage.id == stage_id:
                return stage
        return None

    def ids(self) -> List[str]:
        return [s.id for s in self.stages]

    def _validate(self) -> None:
        seen: Dict[str, int] = {}
        for index, stage in enumerate(self.stages):
            if not stage.id or not stage.id.strip():
                raise PlanValidationError(f"Stage at position {index + 1} has an empty id")
            if stage.id in seen:
                raise PlanValidationError(f"Duplicate stage id: {stage.id}")

            for dep in stage.depends_on:
                if dep not in seen:
                    raise PlanValidationError(
                        f"Stage {stage.id} depends on {dep}, which is not declared before it"
                    )

            if stage.compensation is not None and not stage.action.side_effects:
                raise PlanValidationError(
                    f"Stage {stage.id} declares a compensation but its action "
                    f"({type(stage.action).__name__}) has no side effects to undo"
                )

            seen[stage.id] = index
