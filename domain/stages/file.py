from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from domain.stages.base import Action

FILE_OPERATIONS = ("mkdir", "write", "remove", "chmod", "exists")


@dataclass(frozen=True)
class FileAction(Action):
    operation: str
    path: str
    content: Optional[str] = None
    mode: Optional[int] = None

    @property
    def side_effects(self) -> bool:
        return self.operation != "exists"
