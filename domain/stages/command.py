from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple

from domain.stages.base import Action


@dataclass(frozen=True)
class CommandAction(Action):
    argv: Tuple[str, ...]
    env: Dict[str, str] = field(default_factory=dict)
    timeout_sec: float = 300
