from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict


@dataclass(frozen=True)
class RunLogEntry:
    timestamp: datetime
    event: str
    level: str = "info"
    fields: Dict[str, Any] = field(default_factory=dict)
