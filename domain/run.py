from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from domain.config import DeploymentConfig


@dataclass
class RunContext:
    config: DeploymentConfig
    run_id: str = ""
    # values produced by stages (e.g. client_id), readable as ${state.x}
    state: Dict[str, Any] = field(default_factory=dict)
