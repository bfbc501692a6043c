from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from domain.config import DeploymentConfig


@dataclass(frozen=True)
class DictConfigSource:
    values: Dict[str, Any]

    def get(self) -> Dict[str, Any]:
        return dict(self.values)

    def load(self) -> DeploymentConfig:
        return DeploymentConfig.from_mapping(self.get())
