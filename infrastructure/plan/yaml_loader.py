# infrastructure/plan/yaml_loader.py
from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from domain.exceptions import PlanLoadError
from infrastructure.plan.base_loader import PlanLoaderBase


class YamlPlanLoader(PlanLoaderBase):
    """Load a plan from a YAML file."""

    def _load_file(self, path: Path) -> Any:
        with path.open("r", encoding="utf-8") as f:
            try:
                return yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise PlanLoadError(f"Plan file is not valid YAML: {path}: {exc}") from exc
