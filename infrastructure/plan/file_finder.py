"""Locate plan files by plan ID."""
from pathlib import Path
from typing import List, Optional

PRIORITY = (".json", ".yaml", ".yml")


class PlanFileFinder:
    """Search plan files under a base directory (recursively)."""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)

    def find_by_id(self, plan_id: str) -> Optional[Path]:
        """
        Return the plan file for `plan_id` (e.g. "wireguard"), or None.

        When the same ID exists with several extensions, .json wins over
        .yaml, which wins over .yml. Ties are broken by path.
        """
        if not plan_id or "/" in plan_id or "\\" in plan_id or plan_id.startswith("."):
            return None
        if not self.base_dir.is_dir():
            return None

        candidates: List[Path] = []
        for ext in PRIORITY:
            for file_path in self.base_dir.rglob(f"{plan_id}{ext}"):
                if file_path.is_file():
                    candidates.append(file_path)

        if not candidates:
            return None

        candidates.sort(key=lambda path: (PRIORITY.index(path.suffix), str(path)))
        return candidates[0]

    def list_ids(self) -> List[str]:
        if not self.base_dir.is_dir():
            return []
        ids = {p.stem for ext in PRIORITY for p in self.base_dir.rglob(f"*{ext}") if p.is_file()}
        return sorted(ids)
