from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from domain.stages.base import Action


@dataclass(frozen=True)
class HttpAction(Action):
    method: str
    url: str
    headers: Optional[Dict[str, str]] = None
    json_body: Optional[Any] = None
    params: Optional[Dict[str, str]] = None
    expect_status: Tuple[int, ...] = ()  # empty => any 2xx
    save_to: Optional[str] = None         # write response body to this path
    save_mode: Optional[int] = None
    timeout_sec: float = 10

    @property
    def side_effects(self) -> bool:
        if self.save_to:
            return True
        return self.method.upper() not in ("GET", "HEAD", "OPTIONS")

    def accepts(self, status: int) -> bool:
        if self.expect_status:
            return status in self.expect_status
        return 200 <= status < 300
