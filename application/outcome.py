from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ActionOutcome:
    ok: bool
    output: str = ""
    error_message: Optional[str] = None

