from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence


@dataclass(frozen=True)
class ProcessResult:
    argv: Sequence[str]
    exit_status: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_status == 0

    @property
    def output(self) -> str:
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


class ProcessRunnerPort(ABC):
    @abstractmethod
    def run(
        self,
        argv: Sequence[str],
        env: Optional[Mapping[str, str]] = None,
        timeout_sec: Optional[float] = None,
    ) -> ProcessResult:
        """
        Run a process to completion. A timeout raises TransientError; a missing
        executable is reported as exit status 127.
        """
        ...
