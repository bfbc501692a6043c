"""Local process execution."""
from __future__ import annotations

import os
import subprocess
from typing import Mapping, Optional, Sequence

from application.ports.process_runner import ProcessResult, ProcessRunnerPort
from domain.exceptions import TransientError

COMMAND_NOT_FOUND = 127


class SubprocessRunner(ProcessRunnerPort):
    """
    Runs argv lists without a shell. Stages that need pipes or redirects
    spell out ["sh", "-c", "..."] themselves.
    """

    def __init__(self, working_dir: Optional[str] = None, default_timeout_sec: float = 600) -> None:
        self.working_dir = working_dir
        self.default_timeout_sec = default_timeout_sec

    def run(
        self,
        argv: Sequence[str],
        env: Optional[Mapping[str, str]] = None,
        timeout_sec: Optional[float] = None,
    ) -> ProcessResult:
        if not argv:
            raise ValueError("argv must not be empty")

        timeout = timeout_sec if timeout_sec is not None else self.default_timeout_sec
        try:
            completed = subprocess.run(
                list(argv),
                capture_output=True,
                text=True,
                timeout=timeout,
                cwd=self.working_dir,
                env=self._merged_env(env),
                stdin=subprocess.DEVNULL,
            )
        except subprocess.TimeoutExpired as exc:
            raise TransientError(f"{argv[0]} timed out after {timeout}s") from exc
        except FileNotFoundError as exc:
            return ProcessResult(argv=tuple(argv), exit_status=COMMAND_NOT_FOUND, stderr=str(exc))

        return ProcessResult(
            argv=tuple(argv),
            exit_status=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )

    def _merged_env(self, env: Optional[Mapping[str, str]]) -> dict:
        merged = dict(os.environ)
        # apt must never stop to ask questions
        merged.setdefault("DEBIAN_FRONTEND", "noninteractive")
        if env:
            merged.update(env)
        return merged
