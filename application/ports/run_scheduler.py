from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional


class RunSchedulerPort(ABC):
    """
    Background execution of deployment runs. Runs target the local host, so
    an implementation admits at most one active run at a time.
    """

    @abstractmethod
    def try_submit(self, run_id: str, task: Callable[[], None]) -> bool:
        """Start `task` unless another run is still active; False when refused."""
        ...

    @abstractmethod
    def wait(self, run_id: str, timeout_sec: float) -> bool:
        """True once the run's task has finished."""
        ...

    @abstractmethod
    def active_run_id(self) -> Optional[str]:
        ...
