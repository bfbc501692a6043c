from __future__ import annotations

from collections import OrderedDict
from threading import Lock
from typing import List

from application.ports.run_log_store import RunLogStorePort
from domain.run_log import RunLogEntry

DEFAULT_MAX_RUNS = 50


class InMemoryRunLogStore(RunLogStorePort):
    """
    Per-run event lists, kept for the most recent `max_runs` runs only; the
    oldest run's log is dropped when a new run starts logging.
    """

    def __init__(self, max_runs: int = DEFAULT_MAX_RUNS) -> None:
        self._logs: "OrderedDict[str, List[RunLogEntry]]" = OrderedDict()
        self._max_runs = max_runs
        self._lock = Lock()

    def append(self, run_id: str, entry: RunLogEntry) -> None:
        with self._lock:
            entries = self._logs.get(run_id)
            if entries is None:
                entries = self._logs[run_id] = []
                while len(self._logs) > self._max_runs:
                    self._logs.popitem(last=False)
            entries.append(entry)

    def list(self, run_id: str, offset: int = 0) -> List[RunLogEntry]:
        with self._lock:
            return list(self._logs.get(run_id, [])[max(0, offset):])
