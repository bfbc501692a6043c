from __future__ import annotations

from collections import OrderedDict
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from threading import Lock
from typing import Callable, Optional, Tuple

from application.ports.run_scheduler import RunSchedulerPort


class InMemoryRunScheduler(RunSchedulerPort):
    """
    Single deploy worker thread; a second run is refused while one is active.

    Only the active run's future is held. Once it is done the future is dropped
    and the run id is remembered (newest `max_finished`) so wait() still answers.
    """

    def __init__(self, max_finished: int = 50) -> None:
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="deploy")
        self._lock = Lock()
        self._current: Optional[Tuple[str, Future]] = None
        self._finished: "OrderedDict[str, None]" = OrderedDict()
        self._max_finished = max_finished

    def try_submit(self, run_id: str, task: Callable[[], None]) -> bool:
        with self._lock:
            if self._active_locked() is not None:
                return False
            self._current = (run_id, self._executor.submit(task))
            return True

    def wait(self, run_id: str, timeout_sec: float) -> bool:
        with self._lock:
            self._active_locked()
            if run_id in self._finished:
                return True
            if self._current is None or self._current[0] != run_id:
                return False
            future = self._current[1]
        try:
            future.result(timeout=timeout_sec)
        except FutureTimeoutError:
            return False
        except Exception:
            # the task records its own failure; finishing is all that matters here
            pass
        with self._lock:
            self._active_locked()
        return True

    def active_run_id(self) -> Optional[str]:
        with self._lock:
            return self._active_locked()

    def _active_locked(self) -> Optional[str]:
        if self._current is None:
            return None
        run_id, future = self._current
        if not future.done():
            return run_id
        self._current = None
        self._finished[run_id] = None
        while len(self._finished) > self._max_finished:
            self._finished.popitem(last=False)
        return None
