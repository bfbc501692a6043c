from __future__ import annotations

import threading
from typing import Optional


class CancellationToken:
    """
    Cooperative cancellation flag shared between a run and whoever may stop it.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def wait(self, timeout_sec: float) -> bool:
        """Sleep up to `timeout_sec`; returns True as soon as cancellation is requested."""
        return self._event.wait(timeout=max(0.0, timeout_sec))
