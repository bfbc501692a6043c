from __future__ import annotations

import time
from typing import Callable, Optional

from application.ports.logger import LoggerPort
from application.services.cancellation import CancellationToken
from domain.poll import PollResult, PollSpec


class ReadinessPoller:
    """
    Bounded "wait until condition holds or give up" loop.

    Stops at the first of: condition true, max_attempts evaluated, timeout
    elapsed, cancellation. A condition that raises counts as "not ready".
    There is no sleep after the last attempt, so a poll never runs longer
    than max_attempts * interval plus the time spent in the condition.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sleeper: Optional[Callable[[float], None]] = None,
        logger: Optional[LoggerPort] = None,
    ):
        self._clock = clock
        self._sleeper = sleeper
        self._logger = logger

    def poll(self, spec: PollSpec, cancel_token: Optional[CancellationToken] = None) -> PollResult:
        deadline = self._clock() + spec.effective_timeout_sec
        attempts = 0

        while attempts < spec.max_attempts:
            if cancel_token is not None and cancel_token.cancelled:
                return self._done(PollResult(ready=False, attempts=attempts, cancelled=True))

            attempts += 1
            if self._evaluate(spec, attempts):
                return self._done(PollResult(ready=True, attempts=attempts))

            if attempts >= spec.max_attempts:
                break
            remaining = deadline - self._clock()
            if remaining <= 0:
                break

            if self._sleep(min(spec.interval_sec, remaining), cancel_token):
                return self._done(PollResult(ready=False, attempts=attempts, cancelled=True))

        return self._done(PollResult(ready=False, attempts=attempts))

    def _evaluate(self, spec: PollSpec, attempt: int) -> bool:
        try:
            ready = bool(spec.condition())
            error = None
        except Exception as exc:
            ready = False
            error = str(exc)
        if self._logger is not None:
            self._logger.debug("poll.attempt", attempt=attempt, max_attempts=spec.max_attempts, ready=ready, error=error)
        return ready

    def _sleep(self, seconds: float, cancel_token: Optional[CancellationToken]) -> bool:
        """Returns True when cancellation interrupted the sleep."""
        if self._sleeper is not None:
            self._sleeper(seconds)
            return cancel_token is not None and cancel_token.cancelled
        if cancel_token is not None:
            return cancel_token.wait(seconds)
        time.sleep(seconds)
        return False

    def _done(self, result: PollResult) -> PollResult:
        if self._logger is not None:
            self._logger.debug(
                "poll.done",
                ready=result.ready,
                attempts=result.attempts,
                cancelled=result.cancelled,
            )
        return result
