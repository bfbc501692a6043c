from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from application.ports.logger import LoggerPort
from application.ports.run_log_store import RunLogStorePort
from application.services.redactor import mask_dict, mask_secret
from domain.run_log import RunLogEntry


@dataclass(frozen=True)
class RunLogLogger(LoggerPort):
    """
    Keeps a run's events in a RunLogStore so the API can serve them.

    Entries outlive the run and are handed to any API caller, so sensitive
    keys and the given secret values are masked before they are stored.
    """

    run_id: str
    log_store: RunLogStorePort
    bound: Dict[str, Any] = field(default_factory=dict)
    secrets: Tuple[str, ...] = ()

    def bind(self, **fields: Any) -> "RunLogLogger":
        merged = dict(self.bound)
        merged.update(fields)
        return RunLogLogger(run_id=self.run_id, log_store=self.log_store, bound=merged, secrets=self.secrets)

    def debug(self, event: str, **fields: Any) -> None:
        self._emit("debug", event, fields)

    def info(self, event: str, **fields: Any) -> None:
        self._emit("info", event, fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._emit("warning", event, fields)

    def error(self, event: str, **fields: Any) -> None:
        self._emit("error", event, fields)

    def _emit(self, level: str, event: str, fields: Dict[str, Any]) -> None:
        payload = dict(self.bound)
        payload.update(fields)
        payload.setdefault("type", event)
        self.log_store.append(
            self.run_id,
            RunLogEntry(
                timestamp=datetime.now(timezone.utc),
                event=event,
                level=level,
                fields={k: self._scrub(v) for k, v in mask_dict(payload).items()},
            ),
        )

    def _scrub(self, value: Any) -> Any:
        if isinstance(value, str):
            return mask_secret(value, self.secrets)
        if isinstance(value, (list, tuple)):
            return [self._scrub(v) for v in value]
        return value
