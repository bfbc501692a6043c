from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Tuple

from application.ports.logger import LoggerPort


@dataclass(frozen=True)
class CompositeLogger(LoggerPort):
    """Fans every event out to several loggers (console + run log for API runs)."""

    loggers: Tuple[LoggerPort, ...]

    def __init__(self, loggers: Iterable[LoggerPort]):
        flat = []
        for logger in loggers:
            # nested composites are inlined so binding stays one level deep
            if isinstance(logger, CompositeLogger):
                flat.extend(logger.loggers)
            else:
                flat.append(logger)
        object.__setattr__(self, "loggers", tuple(flat))

    def bind(self, **fields: Any) -> "CompositeLogger":
        return CompositeLogger(logger.bind(**fields) for logger in self.loggers)

    def debug(self, event: str, **fields: Any) -> None:
        for logger in self.loggers:
            logger.debug(event, **fields)

    def info(self, event: str, **fields: Any) -> None:
        for logger in self.loggers:
            logger.info(event, **fields)

    def warning(self, event: str, **fields: Any) -> None:
        for logger in self.loggers:
            logger.warning(event, **fields)

    def error(self, event: str, **fields: Any) -> None:
        for logger in self.loggers:
            logger.error(event, **fields)
