from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Protocol

from application.ports.logger import LoggerPort
from application.services.cancellation import CancellationToken


class UrlResolverPort(Protocol):
    def resolve_url(self, url: str) -> str:
        ...


@dataclass(frozen=True)
class ExecutionDeps:
    url_resolver: UrlResolverPort
    logger: LoggerPort
    cancel_token: CancellationToken = field(default_factory=CancellationToken)

    def resolve_url(self, url: str) -> str:
        return self.url_resolver.resolve_url(url)

    def with_logger(self, logger: LoggerPort) -> "ExecutionDeps":
        return replace(self, logger=logger)
