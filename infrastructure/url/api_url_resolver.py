from __future__ import annotations

from dataclasses import dataclass

from domain.config import DeploymentConfig
from domain.exceptions import FatalStageError

_SCHEMES = ("http://", "https://")


@dataclass(frozen=True)
class ApiUrlResolver:
    """
    Resolves plan URLs against the REST API of the container being deployed,
    so a probe can say `/api/clients` instead of spelling out host and port.
    """

    api_base_url: str = ""

    @classmethod
    def for_config(cls, config: DeploymentConfig) -> "ApiUrlResolver":
        return cls(api_base_url=config.api_base_url)

    def resolve_url(self, url: str) -> str:
        if url.startswith(_SCHEMES):
            return url
        if not self.api_base_url:
            raise FatalStageError(f"relative URL {url!r} needs an API base URL")
        return self.api_base_url.rstrip("/") + "/" + url.lstrip("/")
