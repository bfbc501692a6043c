from __future__ import annotations

from dataclasses import dataclass
from typing import List

from domain.config import DeploymentConfig
from domain.exceptions import ConfigError


@dataclass(frozen=True)
class ConfigValidator:
    required: tuple = ("host", "auth_token")

    def validate(self, config: DeploymentConfig) -> None:
        problems = self._find_missing(config) + self._find_invalid(config)
        if problems:
            raise ConfigError("Invalid deployment config: " + "; ".join(problems))

    def _find_missing(self, config: DeploymentConfig) -> List[str]:
        missing: List[str] = []
        for key in self.required:
            value = getattr(config, key, None)
            if value is None or not str(value).strip():
                missing.append(f"{key} is required")
        return missing

    def _find_invalid(self, config: DeploymentConfig) -> List[str]:
        invalid: List[str] = []
        for name, port in (("ports.api", config.ports.api), ("ports.vpn", config.ports.vpn)):
            if not 1 <= port <= 65535:
                invalid.append(f"{name} must be between 1 and 65535")
        if not config.image_reference.strip():
            invalid.append("image_reference must not be empty")
        if not config.dns_server.strip():
            invalid.append("dns_server must not be empty")
        if not config.container_name.strip():
            invalid.append("container_name must not be empty")
        return invalid
