"""
Deployment configuration
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

DEFAULT_IMAGE = "leonovk/wg-rest-api"
DEFAULT_DNS = "1.1.1.1"
DEFAULT_CONTAINER_NAME = "wg-rest-api"
DEFAULT_DATA_DIR = "~/.wg-rest"

_TRUE_VALUES = ("1", "true", "yes", "on")


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class PortConfig:
    api: int = 3000
    vpn: int = 51820


@dataclass(frozen=True)
class DeploymentConfig:
    host: str
    auth_token: str
    image_reference: str = DEFAULT_IMAGE
    create_first_client: bool = False
    dns_server: str = DEFAULT_DNS
    ports: PortConfig = field(default_factory=PortConfig)
    container_name: str = DEFAULT_CONTAINER_NAME
    data_dir: str = DEFAULT_DATA_DIR
    environment: str = "production"
    output_dir: str = "."

    @property
    def api_base_url(self) -> str:
        return f"http://localhost:{self.ports.api}"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DeploymentConfig":
        """
        Build a config from a flat or nested mapping. Missing keys fall back to
        defaults; values are not validated here (see ConfigValidator).
        """
        ports_data = data.get("ports") or {}
        # within one mapping, flat api_port / vpn_port win over the nested ports block
        ports = PortConfig(
            api=_as_int(data.get("api_port", ports_data.get("api", 3000))),
            vpn=_as_int(data.get("vpn_port", ports_data.get("vpn", 51820))),
        )
        return cls(
            host=str(data.get("host") or ""),
            auth_token=str(data.get("auth_token") or ""),
            image_reference=str(data.get("image_reference") or DEFAULT_IMAGE),
            create_first_client=_as_bool(data.get("create_first_client", False)),
            dns_server=str(data.get("dns_server") or DEFAULT_DNS),
            ports=ports,
            container_name=str(data.get("container_name") or DEFAULT_CONTAINER_NAME),
            data_dir=str(data.get("data_dir") or DEFAULT_DATA_DIR),
            environment=str(data.get("environment") or "production"),
            output_dir=str(data.get("output_dir") or "."),
        )

    def as_template_vars(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "auth_token": self.auth_token,
            "image_reference": self.image_reference,
            "create_first_client": self.create_first_client,
            "dns_server": self.dns_server,
            "ports": {"api": self.ports.api, "vpn": self.ports.vpn},
            "container_name": self.container_name,
            "data_dir": os.path.expanduser(self.data_dir),
            "environment": self.environment,
            "output_dir": self.output_dir,
            "api_base_url": self.api_base_url,
        }


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        # left for ConfigValidator to reject
        return -1
