from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import dotenv_values

from domain.config import DeploymentConfig

DEFAULT_ENV_PATH = Path(__file__).parent.parent.parent / ".env"

# environment variable -> config key
ENV_KEYS: Dict[str, str] = {
    "WG_HOST": "host",
    "AUTH_TOKEN": "auth_token",
    "DOCKER_IMAGE": "image_reference",
    "CREATE_FIRST_CLIENT": "create_first_client",
    "WG_DEFAULT_DNS": "dns_server",
    "API_PORT": "api_port",
    "VPN_PORT": "vpn_port",
    "CONTAINER_NAME": "container_name",
    "WG_DATA_DIR": "data_dir",
    "OUTPUT_DIR": "output_dir",
}


class EnvConfigSource:
    """
    Deployment config from the process environment and an optional .env file.

    Process environment wins over the .env file, so
    `WG_HOST=1.2.3.4 AUTH_TOKEN=x provision` works the same as the shell one-liner.
    """

    def __init__(self, env_path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None):
        path = env_path if env_path is not None else DEFAULT_ENV_PATH
        self._file_vars: Dict[str, Optional[str]] = dotenv_values(path) if path.exists() else {}
        self._environ = os.environ if environ is None else environ

    def get(self) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for env_key, config_key in ENV_KEYS.items():
            value = self._environ.get(env_key)
            if value is None:
                value = self._file_vars.get(env_key)
            if value is not None and value != "":
                values[config_key] = value
        return values

    def load(self) -> DeploymentConfig:
        return DeploymentConfig.from_mapping(self.get())
