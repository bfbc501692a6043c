from __future__ import annotations

from pathlib import Path

from infrastructure.config.dict_config_source import DictConfigSource
from infrastructure.config.env_config_source import EnvConfigSource
from infrastructure.config.layered_config_source import LayeredConfigSource


def test_env_source_maps_installer_variables(tmp_path: Path) -> None:
    environ = {
        "WG_HOST": "203.0.113.7",
        "AUTH_TOKEN": "tok",
        "DOCKER_IMAGE": "ghcr.io/me/wg-rest-api",
        "CREATE_FIRST_CLIENT": "1",
        "API_PORT": "3100",
    }

    config = EnvConfigSource(env_path=tmp_path / "missing.env", environ=environ).load()

    assert config.host == "203.0.113.7"
    assert config.auth_token == "tok"
    assert config.image_reference == "ghcr.io/me/wg-rest-api"
    assert config.create_first_client is True
    assert config.ports.api == 3100
    assert config.ports.vpn == 51820


def test_env_source_process_environment_wins_over_dotenv(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("WG_HOST=from-file\nAUTH_TOKEN=file-token\nWG_DEFAULT_DNS=9.9.9.9\n", encoding="utf-8")

    values = EnvConfigSource(env_path=env_file, environ={"WG_HOST": "from-env"}).get()

    assert values["host"] == "from-env"
    assert values["auth_token"] == "file-token"
    assert values["dns_server"] == "9.9.9.9"


def test_env_source_ignores_empty_values(tmp_path: Path) -> None:
    values = EnvConfigSource(env_path=tmp_path / "none", environ={"WG_HOST": "", "AUTH_TOKEN": "t"}).get()

    assert "host" not in values
    assert values["auth_token"] == "t"


def test_layered_source_later_overrides_earlier(tmp_path: Path) -> None:
    env = EnvConfigSource(env_path=tmp_path / "none", environ={"WG_HOST": "env-host", "AUTH_TOKEN": "env-token"})
    body = DictConfigSource({"host": "body-host", "ports": {"vpn": 51999}})

    config = LayeredConfigSource([env, body]).load()

    assert config.host == "body-host"
    assert config.auth_token == "env-token"
    assert config.ports.vpn == 51999


def test_layered_source_file_ports_beat_earlier_env_port(tmp_path: Path) -> None:
    # Arrange
    env = EnvConfigSource(env_path=tmp_path / "none", environ={"WG_HOST": "h", "AUTH_TOKEN": "t", "API_PORT": "3000"})
    config_file = DictConfigSource({"ports": {"api": 8080}})

    # Act
    config = LayeredConfigSource([env, config_file]).load()

    # Assert
    assert config.ports.api == 8080
    assert config.ports.vpn == 51820


def test_layered_source_merges_ports_port_by_port(tmp_path: Path) -> None:
    env = EnvConfigSource(
        env_path=tmp_path / "none",
        environ={"WG_HOST": "h", "AUTH_TOKEN": "t", "API_PORT": "3100", "VPN_PORT": "51000"},
    )
    body = DictConfigSource({"ports": {"vpn": 51999}})

    values = LayeredConfigSource([env, body]).get()

    assert values["ports"] == {"api": "3100", "vpn": 51999}
    assert "api_port" not in values


def test_layered_source_later_flat_port_beats_earlier_ports_block() -> None:
    config_file = DictConfigSource({"host": "h", "auth_token": "t", "ports": {"api": 8080, "vpn": 51999}})
    override = DictConfigSource({"api_port": 9000})

    config = LayeredConfigSource([config_file, override]).load()

    assert config.ports.api == 9000
    assert config.ports.vpn == 51999
