from __future__ import annotations

from fastapi import HTTPException

from api.main import DeploymentRequest, _build_config_source_resolver


def test_resolve_defaults_to_inline_source(monkeypatch) -> None:
    # Arrange
    monkeypatch.setenv("WG_HOST", "from-env")
    request = DeploymentRequest(host="203.0.113.7", auth_token="t", vpn_port=51999)
    resolver = _build_config_source_resolver()

    # Act
    config = resolver.resolve(request).load()

    # Assert
    assert config.host == "203.0.113.7"
    assert config.ports.vpn == 51999
    assert config.ports.api == 3000


def test_inline_source_ignores_environment(monkeypatch) -> None:
    # Arrange
    monkeypatch.setenv("WG_HOST", "from-env")
    monkeypatch.setenv("AUTH_TOKEN", "env-token")
    request = DeploymentRequest(config_ref="inline")

    # Act
    config = _build_config_source_resolver().resolve(request).load()

    # Assert
    assert config.host == ""
    assert config.auth_token == ""


def test_env_source_is_overridden_by_body(monkeypatch) -> None:
    # Arrange
    monkeypatch.setenv("WG_HOST", "from-env")
    monkeypatch.setenv("AUTH_TOKEN", "env-token")
    monkeypatch.setenv("CREATE_FIRST_CLIENT", "true")
    request = DeploymentRequest(host="203.0.113.7", config_ref="env")

    # Act
    config = _build_config_source_resolver().resolve(request).load()

    # Assert
    assert config.host == "203.0.113.7"
    assert config.auth_token == "env-token"
    assert config.create_first_client is True


def test_resolve_unknown_config_ref_raises() -> None:
    # Arrange
    request = DeploymentRequest(config_ref="vault")
    resolver = _build_config_source_resolver()

    # Act / Assert
    try:
        resolver.resolve(request)
    except HTTPException as exc:
        assert exc.status_code == 400
        assert exc.detail == "Unknown config_ref: vault"
        return
    raise AssertionError("Expected HTTPException to be raised")
