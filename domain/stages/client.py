from __future__ import annotations

from dataclasses import dataclass

from domain.stages.base import Action


@dataclass(frozen=True)
class ClientProvisionAction(Action):
    """Create a VPN client through the REST API and fetch its artifacts."""

    base_url: str
    auth_token: str
    user_id: int = 1
    comment: str = "first client"
    output_dir: str = "."
    timeout_sec: float = 10
