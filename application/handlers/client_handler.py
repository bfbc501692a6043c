from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List

from pydantic import BaseModel, ValidationError as PydanticValidationError

from application.handlers.base import ActionHandler, tail
from application.handlers.http_handler import save_body
from application.outcome import ActionOutcome
from application.ports.http_client import HttpClientPort
from application.services.execution_deps import ExecutionDeps
from application.services.template_renderer import RenderSources, TemplateRenderer
from domain.exceptions import MalformedResponseError
from domain.run import RunContext
from domain.stages.client import ClientProvisionAction

CLIENTS_PATH = "/api/clients"


class CreatedClient(BaseModel):
    id: int


class CreateClientResponse(BaseModel):
    """Expected body of POST /api/clients: {"data": {"id": <int>, ...}}"""

    data: CreatedClient


class ClientProvisionHandler(ActionHandler):
    def __init__(self, http_client: HttpClientPort, renderer: TemplateRenderer):
        self._http = http_client
        self._renderer = renderer

    def supports(self, action) -> bool:
        return isinstance(action, ClientProvisionAction)

    def handle(self, action: ClientProvisionAction, ctx: RunContext, deps: ExecutionDeps) -> ActionOutcome:
        src = RenderSources.from_context(ctx)
        base_url = self._renderer.render_str(action.base_url, src).rstrip("/")
        token = self._renderer.render_str(action.auth_token, src)
        output_dir = Path(os.path.expanduser(self._renderer.render_str(action.output_dir, src)))
        headers = {"Authorization": f"Bearer {token}"}
        clients_url = deps.resolve_url(base_url + CLIENTS_PATH)

        created = self._http.request(
            "POST",
            clients_url,
            headers=headers,
            json_body={"data": {"user_id": action.user_id, "comment": action.comment}},
            timeout_sec=action.timeout_sec,
        )
        if not created.ok:
            return ActionOutcome(
                ok=False,
                output=tail(created.text),
                error_message=f"client creation returned {created.status}",
            )

        client_id = self._decode_client_id(created.text)
        ctx.state["client_id"] = client_id
        deps.logger.info("client.created", client_id=client_id)

        saved: List[str] = []
        artifacts: Dict[str, dict] = {
            f"client{client_id}.conf": {},
            f"client{client_id}.png": {"format": "qr"},
        }
        for filename, params in artifacts.items():
            response = self._http.request(
                "GET",
                f"{clients_url}/{client_id}",
                headers=headers,
                params=params or None,
                timeout_sec=action.timeout_sec,
            )
            if not response.ok:
                deps.logger.warning(
                    "client.artifact_failed",
                    client_id=client_id,
                    artifact=filename,
                    status=response.status,
                )
                continue
            target = save_body(response, str(output_dir / filename))
            saved.append(str(target))

        ctx.state["client_artifacts"] = saved
        if len(saved) < len(artifacts):
            return ActionOutcome(
                ok=False,
                output=", ".join(saved),
                error_message=f"client {client_id} created but only {len(saved)} of {len(artifacts)} artifacts were saved",
            )
        return ActionOutcome(ok=True, output=f"client {client_id}: " + ", ".join(saved))

    def _decode_client_id(self, body: str) -> int:
        try:
            return CreateClientResponse.model_validate_json(body).data.id
        except PydanticValidationError as exc:
            raise MalformedResponseError(
                f"client creation response has no integer data.id: {tail(body, 200)}"
            ) from exc
