from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from application.handlers.base import ActionHandler, tail
from application.outcome import ActionOutcome
from application.ports.http_client import HttpClientPort, HttpResponse
from application.services.execution_deps import ExecutionDeps
from application.services.redactor import mask_dict
from application.services.template_renderer import RenderSources, TemplateRenderer
from domain.run import RunContext
from domain.stages.http import HttpAction


def save_body(response: HttpResponse, path: str, mode: Optional[int] = None) -> Path:
    target = Path(os.path.expanduser(path))
    target.parent.mkdir(parents=True, exist_ok=True)
    data = response.content if response.content is not None else response.text.encode("utf-8")
    target.write_bytes(data)
    if mode is not None:
        target.chmod(mode)
    return target


class HttpActionHandler(ActionHandler):
    def __init__(self, http_client: HttpClientPort, renderer: TemplateRenderer):
        self._http = http_client
        self._renderer = renderer

    def supports(self, action) -> bool:
        return isinstance(action, HttpAction)

    def handle(self, action: HttpAction, ctx: RunContext, deps: ExecutionDeps) -> ActionOutcome:
        src = RenderSources.from_context(ctx)
        url = deps.resolve_url(self._renderer.render_str(action.url, src))
        headers = {k: str(v) for k, v in self._renderer.render_mapping(action.headers, src).items()}
        params = {k: str(v) for k, v in self._renderer.render_mapping(action.params, src).items()}
        body = self._renderer.render_tree(action.json_body, src) if action.json_body is not None else None

        deps.logger.debug(
            "http.request",
            method=action.method.upper(),
            url=url,
            headers=mask_dict(headers),
            params=params,
        )

        response = self._http.request(
            action.method,
            url,
            headers=headers or None,
            json_body=body,
            params=params or None,
            timeout_sec=action.timeout_sec,
        )

        deps.logger.debug("http.response", url=url, status=response.status)

        if not action.accepts(response.status):
            return ActionOutcome(
                ok=False,
                output=tail(response.text),
                error_message=f"{action.method.upper()} {url} returned {response.status}",
            )

        if action.save_to:
            target = save_body(response, self._renderer.render_str(action.save_to, src), action.save_mode)
            return ActionOutcome(ok=True, output=f"{response.status}; saved to {target}")

        return ActionOutcome(ok=True, output=f"{response.status}")
