from __future__ import annotations

import os
import shutil
from pathlib import Path

from application.handlers.base import ActionHandler
from application.outcome import ActionOutcome
from application.services.execution_deps import ExecutionDeps
from application.services.template_renderer import RenderSources, TemplateRenderer
from domain.exceptions import FatalStageError
from domain.run import RunContext
from domain.stages.file import FILE_OPERATIONS, FileAction


class FileActionHandler(ActionHandler):
    def __init__(self, renderer: TemplateRenderer):
        self._renderer = renderer

    def supports(self, action) -> bool:
        return isinstance(action, FileAction)

    def handle(self, action: FileAction, ctx: RunContext, deps: ExecutionDeps) -> ActionOutcome:
        src = RenderSources.from_context(ctx)
        path = Path(os.path.expanduser(self._renderer.render_str(action.path, src)))
        op = action.operation

        if op not in FILE_OPERATIONS:
            # a plan that reaches here bypassed the loader
            raise FatalStageError(f"unknown file operation: {op}")

        deps.logger.debug("file.op", operation=op, path=str(path))

        if op == "exists":
            if path.exists():
                return ActionOutcome(ok=True, output=f"{path} exists")
            return ActionOutcome(ok=False, error_message=f"{path} does not exist")

        try:
            if op == "mkdir":
                path.mkdir(parents=True, exist_ok=True)
            elif op == "write":
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(self._renderer.render_str(action.content or "", src), encoding="utf-8")
            elif op == "remove":
                if path.is_dir():
                    shutil.rmtree(path)
                elif path.exists():
                    path.unlink()
            if action.mode is not None and op != "remove":
                path.chmod(action.mode)
        except OSError as exc:
            return ActionOutcome(ok=False, error_message=f"{op} {path} failed: {exc}")

        return ActionOutcome(ok=True, output=f"{op} {path}")
