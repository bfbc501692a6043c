from __future__ import annotations

from application.handlers.base import ActionHandler, tail
from application.outcome import ActionOutcome
from application.ports.process_runner import ProcessRunnerPort
from application.services.execution_deps import ExecutionDeps
from application.services.redactor import mask_argv, mask_secret
from application.services.template_renderer import RenderSources, TemplateRenderer
from domain.run import RunContext
from domain.stages.command import CommandAction


class CommandActionHandler(ActionHandler):
    def __init__(self, runner: ProcessRunnerPort, renderer: TemplateRenderer):
        self._runner = runner
        self._renderer = renderer

    def supports(self, action) -> bool:
        return isinstance(action, CommandAction)

    def handle(self, action: CommandAction, ctx: RunContext, deps: ExecutionDeps) -> ActionOutcome:
        src = RenderSources.from_context(ctx)
        argv = self._renderer.render_args(action.argv, src)
        env = {k: str(v) for k, v in self._renderer.render_mapping(action.env, src).items()}
        secrets = [ctx.config.auth_token]

        deps.logger.debug(
            "command.run",
            argv=mask_argv(argv, secrets),
            env_keys=sorted(env),
            timeout_sec=action.timeout_sec,
        )

        result = self._runner.run(argv, env=env, timeout_sec=action.timeout_sec)
        output = tail(mask_secret(result.output, secrets))

        if result.ok:
            return ActionOutcome(ok=True, output=output)

        deps.logger.debug("command.failed", argv0=argv[0] if argv else "", exit_status=result.exit_status)
        return ActionOutcome(
            ok=False,
            output=output,
            error_message=f"{argv[0] if argv else 'command'} exited with status {result.exit_status}",
        )
