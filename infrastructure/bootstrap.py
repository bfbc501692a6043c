# infrastructure/bootstrap.py
"""Wires the concrete adapters into a StepExecutor (shared by the CLI and the API)."""
from __future__ import annotations

from typing import Optional

from application.executor.handler_registry import HandlerRegistry
from application.executor.step_executor import StepExecutor
from application.handlers.client_handler import ClientProvisionHandler
from application.handlers.command_handler import CommandActionHandler
from application.handlers.file_handler import FileActionHandler
from application.handlers.http_handler import HttpActionHandler
from application.handlers.poll_handler import PollActionHandler
from application.ports.http_client import HttpClientPort
from application.ports.logger import LoggerPort
from application.ports.process_runner import ProcessRunnerPort
from application.ports.requests_client import RequestsSessionHttpClient
from application.services.cancellation import CancellationToken
from application.services.execution_deps import ExecutionDeps
from application.services.readiness_poller import ReadinessPoller
from application.services.template_renderer import TemplateRenderer
from infrastructure.process.subprocess_runner import SubprocessRunner
from domain.config import DeploymentConfig
from infrastructure.url.api_url_resolver import ApiUrlResolver


def build_executor(
    http_client: Optional[HttpClientPort] = None,
    runner: Optional[ProcessRunnerPort] = None,
    poller: Optional[ReadinessPoller] = None,
    logger: Optional[LoggerPort] = None,
) -> StepExecutor:
    renderer = TemplateRenderer()
    http_client = http_client or RequestsSessionHttpClient()
    runner = runner or SubprocessRunner()
    poller = poller or ReadinessPoller(logger=logger)

    command_handler = CommandActionHandler(runner, renderer)
    http_handler = HttpActionHandler(http_client, renderer)

    # probes are plain commands / requests; a poll never probes another poll
    probes = HandlerRegistry([command_handler, http_handler])

    registry = HandlerRegistry([
        command_handler,
        http_handler,
        FileActionHandler(renderer),
        PollActionHandler(probes, poller),
        ClientProvisionHandler(http_client, renderer),
    ])
    return StepExecutor(registry, renderer)


def build_deps(
    config: DeploymentConfig,
    logger: LoggerPort,
    cancel_token: Optional[CancellationToken] = None,
) -> ExecutionDeps:
    return ExecutionDeps(
        url_resolver=ApiUrlResolver.for_config(config),
        logger=logger,
        cancel_token=cancel_token or CancellationToken(),
    )
