"""FastAPI application: start, inspect and cancel provisioning runs."""
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from fastapi import Body, FastAPI, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

import sys

# project root on the path when served as `uvicorn api.main:app` from elsewhere
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from application.executor.orchestrator import DeploymentOrchestrator
from application.services.cancellation import CancellationToken
from application.services.execution_error_builder import ExecutionErrorBuilder
from domain.config import DeploymentConfig
from domain.config_validator import ConfigValidator
from domain.exceptions import PlanLoadError, ValidationError
from domain.run_record import RunRecord, RunStatus
from domain.stage_graph import StageGraph
from infrastructure.bootstrap import build_deps, build_executor
from infrastructure.config.dict_config_source import DictConfigSource
from infrastructure.config.env_config_source import EnvConfigSource
from infrastructure.config.layered_config_source import ConfigSourcePort, LayeredConfigSource
from infrastructure.logging.composite_logger import CompositeLogger
from infrastructure.logging.console_logger import ConsoleLogger
from infrastructure.logging.run_log_logger import RunLogLogger
from infrastructure.plan.file_finder import PlanFileFinder
from infrastructure.plan.loader_registry import PlanLoaderRegistry
from infrastructure.run.in_memory_run_log_store import InMemoryRunLogStore
from infrastructure.run.in_memory_run_repository import InMemoryRunRepository
from infrastructure.run.in_memory_run_scheduler import InMemoryRunScheduler


class DeploymentRequest(BaseModel):
    """Deployment settings. Omitted fields fall back to defaults (or the environment)."""
    host: Optional[str] = Field(default=None, description="Public address clients connect to (WG_HOST)")
    auth_token: Optional[str] = Field(default=None, description="Bearer token for the REST API")
    image_reference: Optional[str] = Field(default=None, description="Container image")
    create_first_client: Optional[bool] = Field(default=None, description="Create client 1 after startup")
    dns_server: Optional[str] = Field(default=None, description="DNS pushed to clients")
    api_port: Optional[int] = Field(default=None, description="REST API port")
    vpn_port: Optional[int] = Field(default=None, description="WireGuard UDP port")
    container_name: Optional[str] = Field(default=None)
    data_dir: Optional[str] = Field(default=None)
    environment: Optional[str] = Field(default=None)
    output_dir: Optional[str] = Field(default=None)
    config_ref: Optional[str] = Field(
        default=None,
        description="Config source. 'inline' uses the body only; 'env' layers the body over the server environment.",
    )

    def overrides(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True, exclude={"config_ref"})


class ErrorDetailResponse(BaseModel):
    """Structured error detail"""
    code: str = Field(description="Error code")
    message: str = Field(description="Error message")
    stage_id: Optional[str] = Field(default=None, description="Failed stage id")
    rolled_back: List[str] = Field(default_factory=list, description="Compensated stages, in order")


class RunResponse(BaseModel):
    """Finished run"""
    success: bool = Field(description="True when the run completed")
    report: Optional[Dict[str, Any]] = Field(default=None, description="Run report")
    error: Optional[str] = Field(default=None, description="Error message")
    error_detail: Optional[ErrorDetailResponse] = Field(default=None)


class RunAcceptedResponse(BaseModel):
    """Accepted response for async execution"""
    run_id: str = Field(description="Run identifier")
    status: str = Field(description="Run status")
    links: Dict[str, str] = Field(description="Related resources")


class RunStatusResponse(BaseModel):
    """Async run status response"""
    run_id: str = Field(description="Run identifier")
    plan_id: str = Field(description="Plan identifier")
    status: str = Field(description="Run status")
    report: Optional[Dict[str, Any]] = Field(default=None, description="Run report")
    error: Optional[str] = Field(default=None, description="Run error")
    error_detail: Optional[ErrorDetailResponse] = Field(default=None)
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Update timestamp")


class RunLogEntryResponse(BaseModel):
    """Async run log entry"""
    timestamp: datetime = Field(description="Log timestamp")
    event: str = Field(description="Log event name")
    level: str = Field(description="Log level")
    fields: Dict[str, Any] = Field(description="Log payload")


app = FastAPI(
    title="WireGuard Provisioner",
    description="Plan-driven provisioning of a wg-rest-api WireGuard host",
    version="1.0.0",
)

PLANS_DIR = project_root / "plans"
RUN_REPOSITORY = InMemoryRunRepository()
RUN_LOG_STORE = InMemoryRunLogStore()
RUN_SCHEDULER = InMemoryRunScheduler()
MAX_WAIT_SEC = 30

CANCEL_TOKENS: Dict[str, CancellationToken] = {}
_TOKENS_LOCK = Lock()


@app.get("/")
def read_root():
    """Health check"""
    return {"status": "ok", "service": "wg-provisioner"}


class ConfigSourceResolver:
    def __init__(
        self,
        factories: Dict[str, Callable[[DeploymentRequest], List[ConfigSourcePort]]],
        default_key: str,
    ) -> None:
        self._factories = factories
        self._default_key = default_key

    def resolve(self, request: DeploymentRequest) -> LayeredConfigSource:
        key = request.config_ref or self._default_key
        factory = self._factories.get(key)
        if not factory:
            raise HTTPException(status_code=400, detail=f"Unknown config_ref: {key}")
        return LayeredConfigSource(factory(request))


def _build_config_source_resolver() -> ConfigSourceResolver:
    return ConfigSourceResolver(
        factories={
            "inline": lambda request: [DictConfigSource(request.overrides())],
            "env": lambda request: [EnvConfigSource(), DictConfigSource(request.overrides())],
        },
        default_key="inline",
    )


def _build_logger(run_id: str, config: DeploymentConfig) -> CompositeLogger:
    return CompositeLogger(
        [
            ConsoleLogger(),
            RunLogLogger(run_id=run_id, log_store=RUN_LOG_STORE, secrets=(config.auth_token,)),
        ]
    )


def _load_plan(plan_id: str) -> StageGraph:
    plan_file = PlanFileFinder(PLANS_DIR).find_by_id(plan_id)
    if plan_file is None:
        raise HTTPException(status_code=404, detail=f"Plan file not found: {plan_id}")
    return PlanLoaderRegistry().load(plan_file)


def _build_config(request: DeploymentRequest) -> DeploymentConfig:
    config = _build_config_source_resolver().resolve(request).load()
    ConfigValidator().validate(config)
    return config


def _create_run_record(plan_id: str, run_id: str) -> RunRecord:
    now = datetime.now(timezone.utc)
    return RunRecord(
        run_id=run_id,
        plan_id=plan_id,
        status=RunStatus.QUEUED,
        created_at=now,
        updated_at=now,
        report=None,
        error=None,
    )


def _build_run_links(run_id: str) -> Dict[str, str]:
    return {
        "self": f"/runs/{run_id}",
        "logs": f"/runs/{run_id}/logs",
        "cancel": f"/runs/{run_id}/cancel",
    }


def _detail_dict(detail) -> Dict[str, Any]:
    data = asdict(detail)
    data["rolled_back"] = list(data["rolled_back"])
    return data


def _build_response_from_record(record: RunRecord) -> RunResponse:
    error_detail = ErrorDetailResponse(**record.error_detail) if record.error_detail else None
    return RunResponse(
        success=record.status == RunStatus.SUCCEEDED,
        report=record.report,
        error=record.error,
        error_detail=error_detail,
    )


def _execute_async_run(
    plan_id: str,
    graph: StageGraph,
    config: DeploymentConfig,
    run_id: str,
    token: CancellationToken,
) -> None:
    logger = _build_logger(run_id, config).bind(run_id=run_id)
    error_builder = ExecutionErrorBuilder()

    try:
        RUN_REPOSITORY.transition_status(run_id, RunStatus.QUEUED, RunStatus.RUNNING)
    except Exception as exc:
        logger.error("run.transition_failed", error=str(exc))
        return

    try:
        orchestrator = DeploymentOrchestrator(config, build_executor(logger=logger))
        report = orchestrator.run(graph, build_deps(config, logger, token), run_id=run_id)
    except Exception as exc:
        logger.error("run.crashed", plan_id=plan_id, error=str(exc))
        detail = error_builder.build_from_exception(str(exc))
        RUN_REPOSITORY.transition_status(
            run_id,
            RunStatus.RUNNING,
            RunStatus.FAILED,
            error=str(exc),
            error_detail=_detail_dict(detail),
        )
        return
    finally:
        with _TOKENS_LOCK:
            CANCEL_TOKENS.pop(run_id, None)

    if report.success:
        RUN_REPOSITORY.transition_status(
            run_id,
            RunStatus.RUNNING,
            RunStatus.SUCCEEDED,
            report=report.to_dict(),
        )
        return

    detail = error_builder.build_from_report(report)
    RUN_REPOSITORY.transition_status(
        run_id,
        RunStatus.RUNNING,
        RunStatus.FAILED,
        report=report.to_dict(),
        error=detail.message,
        error_detail=_detail_dict(detail),
    )


@app.post("/plans/{plan_id}/runs", response_model=RunResponse)
def start_run(
    plan_id: str,
    request: DeploymentRequest = Body(...),
    wait_sec: int = Query(default=0, ge=0),
):
    """
    Validate the config and start a provisioning run in the background.

    Returns 202 with links to the run, or the finished run when it completes
    within `wait_sec` seconds. Only one run may be active at a time (409).
    """
    if wait_sec > MAX_WAIT_SEC:
        raise HTTPException(status_code=400, detail=f"wait_sec must be <= {MAX_WAIT_SEC}")

    try:
        graph = _load_plan(plan_id)
        config = _build_config(request)
    except HTTPException:
        raise
    except (ValidationError, PlanLoadError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    run_id = uuid4().hex
    record = _create_run_record(plan_id, run_id)
    RUN_REPOSITORY.create(record)

    token = CancellationToken()
    with _TOKENS_LOCK:
        CANCEL_TOKENS[run_id] = token

    accepted_by_worker = RUN_SCHEDULER.try_submit(
        run_id,
        lambda: _execute_async_run(plan_id, graph, config, run_id, token),
    )
    if not accepted_by_worker:
        message = f"Another run is in progress: {RUN_SCHEDULER.active_run_id()}"
        with _TOKENS_LOCK:
            CANCEL_TOKENS.pop(run_id, None)
        RUN_REPOSITORY.transition_status(run_id, RunStatus.QUEUED, RunStatus.FAILED, error=message)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=message)

    if wait_sec and RUN_SCHEDULER.wait(run_id, wait_sec):
        completed = RUN_REPOSITORY.get(run_id)
        if completed is None:
            raise HTTPException(status_code=404, detail="Run not found")
        return _build_response_from_record(completed)

    accepted = RunAcceptedResponse(
        run_id=run_id,
        status=record.status.value,
        links=_build_run_links(run_id),
    )
    return JSONResponse(
        status_code=status.HTTP_202_ACCEPTED,
        content=accepted.model_dump(),
    )


def _get_record_or_404(run_id: str) -> RunRecord:
    record = RUN_REPOSITORY.get(run_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Run not found: {run_id}")
    return record


@app.get("/runs/{run_id}", response_model=RunStatusResponse)
def get_run_status(run_id: str) -> RunStatusResponse:
    record = _get_record_or_404(run_id)
    return RunStatusResponse(
        run_id=record.run_id,
        plan_id=record.plan_id,
        status=record.status.value,
        report=record.report,
        error=record.error,
        error_detail=ErrorDetailResponse(**record.error_detail) if record.error_detail else None,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


@app.get("/runs/{run_id}/logs", response_model=List[RunLogEntryResponse])
def get_run_logs(run_id: str, offset: int = Query(default=0, ge=0)) -> List[RunLogEntryResponse]:
    _get_record_or_404(run_id)
    entries = RUN_LOG_STORE.list(run_id, offset=offset)
    return [
        RunLogEntryResponse(
            timestamp=entry.timestamp,
            event=entry.event,
            level=entry.level,
            fields=entry.fields,
        )
        for entry in entries
    ]


@app.post("/runs/{run_id}/cancel")
def cancel_run(run_id: str):
    record = _get_record_or_404(run_id)
    if record.status.finished:
        raise HTTPException(status_code=409, detail=f"Run already {record.status.value}: {run_id}")

    with _TOKENS_LOCK:
        token = CANCEL_TOKENS.get(run_id)
    if token is None:
        raise HTTPException(status_code=409, detail=f"Run is finishing: {run_id}")

    token.cancel("cancelled via API")
    return JSONResponse(
        status_code=status.HTTP_202_ACCEPTED,
        content={"run_id": run_id, "status": "cancelling", "links": _build_run_links(run_id)},
    )
