from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import List

import pytest
from fastapi import HTTPException

from api import main
from api.main import DeploymentRequest
from application.ports.process_runner import ProcessResult, ProcessRunnerPort
from domain.run_record import RunStatus
from infrastructure.bootstrap import build_executor

PLAN = """
meta:
  name: simple
stages:
  - id: hello
    action: {type: command, argv: [echo, "${config.host}"]}
    compensation: {type: command, argv: [echo, undo]}
  - id: bye
    action: {type: command, argv: [echo, bye]}
"""


class FakeRunner(ProcessRunnerPort):
    def __init__(self, fail_on: str = "", block: threading.Event = None):
        self.calls: List[List[str]] = []
        self.fail_on = fail_on
        self.block = block
        self.started = threading.Event()

    def run(self, argv, env=None, timeout_sec=None):
        self.calls.append(list(argv))
        self.started.set()
        if self.block is not None:
            self.block.wait(5)
        if self.fail_on and self.fail_on in argv:
            return ProcessResult(argv=tuple(argv), exit_status=1, stderr="boom")
        return ProcessResult(argv=tuple(argv), exit_status=0, stdout="ok")


@pytest.fixture
def runner(monkeypatch, tmp_path: Path) -> FakeRunner:
    main.RUN_REPOSITORY._runs.clear()
    main.RUN_LOG_STORE._logs.clear()
    (tmp_path / "simple.yaml").write_text(PLAN, encoding="utf-8")
    monkeypatch.setattr(main, "PLANS_DIR", tmp_path)

    fake = FakeRunner()
    monkeypatch.setattr(main, "build_executor", lambda logger=None: build_executor(runner=fake, logger=logger))
    return fake


def _request(**overrides) -> DeploymentRequest:
    data = {"host": "203.0.113.7", "auth_token": "secret-token"}
    data.update(overrides)
    return DeploymentRequest(**data)


def test_start_run_returns_accepted_and_completes(runner) -> None:
    # Act
    response = main.start_run("simple", _request(), wait_sec=0)
    payload = json.loads(response.body.decode())
    run_id = payload["run_id"]

    # Assert
    assert response.status_code == 202
    assert payload["status"] == "queued"
    assert payload["links"] == {
        "self": f"/runs/{run_id}",
        "logs": f"/runs/{run_id}/logs",
        "cancel": f"/runs/{run_id}/cancel",
    }
    assert main.RUN_SCHEDULER.wait(run_id, timeout_sec=5) is True
    record = main.RUN_REPOSITORY.get(run_id)
    assert record.status == RunStatus.SUCCEEDED
    assert record.report["state"] == "completed"
    assert [s["id"] for s in record.report["stages"]] == ["hello", "bye"]
    assert ["echo", "203.0.113.7"] in runner.calls
    assert run_id not in main.CANCEL_TOKENS


def test_start_run_with_wait_returns_finished_run(runner) -> None:
    # Act
    response = main.start_run("simple", _request(), wait_sec=5)

    # Assert
    assert response.success is True
    assert response.report["plan"] == "simple"
    assert response.error is None


def test_failed_run_is_rolled_back_and_reported(runner) -> None:
    # Arrange
    runner.fail_on = "bye"

    # Act
    response = main.start_run("simple", _request(), wait_sec=5)

    # Assert
    assert response.success is False
    assert response.error == "bye: echo exited with status 1"
    assert response.error_detail.code == "stage_failed"
    assert response.error_detail.stage_id == "bye"
    assert response.error_detail.rolled_back == ["hello"]
    assert ["echo", "undo"] in runner.calls


def test_status_and_logs_endpoints(runner) -> None:
    # Arrange
    response = main.start_run("simple", _request(), wait_sec=0)
    run_id = json.loads(response.body.decode())["run_id"]
    main.RUN_SCHEDULER.wait(run_id, timeout_sec=5)

    # Act
    run_status = main.get_run_status(run_id)
    logs = main.get_run_logs(run_id, offset=0)
    tail = main.get_run_logs(run_id, offset=len(logs) - 1)

    # Assert
    assert run_status.plan_id == "simple"
    assert run_status.status == "succeeded"
    events = [entry.event for entry in logs]
    assert "run.start" in events
    assert "stage.start" in events
    assert events[-1] == "run.end"
    assert [entry.event for entry in tail] == ["run.end"]
    assert all("secret-token" not in json.dumps(entry.fields, default=str) for entry in logs)


def test_unknown_run_is_404(runner) -> None:
    for call in (main.get_run_status, main.cancel_run):
        with pytest.raises(HTTPException) as excinfo:
            call("missing")
        assert excinfo.value.status_code == 404
    with pytest.raises(HTTPException) as excinfo:
        main.get_run_logs("missing", offset=0)
        assert excinfo.value.status_code == 404


def test_unknown_plan_is_404(runner) -> None:
    with pytest.raises(HTTPException) as excinfo:
        main.start_run("nope", _request(), wait_sec=0)

    assert excinfo.value.status_code == 404
    assert main.RUN_REPOSITORY._runs == {}


def test_invalid_config_is_400_and_nothing_runs(runner) -> None:
    with pytest.raises(HTTPException) as excinfo:
        main.start_run("simple", DeploymentRequest(auth_token="x"), wait_sec=0)

    assert excinfo.value.status_code == 400
    assert "host is required" in excinfo.value.detail
    assert runner.calls == []
    assert main.RUN_REPOSITORY._runs == {}


def test_wait_sec_is_capped(runner) -> None:
    with pytest.raises(HTTPException) as excinfo:
        main.start_run("simple", _request(), wait_sec=main.MAX_WAIT_SEC + 1)

    assert excinfo.value.status_code == 400


def test_cancel_running_deployment(runner) -> None:
    # Arrange
    release = threading.Event()
    runner.block = release
    response = main.start_run("simple", _request(), wait_sec=0)
    run_id = json.loads(response.body.decode())["run_id"]
    assert runner.started.wait(5)

    # Act
    cancelled = main.cancel_run(run_id)
    release.set()
    main.RUN_SCHEDULER.wait(run_id, timeout_sec=5)

    # Assert
    assert cancelled.status_code == 202
    assert json.loads(cancelled.body.decode())["status"] == "cancelling"
    record = main.RUN_REPOSITORY.get(run_id)
    assert record.status == RunStatus.FAILED
    assert record.error == "run cancelled: cancelled via API"
    assert record.error_detail["code"] == "cancelled"
    assert record.error_detail["rolled_back"] == ["hello"]
    assert record.report["cancelled"] is True

    with pytest.raises(HTTPException) as excinfo:
        main.cancel_run(run_id)
    assert excinfo.value.status_code == 409


def test_second_run_is_refused_while_one_is_active(runner) -> None:
    # Arrange
    release = threading.Event()
    runner.block = release
    first = main.start_run("simple", _request(), wait_sec=0)
    first_id = json.loads(first.body.decode())["run_id"]
    assert runner.started.wait(5)

    # Act
    with pytest.raises(HTTPException) as excinfo:
        main.start_run("simple", _request(), wait_sec=0)
    release.set()
    main.RUN_SCHEDULER.wait(first_id, timeout_sec=5)

    # Assert
    assert excinfo.value.status_code == 409
    assert excinfo.value.detail == f"Another run is in progress: {first_id}"
    refused = [r for r in main.RUN_REPOSITORY._runs.values() if r.run_id != first_id]
    assert len(refused) == 1
    assert refused[0].status == RunStatus.FAILED
    assert refused[0].run_id not in main.CANCEL_TOKENS
    assert main.RUN_REPOSITORY.get(first_id).status == RunStatus.SUCCEEDED
