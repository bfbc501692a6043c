from __future__ import annotations

import threading
from datetime import datetime, timezone

import pytest

from domain.exceptions import RunStateError
from domain.run_log import RunLogEntry
from domain.run_record import RunRecord, RunStatus
from infrastructure.run.in_memory_run_log_store import InMemoryRunLogStore
from infrastructure.run.in_memory_run_repository import InMemoryRunRepository
from infrastructure.run.in_memory_run_scheduler import InMemoryRunScheduler


def _record(run_id: str = "r1") -> RunRecord:
    now = datetime.now(timezone.utc)
    return RunRecord(
        run_id=run_id,
        plan_id="wireguard",
        status=RunStatus.QUEUED,
        created_at=now,
        updated_at=now,
        report=None,
        error=None,
    )


class TestInMemoryRunRepository:
    def test_transitions_follow_expected_status(self):
        repo = InMemoryRunRepository()
        repo.create(_record())

        repo.transition_status("r1", RunStatus.QUEUED, RunStatus.RUNNING)
        done = repo.transition_status(
            "r1",
            RunStatus.RUNNING,
            RunStatus.FAILED,
            report={"state": "failed"},
            error="docker_ready: gave up",
            error_detail={"stage_id": "docker_ready"},
        )

        assert done.status == RunStatus.FAILED
        assert done.status.finished is True
        assert done.report == {"state": "failed"}
        assert done.error_detail == {"stage_id": "docker_ready"}
        assert repo.get("r1") == done
        assert done.updated_at >= done.created_at

    def test_unexpected_status_is_rejected(self):
        repo = InMemoryRunRepository()
        repo.create(_record())

        with pytest.raises(RunStateError, match="queued -> succeeded"):
            repo.transition_status("r1", RunStatus.RUNNING, RunStatus.SUCCEEDED)

    def test_unknown_and_duplicate_runs(self):
        repo = InMemoryRunRepository()
        repo.create(_record())

        assert repo.get("missing") is None
        with pytest.raises(RunStateError, match="already exists"):
            repo.create(_record())
        with pytest.raises(RunStateError, match="not found"):
            repo.transition_status("missing", RunStatus.QUEUED, RunStatus.RUNNING)


def test_log_store_offset():
    store = InMemoryRunLogStore()
    for i in range(3):
        store.append("r1", RunLogEntry(timestamp=datetime.now(timezone.utc), level="info", event=f"e{i}", fields={}))

    assert [e.event for e in store.list("r1")] == ["e0", "e1", "e2"]
    assert [e.event for e in store.list("r1", offset=2)] == ["e2"]
    assert store.list("r1", offset=10) == []
    assert store.list("other") == []


def test_scheduler_admits_one_run_at_a_time():
    scheduler = InMemoryRunScheduler()
    release = threading.Event()
    started = threading.Event()

    def task():
        started.set()
        release.wait(5)

    assert scheduler.try_submit("r1", task) is True
    assert started.wait(5)

    assert scheduler.active_run_id() == "r1"
    assert scheduler.try_submit("r2", lambda: None) is False
    assert scheduler.wait("r1", timeout_sec=0.01) is False

    release.set()
    assert scheduler.wait("r1", timeout_sec=5) is True
    assert scheduler.active_run_id() is None
    assert scheduler.try_submit("r2", lambda: None) is True
    assert scheduler.wait("r2", timeout_sec=5) is True
    assert scheduler.wait("unknown", timeout_sec=0) is False


def test_scheduler_wait_reports_crashed_task_as_finished():
    scheduler = InMemoryRunScheduler()

    def task():
        raise RuntimeError("worker crashed")

    scheduler.try_submit("r1", task)

    assert scheduler.wait("r1", timeout_sec=5) is True
    assert scheduler.active_run_id() is None


def test_scheduler_drops_finished_runs():
    scheduler = InMemoryRunScheduler(max_finished=2)

    for run_id in ("r1", "r2", "r3"):
        assert scheduler.try_submit(run_id, lambda: None) is True
        assert scheduler.wait(run_id, timeout_sec=5) is True

    assert scheduler._current is None
    assert list(scheduler._finished) == ["r2", "r3"]
    assert scheduler.wait("r3", timeout_sec=0) is True
    assert scheduler.wait("r1", timeout_sec=0) is False


def test_log_store_keeps_only_recent_runs():
    store = InMemoryRunLogStore(max_runs=2)
    for run_id in ("r1", "r2", "r1", "r3"):
        store.append(run_id, RunLogEntry(timestamp=datetime.now(timezone.utc), event=f"{run_id}.event"))

    assert store.list("r1") == []
    assert [e.event for e in store.list("r2")] == ["r2.event"]
    assert [e.event for e in store.list("r3")] == ["r3.event"]
