# tests/application/test_execution_error_builder.py
from application.services.execution_error_builder import ExecutionErrorBuilder
from domain.report import ExecutionResult, RunReport, RunState, StageOutcome


def _report(state, results=(), **kwargs):
    return RunReport(run_id="r", plan_name="p", state=state, results=tuple(results), **kwargs)


def test_success_has_no_error_detail() -> None:
    assert ExecutionErrorBuilder().build_from_report(_report(RunState.COMPLETED)) is None


def test_fatal_stage_failure() -> None:
    report = _report(
        RunState.FAILED,
        [
            ExecutionResult(stage_id="a", outcome=StageOutcome.SUCCEEDED),
            ExecutionResult(stage_id="b", outcome=StageOutcome.FAILED_FATAL, error="boom"),
        ],
        rolled_back=("a",),
        failure_reason="b: boom",
    )

    detail = ExecutionErrorBuilder().build_from_report(report)

    assert detail.code == "stage_failed"
    assert detail.stage_id == "b"
    assert detail.message == "b: boom"
    assert detail.rolled_back == ("a",)


def test_cancelled_run() -> None:
    report = _report(
        RunState.FAILED,
        [ExecutionResult(stage_id="a", outcome=StageOutcome.SUCCEEDED)],
        cancelled=True,
        failure_reason="run cancelled: stop",
    )

    detail = ExecutionErrorBuilder().build_from_report(report)

    assert detail.code == "cancelled"
    assert detail.stage_id is None


def test_build_from_exception() -> None:
    detail = ExecutionErrorBuilder().build_from_exception("kaboom")

    assert detail.code == "exception"
    assert detail.message == "kaboom"
    assert detail.stage_id is None
