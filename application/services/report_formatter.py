from __future__ import annotations

from typing import List

from domain.report import RunReport, StageOutcome

_MARKS = {
    StageOutcome.SUCCEEDED: "ok",
    StageOutcome.SKIPPED: "skip",
    StageOutcome.FAILED_NONFATAL: "warn",
    StageOutcome.FAILED_FATAL: "FAIL",
}


def _first_line(text: str) -> str:
    lines = text.strip().splitlines()
    return lines[0] if lines else ""


class ReportFormatter:
    """Plain-text summary of a run, one line per attempted stage."""

    def format(self, report: RunReport) -> str:
        lines: List[str] = [f"Plan: {report.plan_name}  Run ID: {report.run_id}"]
        width = max((len(r.stage_id) for r in report.results), default=0)

        for index, result in enumerate(report.results, start=1):
            mark = _MARKS[result.outcome]
            detail = result.error or _first_line(result.output)
            lines.append(
                f"{index:>3}. [{mark:^4}] {result.stage_id:<{width}}  "
                f"{result.outcome.value:<15} {result.elapsed_sec:6.1f}s  {detail}".rstrip()
            )

        lines.append(f"Status: {report.state.value.upper()}")
        if report.failure_reason:
            lines.append(f"Reason: {report.failure_reason}")
        if report.rolled_back:
            lines.append("Rolled back: " + ", ".join(report.rolled_back))
        if report.rollback_failures:
            lines.append("Rollback failed for: " + ", ".join(report.rollback_failures))
        return "\n".join(lines)
