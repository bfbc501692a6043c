#!/usr/bin/env python3
"""
WireGuard host provisioning

Usage:
  python scripts/provision.py run [--plan-id <id> | --plan-file <path>] [--config-file <path>] [--log-level <level>] [--log-json]
  python scripts/provision.py start --api-base-url <url> [--plan-id <id>] [--config-file <path>]
  python scripts/provision.py status --run-id <id> --api-base-url <url>
  python scripts/provision.py logs --run-id <id> --api-base-url <url>
  python scripts/provision.py cancel --run-id <id> --api-base-url <url>

Examples:
  WG_HOST=203.0.113.7 AUTH_TOKEN=secret python scripts/provision.py run
  python scripts/provision.py run --config-file deploy.yaml --log-level DEBUG
  python scripts/provision.py start --api-base-url http://localhost:8000 --config-file deploy.json

Exit codes: 0 completed, 1 failed (rolled back), 2 invalid config or plan.
"""
from __future__ import annotations

import argparse
import json
import signal
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
import yaml
from dotenv import load_dotenv

# project root on the path when run as `python scripts/provision.py`
sys.path.insert(0, str(Path(__file__).parent.parent))

load_dotenv()

from application.executor.orchestrator import DeploymentOrchestrator
from application.services.cancellation import CancellationToken
from application.services.report_formatter import ReportFormatter
from domain.exceptions import PlanLoadError, ValidationError
from domain.stage_graph import StageGraph
from infrastructure.bootstrap import build_deps, build_executor
from infrastructure.config.dict_config_source import DictConfigSource
from infrastructure.config.env_config_source import EnvConfigSource
from infrastructure.config.layered_config_source import LayeredConfigSource
from infrastructure.logging.console_logger import ConsoleLogger
from infrastructure.logging.log_setup import setup_console_logging
from infrastructure.plan.file_finder import PlanFileFinder
from infrastructure.plan.loader_registry import PlanLoaderRegistry

PLANS_DIR = Path(__file__).parent.parent / "plans"
DEFAULT_PLAN_ID = "wireguard"
DEFAULT_API_TIMEOUT_SEC = 30

EXIT_COMPLETED = 0
EXIT_FAILED = 1
EXIT_INVALID = 2


def _load_config_file(path: str) -> Dict[str, Any]:
    p = Path(path)
    try:
        content = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Unable to read config file: {exc}") from exc

    try:
        if p.suffix.lower() == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ValueError(f"Invalid config file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("config file must hold a mapping")
    return data


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Provision a WireGuard REST API host")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Run a plan on this host")
    run_parser.add_argument("--plan-id", type=str, default=DEFAULT_PLAN_ID)
    run_parser.add_argument("--plan-file", type=str)
    run_parser.add_argument("--config-file", type=str)
    run_parser.add_argument("--log-level", type=str, default="INFO")
    run_parser.add_argument("--log-json", action="store_true", help="Emit log records as JSON lines")

    start_parser = subparsers.add_parser("start", help="Start a run through the HTTP API")
    start_parser.add_argument("--plan-id", type=str, default=DEFAULT_PLAN_ID)
    start_parser.add_argument("--config-file", type=str)
    start_parser.add_argument("--api-base-url", type=str, required=True)
    start_parser.add_argument("--wait-sec", type=int)

    for name, help_text in (
        ("status", "Fetch run status"),
        ("logs", "Fetch run logs"),
        ("cancel", "Cancel a running deployment"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--run-id", type=str, required=True)
        sub.add_argument("--api-base-url", type=str, required=True)

    return parser


def _resolve_plan_path(args: argparse.Namespace) -> Path:
    if args.plan_file:
        return Path(args.plan_file)
    plan_file = PlanFileFinder(PLANS_DIR).find_by_id(args.plan_id)
    if plan_file is None:
        raise PlanLoadError(f"Plan file not found: {args.plan_id}")
    return plan_file


def _load_plan(args: argparse.Namespace) -> StageGraph:
    return PlanLoaderRegistry().load(_resolve_plan_path(args))


def _install_signal_handlers(token: CancellationToken) -> Dict[int, Any]:
    """SIGINT/SIGTERM cancel the run so completed stages get rolled back."""

    def _cancel(signum, _frame) -> None:
        token.cancel(f"received {signal.Signals(signum).name}")

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, _cancel)
    return previous


def _restore_signal_handlers(previous: Dict[int, Any]) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def _run_local(args: argparse.Namespace) -> int:
    setup_console_logging(level=args.log_level, json_lines=args.log_json)

    sources: List[Any] = [EnvConfigSource()]
    if args.config_file:
        sources.append(DictConfigSource(_load_config_file(args.config_file)))
    config = LayeredConfigSource(sources).load()

    graph = _load_plan(args)

    logger = ConsoleLogger()
    orchestrator = DeploymentOrchestrator(config, build_executor(logger=logger))

    token = CancellationToken()
    previous = _install_signal_handlers(token)

    print(f"Plan: {graph.name} ({len(graph)} stages)")
    print(f"Host: {config.host}  Image: {config.image_reference}")
    print("\n=== Executing ===\n")

    try:
        report = orchestrator.run(graph, build_deps(config, logger, token))
    finally:
        _restore_signal_handlers(previous)

    print("\n=== Result ===")
    print(ReportFormatter().format(report))
    return report.exit_code


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _start_api(args: argparse.Namespace) -> int:
    payload = _load_config_file(args.config_file) if args.config_file else {}
    url = f"{args.api_base_url.rstrip('/')}/plans/{args.plan_id}/runs"
    params = {"wait_sec": args.wait_sec} if args.wait_sec is not None else {}
    response = requests.post(url, json=payload, params=params, timeout=DEFAULT_API_TIMEOUT_SEC)
    print(f"Status: {response.status_code}")
    data = response.json()
    _print_json(data)
    if response.status_code == 202:
        return EXIT_COMPLETED
    if response.status_code == 400:
        return EXIT_INVALID
    if response.status_code >= 400:
        return EXIT_FAILED
    return EXIT_COMPLETED if data.get("success") else EXIT_FAILED


def _get_json(url: str) -> Any:
    response = requests.get(url, timeout=DEFAULT_API_TIMEOUT_SEC)
    response.raise_for_status()
    return response.json()


def _status_api(args: argparse.Namespace) -> int:
    _print_json(_get_json(f"{args.api_base_url.rstrip('/')}/runs/{args.run_id}"))
    return EXIT_COMPLETED


def _logs_api(args: argparse.Namespace) -> int:
    _print_json(_get_json(f"{args.api_base_url.rstrip('/')}/runs/{args.run_id}/logs"))
    return EXIT_COMPLETED


def _cancel_api(args: argparse.Namespace) -> int:
    url = f"{args.api_base_url.rstrip('/')}/runs/{args.run_id}/cancel"
    response = requests.post(url, timeout=DEFAULT_API_TIMEOUT_SEC)
    print(f"Status: {response.status_code}")
    _print_json(response.json())
    return EXIT_COMPLETED if response.status_code == 202 else EXIT_FAILED


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or argv[0].startswith("-"):
        argv = ["run"] + argv
    args = parser.parse_args(argv)

    commands = {
        "run": _run_local,
        "start": _start_api,
        "status": _status_api,
        "logs": _logs_api,
        "cancel": _cancel_api,
    }
    try:
        return commands[args.command](args)
    except (ValidationError, PlanLoadError, ValueError) as exc:
        print(f"ERROR: {exc}")
        return EXIT_INVALID
    except requests.RequestException as exc:
        print(f"ERROR: API request failed: {exc}")
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
