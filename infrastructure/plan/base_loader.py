"""
Builds a StageGraph from a plan document (already parsed into dicts).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from domain.exceptions import PlanLoadError
from domain.stage_graph import StageGraph
from domain.stages import (
    FILE_OPERATIONS,
    Action,
    ClientProvisionAction,
    CommandAction,
    FileAction,
    HttpAction,
    PollAction,
    Stage,
    StageClass,
)


def _parse_mode(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value), 8)
    except ValueError as exc:
        raise PlanLoadError(f"invalid file mode: {value!r}") from exc


def _parse_statuses(value: Any) -> Tuple[int, ...]:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(int(v) for v in value)
    return (int(value),)


class PlanLoaderBase(ABC):
    def load_from_file(self, path: Union[str, Path]) -> StageGraph:
        p = Path(path)
        if not p.exists():
            raise PlanLoadError(f"Plan file not found: {path}")

        data = self._load_file(p)

        if data is None:
            raise PlanLoadError(f"Plan file is empty: {path}")
        if not isinstance(data, dict):
            raise PlanLoadError(f"Plan file is invalid: {path}")

        return self.load_from_dict(data, default_name=p.stem)

    @abstractmethod
    def _load_file(self, path: Path) -> Any:
        ...

    def load_from_dict(self, data: Dict[str, Any], default_name: str = "plan") -> StageGraph:
        meta = data.get("meta") or {}
        stages_data = data.get("stages")
        if not isinstance(stages_data, list) or not stages_data:
            raise PlanLoadError("Plan must declare a non-empty 'stages' list")

        stages = [self._load_stage(s, index) for index, s in enumerate(stages_data, start=1)]
        return StageGraph.build(
            name=str(meta.get("name") or default_name),
            stages=stages,
            description=str(meta.get("description") or ""),
        )

    def _load_stage(self, data: Any, index: int) -> Stage:
        if not isinstance(data, dict):
            raise PlanLoadError(f"Stage #{index} must be a mapping")
        stage_id = str(data.get("id") or "")
        where = f"stage {stage_id or '#' + str(index)}"

        if "action" not in data:
            raise PlanLoadError(f"{where}: 'action' is required")

        raw_class = str(data.get("classification", StageClass.FATAL.value)).replace("_", "-").lower()
        try:
            classification = StageClass(raw_class)
        except ValueError as exc:
            raise PlanLoadError(f"{where}: unknown classification {raw_class!r}") from exc

        depends_on = data.get("depends_on") or []
        if isinstance(depends_on, str):
            depends_on = [depends_on]

        return Stage(
            id=stage_id,
            description=str(data.get("description") or stage_id),
            action=self._load_action(data["action"], where),
            check=self._load_optional_action(data.get("check"), where),
            compensation=self._load_optional_action(data.get("compensation"), where),
            classification=classification,
            depends_on=tuple(str(d) for d in depends_on),
            when=data.get("when"),
        )

    def _load_optional_action(self, data: Any, where: str) -> Optional[Action]:
        if data is None:
            return None
        return self._load_action(data, where)

    def _load_action(self, data: Any, where: str) -> Action:
        if not isinstance(data, dict):
            raise PlanLoadError(f"{where}: action must be a mapping")
        action_type = str(data.get("type", "")).lower()
        builders: Dict[str, Callable[[Dict[str, Any], str], Action]] = {
            "command": self._load_command,
            "http": self._load_http,
            "file": self._load_file_action,
            "poll": self._load_poll,
            "client": self._load_client,
        }
        builder = builders.get(action_type)
        if builder is None:
            raise PlanLoadError(f"{where}: unknown action type {action_type!r}")
        try:
            return builder(data, where)
        except (TypeError, ValueError) as exc:
            raise PlanLoadError(f"{where}: invalid {action_type} action: {exc}") from exc

    def _load_command(self, data: Dict[str, Any], where: str) -> CommandAction:
        if "shell" in data:
            argv: List[str] = ["sh", "-c", str(data["shell"])]
        else:
            argv = [str(a) for a in data.get("argv") or []]
        if not argv:
            raise PlanLoadError(f"{where}: command needs 'argv' or 'shell'")
        return CommandAction(
            argv=tuple(argv),
            env={str(k): str(v) for k, v in (data.get("env") or {}).items()},
            timeout_sec=float(data.get("timeout_sec", 300)),
        )

    def _load_http(self, data: Dict[str, Any], where: str) -> HttpAction:
        if not data.get("url"):
            raise PlanLoadError(f"{where}: http action needs 'url'")
        return HttpAction(
            method=str(data.get("method", "GET")).upper(),
            url=str(data["url"]),
            headers=data.get("headers"),
            json_body=data.get("json"),
            params=data.get("params"),
            expect_status=_parse_statuses(data.get("expect_status")),
            save_to=data.get("save_to"),
            save_mode=_parse_mode(data.get("save_mode")),
            timeout_sec=float(data.get("timeout_sec", 10)),
        )

    def _load_file_action(self, data: Dict[str, Any], where: str) -> FileAction:
        operation = str(data.get("operation", "")).lower()
        if operation not in FILE_OPERATIONS:
            raise PlanLoadError(f"{where}: file operation must be one of {', '.join(FILE_OPERATIONS)}")
        if not data.get("path"):
            raise PlanLoadError(f"{where}: file action needs 'path'")
        mode = _parse_mode(data.get("mode"))
        if operation == "chmod" and mode is None:
            raise PlanLoadError(f"{where}: chmod needs 'mode'")
        return FileAction(
            operation=operation,
            path=str(data["path"]),
            content=data.get("content"),
            mode=mode,
        )

    def _load_poll(self, data: Dict[str, Any], where: str) -> PollAction:
        probe_data = data.get("probe")
        if probe_data is None:
            raise PlanLoadError(f"{where}: poll action needs 'probe'")
        probe = self._load_action(probe_data, where)
        if isinstance(probe, PollAction):
            raise PlanLoadError(f"{where}: a poll probe cannot itself be a poll")
        timeout = data.get("timeout_sec")
        return PollAction(
            probe=probe,
            interval_sec=float(data.get("interval_sec", 1.0)),
            max_attempts=int(data.get("max_attempts", 30)),
            timeout_sec=float(timeout) if timeout is not None else None,
        )

    def _load_client(self, data: Dict[str, Any], where: str) -> ClientProvisionAction:
        return ClientProvisionAction(
            base_url=str(data.get("base_url", "${config.api_base_url}")),
            auth_token=str(data.get("auth_token", "${config.auth_token}")),
            user_id=int(data.get("user_id", 1)),
            comment=str(data.get("comment", "first client")),
            output_dir=str(data.get("output_dir", "${config.output_dir}")),
            timeout_sec=float(data.get("timeout_sec", 10)),
        )
