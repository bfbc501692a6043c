from __future__ import annotations

from pathlib import Path

import pytest

from domain.exceptions import PlanLoadError, PlanValidationError
from domain.stages import ClientProvisionAction, CommandAction, FileAction, HttpAction, PollAction, StageClass
from infrastructure.plan.yaml_loader import YamlPlanLoader


PLAN = """
meta:
  name: sample
  description: sample plan
stages:
  - id: install
    description: install things
    action: {type: command, argv: [apt-get, install, -y, curl], timeout_sec: 600, env: {LANG: C}}
    check: {type: command, shell: "dpkg -s curl"}
  - id: key
    action:
      type: http
      url: https://example.com/gpg
      save_to: /tmp/key.asc
      save_mode: "0644"
      expect_status: 200
    compensation: {type: file, operation: remove, path: /tmp/key.asc}
  - id: dir
    action: {type: file, operation: mkdir, path: "${config.data_dir}", mode: "0755"}
  - id: wait
    classification: best_effort
    action:
      type: poll
      interval_sec: 2
      max_attempts: 5
      probe: {type: http, method: GET, url: "http://localhost:3000/api/clients"}
  - id: client
    classification: best-effort
    when: "${config.create_first_client}"
    depends_on: wait
    action: {type: client}
"""


def _write(tmp_path: Path, text: str, name: str = "plan.yaml") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_yaml_loader_builds_stage_graph(tmp_path: Path) -> None:
    graph = YamlPlanLoader().load_from_file(_write(tmp_path, PLAN))

    assert graph.name == "sample"
    assert graph.description == "sample plan"
    assert graph.ids() == ["install", "key", "dir", "wait", "client"]

    install = graph.get("install")
    assert install.action == CommandAction(argv=("apt-get", "install", "-y", "curl"), env={"LANG": "C"}, timeout_sec=600)
    assert install.check.argv == ("sh", "-c", "dpkg -s curl")
    assert install.classification == StageClass.FATAL

    key = graph.get("key")
    assert isinstance(key.action, HttpAction)
    assert key.action.method == "GET"
    assert key.action.save_mode == 0o644
    assert key.action.expect_status == (200,)
    assert key.compensation == FileAction(operation="remove", path="/tmp/key.asc")

    assert graph.get("dir").action.mode == 0o755

    wait = graph.get("wait")
    assert wait.classification == StageClass.BEST_EFFORT
    assert isinstance(wait.action, PollAction)
    assert wait.action.interval_sec == 2.0
    assert wait.action.max_attempts == 5
    assert isinstance(wait.action.probe, HttpAction)

    client = graph.get("client")
    assert isinstance(client.action, ClientProvisionAction)
    assert client.action.base_url == "${config.api_base_url}"
    assert client.depends_on == ("wait",)
    assert client.when == "${config.create_first_client}"


def test_yaml_loader_uses_file_stem_without_meta_name(tmp_path: Path) -> None:
    path = _write(tmp_path, "stages:\n  - id: a\n    action: {type: command, argv: [true]}\n", "edge.yaml")

    assert YamlPlanLoader().load_from_file(path).name == "edge"


@pytest.mark.parametrize(
    "text,message",
    [
        ("", "empty"),
        ("- just\n- a list\n", "invalid"),
        ("meta: {name: x}\n", "non-empty 'stages'"),
        ("stages:\n  - id: a\n", "'action' is required"),
        ("stages:\n  - id: a\n    action: {type: teleport}\n", "unknown action type 'teleport'"),
        ("stages:\n  - id: a\n    action: {type: command}\n", "needs 'argv' or 'shell'"),
        ("stages:\n  - id: a\n    action: {type: http}\n", "needs 'url'"),
        ("stages:\n  - id: a\n    action: {type: file, operation: shred, path: /x}\n", "file operation"),
        ("stages:\n  - id: a\n    action: {type: file, operation: chmod, path: /x}\n", "chmod needs 'mode'"),
        ("stages:\n  - id: a\n    action: {type: poll}\n", "needs 'probe'"),
        ("stages:\n  - id: a\n    classification: sometimes\n    action: {type: command, argv: [x]}\n", "classification"),
        ("stages:\n  - id: a\n    action: {type: poll, max_attempts: lots, probe: {type: command, argv: [x]}}\n", "invalid poll"),
        ("stages: [unclosed\n", "not valid YAML"),
    ],
)
def test_yaml_loader_rejects_bad_plans(tmp_path: Path, text: str, message: str) -> None:
    with pytest.raises(PlanLoadError, match=message):
        YamlPlanLoader().load_from_file(_write(tmp_path, text))


def test_yaml_loader_rejects_nested_polls(tmp_path: Path) -> None:
    text = """
stages:
  - id: a
    action:
      type: poll
      probe: {type: poll, probe: {type: command, argv: [x]}}
"""
    with pytest.raises(PlanLoadError, match="cannot itself be a poll"):
        YamlPlanLoader().load_from_file(_write(tmp_path, text))


def test_yaml_loader_surfaces_graph_validation(tmp_path: Path) -> None:
    text = """
stages:
  - id: a
    action: {type: command, argv: [x]}
  - id: a
    action: {type: command, argv: [y]}
"""
    with pytest.raises(PlanValidationError, match="Duplicate stage id"):
        YamlPlanLoader().load_from_file(_write(tmp_path, text))


def test_yaml_loader_missing_file(tmp_path: Path) -> None:
    with pytest.raises(PlanLoadError, match="not found"):
        YamlPlanLoader().load_from_file(tmp_path / "nope.yaml")
