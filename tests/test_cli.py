"""
Tests for CLI commands — run, flows, clusters and global options.
"""

import json
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from flowplane.core.engine.checks import FlowContext
from flowplane.core.engine.runner import Runner
from flowplane.core.environment import Environment
from flowplane.core.models.flow import Flow
from flowplane.core.use_cases.run import RunResult
from flowplane.main import cli


def _config(tmp_path: Path, content: str = "enabled: false\n") -> Path:
    path = tmp_path / "scenario.yml"
    path.write_text(content)
    return path


class TestCLIGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Flowplane" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestFlowsCommand:
    def test_lists_sequence(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["--config", str(_config(tmp_path)), "flows"])
        assert result.exit_code == 0
        assert "platforms-to-install" in result.output
        assert "example-apps" in result.output
        assert "parallel" in result.output

    def test_json(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["--config", str(_config(tmp_path)), "flows", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data[-1]["name"] == "example-apps"
        assert data[-1]["matrix"] == {"pool": "poolnames", "plat": "platforms"}


class TestClustersCommand:
    def test_marks_selected(self, tmp_path: Path):
        path = _config(tmp_path, "clusters: minikube\n")
        result = CliRunner().invoke(cli, ["--config", str(path), "clusters"])
        assert result.exit_code == 0
        assert "minikube ← selected" in result.output
        assert "gce" in result.output


class TestRunCommand:
    def test_disabled(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["--config", str(_config(tmp_path)), "run"])
        assert result.exit_code == 0
        assert "disabled" in result.output

    def test_missing_config(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["--config", str(tmp_path / "nope.yml"), "run"])
        assert result.exit_code == 1

    def test_dry_run(self, tmp_path: Path):
        path = _config(tmp_path, "enabled: true\nprovisioners: [docker]\n")
        result = CliRunner().invoke(cli, ["--config", str(path), "run", "--dry-run"])
        assert result.exit_code == 0
        assert "[dry-run]" in result.output
        assert "platform-add" in result.output

    def _fake_result(self, fail: bool) -> RunResult:
        def forward(ctx: FlowContext) -> None:
            ctx.require_true(not fail, "it broke")

        flow = Flow(name="only", forward=forward, backward=lambda ctx: None)
        report = Runner([flow]).run(Environment(), run_id="run-test")
        return RunResult(report=report, enabled=True, clusters=[])

    def test_success_output(self):
        with patch("flowplane.core.use_cases.run.run_scenario", return_value=self._fake_result(False)):
            result = CliRunner().invoke(cli, ["run"])
        assert result.exit_code == 0
        assert "run-test" in result.output
        assert "Result: ok" in result.output

    def test_enabled_without_report(self):
        empty = RunResult(enabled=True, clusters=["minikube"])
        with patch("flowplane.core.use_cases.run.run_scenario", return_value=empty):
            result = CliRunner().invoke(cli, ["run"])
        assert result.exit_code == 0
        assert "Clusters: minikube" in result.output

    def test_failure_exit_code(self):
        with patch("flowplane.core.use_cases.run.run_scenario", return_value=self._fake_result(True)):
            result = CliRunner().invoke(cli, ["run"])
        assert result.exit_code == 1
        assert "it broke" in result.output
        assert "Rolled back: only" in result.output

    def test_json_failure(self):
        with patch("flowplane.core.use_cases.run.run_scenario", return_value=self._fake_result(True)):
            result = CliRunner().invoke(cli, ["run", "--json"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["report"]["status"] == "failed"
