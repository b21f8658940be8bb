"""Unit tests for the studyhost CLI (click.testing.CliRunner)."""
from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from studyhost.cli.main import cli

QUIET = ["--log-level", "CRITICAL"]


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Run from an empty directory and restore root logging afterwards."""
    monkeypatch.chdir(tmp_path)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


def _clean_plugin(tag: str) -> str:
    # recording plugins need the recorder binding, which the CLI does not inject
    return (
        "class Plain(StudyBase):\n"
        "    def get_ui_config(self):\n"
        f"        return {{'display_name': 'Plain {tag}', 'settings_schema': [\n"
        "            {'key': 'enabled', 'type': 'checkbox', 'default': True},\n"
        "            {'key': 'period', 'type': 'number', 'default': 14, 'min': 1, 'max': 50},\n"
        "        ]}\n"
        "    def initialize(self, context): pass\n"
        "    def update_data(self, chart_data, sessions): pass\n"
        "    def destroy(self): pass\n"
        "__study__ = Plain\n"
    )


class TestVersion:
    def test_version_command(self, runner: CliRunner, expected_version: str) -> None:
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert expected_version in result.output


class TestStatus:
    def test_table(self, runner: CliRunner, write_plugin, plugin_root: Path) -> None:
        write_plugin("a.py", _clean_plugin("a"))
        write_plugin("b.py", "broken(\n")
        result = runner.invoke(cli, QUIET + ["status", str(plugin_root)])
        assert result.exit_code == 0
        assert "1 loaded, 1 failed" in result.output

    def test_json(self, runner: CliRunner, write_plugin, plugin_root: Path) -> None:
        write_plugin("a.py", _clean_plugin("a"))
        result = runner.invoke(cli, QUIET + ["status", str(plugin_root), "--format", "json"])
        assert result.exit_code == 0
        status = json.loads(result.output)
        assert status["loaded_ids"] == ["a"]
        assert status["error_count"] == 0

    def test_missing_root_reports_nothing_loaded(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, QUIET + ["status", str(tmp_path / "missing"), "--format", "json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["loaded_count"] == 0


class TestCheck:
    def test_clean_file(self, runner: CliRunner, write_plugin) -> None:
        path = write_plugin("clean.py", _clean_plugin("c"))
        result = runner.invoke(cli, QUIET + ["check", str(path)])
        assert result.exit_code == 0
        assert "OK" in result.output

    def test_broken_file(self, runner: CliRunner, write_plugin) -> None:
        path = write_plugin("broken.py", "def f(:\n")
        result = runner.invoke(cli, QUIET + ["check", str(path)])
        assert result.exit_code == 1
        assert "STU100" in result.output

    def test_warnings_do_not_fail(self, runner: CliRunner, write_plugin) -> None:
        source = _clean_plugin("w").replace("'display_name': 'Plain w', ", "")
        path = write_plugin("warn.py", source)
        result = runner.invoke(cli, QUIET + ["check", str(path)])
        assert result.exit_code == 0
        assert "STU002" in result.output

    def test_missing_file(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, QUIET + ["check", str(tmp_path / "nope.py")])
        assert result.exit_code == 1


class TestExport:
    def test_json_file(self, runner: CliRunner, write_plugin, plugin_root: Path, tmp_path: Path) -> None:
        write_plugin("a.py", _clean_plugin("a"))
        out = tmp_path / "settings.json"
        result = runner.invoke(cli, QUIET + ["export", str(plugin_root), "-o", str(out)])
        assert result.exit_code == 0
        assert json.loads(out.read_text(encoding="utf-8")) == {"a": {"enabled": True, "period": 14}}

    def test_yaml_file(self, runner: CliRunner, write_plugin, plugin_root: Path, tmp_path: Path) -> None:
        write_plugin("a.py", _clean_plugin("a"))
        out = tmp_path / "settings.yaml"
        result = runner.invoke(
            cli, QUIET + ["export", str(plugin_root), "--format", "yaml", "-o", str(out)]
        )
        assert result.exit_code == 0
        assert yaml.safe_load(out.read_text(encoding="utf-8")) == {"a": {"enabled": True, "period": 14}}

    def test_stdout(self, runner: CliRunner, write_plugin, plugin_root: Path) -> None:
        write_plugin("a.py", _clean_plugin("a"))
        result = runner.invoke(cli, QUIET + ["export", str(plugin_root)])
        assert result.exit_code == 0
        assert "period" in result.output


class TestWatch:
    def test_runs_for_duration(self, runner: CliRunner, write_plugin, plugin_root: Path) -> None:
        write_plugin("a.py", _clean_plugin("a"))
        result = runner.invoke(cli, QUIET + ["watch", str(plugin_root), "--duration", "0.2"])
        assert result.exit_code == 0
        assert "1 loaded" in result.output


class TestConfigOption:
    def test_invalid_config_exits(self, runner: CliRunner, tmp_path: Path) -> None:
        bad = tmp_path / "bad.yaml"
        bad.write_text("studyhost:\n  log_level: LOUD\n", encoding="utf-8")
        result = runner.invoke(cli, ["--config", str(bad), "version"])
        assert result.exit_code == 1
        assert "Config error" in result.output
