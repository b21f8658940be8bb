"""Shared test fixtures for studyhost.

Fixtures defined here are available to all tests in the suite without
needing an explicit import. Plugin sources are written to ``tmp_path``
and report their lifecycle calls to a ``Recorder`` that is injected into
the sandbox as the ``recorder`` binding.
"""
from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from studyhost.config import RuntimeConfig
from studyhost.manager import StudyManager
from studyhost.registry import StudyRegistry
from studyhost.sandbox import SandboxEvaluator


class Recorder:
    """Collects ``(tag, method, args)`` tuples reported by recording plugins."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, tuple[Any, ...]]] = []

    def record(self, tag: str, method: str, *args: Any) -> None:
        self.calls.append((tag, method, args))

    def methods(self, tag: str | None = None) -> list[str]:
        return [method for t, method, _ in self.calls if tag is None or t == tag]

    def args_of(self, tag: str, method: str) -> list[tuple[Any, ...]]:
        return [args for t, m, args in self.calls if t == tag and m == method]

    def clear(self) -> None:
        self.calls.clear()


_RECORDED_TEMPLATE = '''\
class Recorded(StudyBase):
    def get_ui_config(self):
        return {{
            "display_name": "Recorded {tag}",
            "category": "test",
            "settings_schema": [
                {{"key": "enabled", "type": "checkbox", "default": {enabled}}},
                {{"key": "period", "type": "number", "default": 14, "min": 1, "max": 200}},
            ],
        }}

    def initialize(self, context):
        recorder.record("{tag}", "initialize", context)

    def update_data(self, chart_data, sessions):
        recorder.record("{tag}", "update_data", chart_data, sessions)

    def destroy(self):
        recorder.record("{tag}", "destroy")

    def on_settings_changed(self):
        recorder.record("{tag}", "update_settings", dict(self.settings))

{extra}
__study__ = Recorded
'''


def make_study_source(tag: str, enabled: bool = True, extra: str = "") -> str:
    """Return plugin source for a study that records every lifecycle call."""
    return _RECORDED_TEMPLATE.format(tag=tag, enabled=enabled, extra=extra)


@pytest.fixture()
def package_name() -> str:
    """Return the importable package name for assertions."""
    return "studyhost"


@pytest.fixture()
def expected_version() -> str:
    """Return the current expected version string.

    Update this fixture when cutting a release so that the version
    test immediately catches stale ``__version__`` values.
    """
    return "0.1.0"


@pytest.fixture()
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture()
def study_source() -> Callable[..., str]:
    return make_study_source


@pytest.fixture()
def plugin_root(tmp_path: Path) -> Path:
    root = tmp_path / "studies"
    root.mkdir()
    return root


@pytest.fixture()
def write_plugin(plugin_root: Path) -> Callable[[str, str], Path]:
    """Return a function writing ``source`` to ``plugin_root / relative``."""

    def _write(relative: str, source: str) -> Path:
        path = plugin_root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def evaluator(recorder: Recorder) -> SandboxEvaluator:
    return SandboxEvaluator({"recorder": recorder})


@pytest.fixture()
def registry() -> StudyRegistry:
    return StudyRegistry("test")


@pytest.fixture()
def make_manager(plugin_root: Path, recorder: Recorder) -> Callable[..., StudyManager]:
    """Return a factory for managers over ``plugin_root`` with no drain delay."""

    def _make(**overrides: Any) -> StudyManager:
        values: dict[str, Any] = {"plugin_root": plugin_root, "drain_yield_seconds": 0.0}
        values.update(overrides)
        return StudyManager(RuntimeConfig(**values), extra_bindings={"recorder": recorder})

    return _make
