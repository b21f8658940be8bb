"""Unit tests for studyhost.validator.schema."""
from __future__ import annotations

from typing import Any

from studyhost.validator.diagnostics import Severity, Stage
from studyhost.validator.schema import (
    ControlType,
    extract_defaults,
    iter_controls,
    lint_ui_config,
)

SCHEMA: list[dict[str, Any]] = [
    {"key": "enabled", "type": "checkbox", "default": True},
    {
        "key": "appearance",
        "type": "section",
        "controls": [
            {"key": "color", "type": "color", "default": "#FF0000"},
            {"key": "thickness", "type": "range", "default": 2, "min": 1, "max": 5},
        ],
    },
    {
        "key": "mode",
        "type": "select",
        "default": "body",
        "options": [{"value": "body"}, {"value": "wick"}],
    },
]


def _codes(config: Any) -> list[str]:
    return [d.code for d in lint_ui_config(config, "s")]


class TestIterControls:
    def test_sections_prefix_the_path(self) -> None:
        paths = [path for path, _ in iter_controls(SCHEMA)]
        assert paths == ["enabled", "appearance.color", "appearance.thickness", "mode"]

    def test_non_list_yields_nothing(self) -> None:
        assert list(iter_controls({"key": "x"})) == []


class TestExtractDefaults:
    def test_defaults_are_flat(self) -> None:
        assert extract_defaults(SCHEMA) == {
            "enabled": True,
            "color": "#FF0000",
            "thickness": 2,
            "mode": "body",
        }

    def test_controls_without_default_are_skipped(self) -> None:
        assert extract_defaults([{"key": "x", "type": "number"}]) == {}


class TestLintUiConfig:
    def test_clean_config(self) -> None:
        assert lint_ui_config({"display_name": "S", "settings_schema": SCHEMA}, "s") == []

    def test_non_mapping(self) -> None:
        assert _codes(["not", "a", "mapping"]) == ["STU001"]

    def test_missing_display_name_is_a_warning(self) -> None:
        diagnostics = lint_ui_config({"settings_schema": SCHEMA}, "s")
        assert [d.code for d in diagnostics] == ["STU002"]
        assert diagnostics[0].severity is Severity.WARNING
        assert not diagnostics[0].is_error

    def test_schema_not_a_list(self) -> None:
        assert "STU003" in _codes({"display_name": "S", "settings_schema": {}})

    def test_control_problems(self) -> None:
        config = {
            "display_name": "S",
            "settings_schema": [
                {"key": "enabled", "type": "checkbox", "default": True},
                {"type": "number", "default": 1},
                {"key": "size", "type": "slider", "default": 1},
                {"key": "size", "type": "number"},
                {"key": "period", "type": "number", "default": 500, "min": 1, "max": 200},
                {"key": "mode", "type": "select", "default": "x", "options": ["a", "b"]},
            ],
        }
        assert _codes(config) == ["STU004", "STU005", "STU006", "STU007", "STU008", "STU009"]

    def test_location_uses_the_dotted_path(self) -> None:
        config = {
            "display_name": "S",
            "settings_schema": [
                {"key": "enabled", "type": "checkbox", "default": True},
                {
                    "key": "look",
                    "type": "section",
                    "controls": [{"key": "width", "type": "number", "default": 0, "min": 1}],
                },
            ],
        }
        (diagnostic,) = lint_ui_config(config, "s")
        assert diagnostic.code == "STU008"
        assert diagnostic.control_path == "look.width"
        assert diagnostic.study_id == "s"
        assert diagnostic.stage is Stage.UI_CONFIG
        assert diagnostic.location == "s.look.width"

    def test_missing_enabled_is_a_hint(self) -> None:
        diagnostics = lint_ui_config(
            {"display_name": "S", "settings_schema": [{"key": "p", "type": "number", "default": 1}]},
            "s",
        )
        assert [d.code for d in diagnostics] == ["STU010"]
        assert diagnostics[0].severity is Severity.HINT


def test_control_type_values() -> None:
    assert ControlType("checkbox") is ControlType.CHECKBOX
    assert ControlType.SECTION == "section"
