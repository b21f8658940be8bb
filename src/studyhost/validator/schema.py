"""Checks and helpers for a study's declarative settings schema.

The runtime treats ``get_ui_config()`` output as opaque data for the
external settings form. These helpers exist for study authors and for
the ``studyhost check`` command: ``extract_defaults`` seeds settings from
the schema, and ``lint_ui_config`` reports schema problems the settings
form would otherwise trip over.

Rule codes:

    STU001  UI config is not a mapping
    STU002  Missing display name
    STU003  settings_schema is not a list
    STU004  Control without a key
    STU005  Unknown control type
    STU006  Duplicate control key
    STU007  Control without a default
    STU008  Numeric default outside min/max
    STU009  Select default not among options
    STU010  No ``enabled`` checkbox
"""
from __future__ import annotations

from collections.abc import Iterator, Mapping
from enum import Enum
from typing import Any

from studyhost.validator.diagnostics import Diagnostic, Severity, Stage


class ControlType(str, Enum):
    """Control types understood by the settings form."""

    CHECKBOX = "checkbox"
    COLOR = "color"
    RANGE = "range"
    NUMBER = "number"
    SELECT = "select"
    TIME = "time"
    SECTION = "section"


_CONTROL_TYPES = frozenset(t.value for t in ControlType) - {ControlType.SECTION.value}


def iter_controls(
    schema: Any, prefix: str = ""
) -> Iterator[tuple[str, Mapping[str, Any]]]:
    """Yield ``(dotted_path, control)`` for every control in ``schema``.

    Sections are descended into; their own ``key`` becomes part of the
    path but not of the yielded controls.
    """
    if not isinstance(schema, list):
        return
    for item in schema:
        if not isinstance(item, Mapping):
            continue
        if item.get("type") == ControlType.SECTION.value:
            section_key = item.get("key", "")
            path = f"{prefix}.{section_key}" if prefix and section_key else (section_key or prefix)
            yield from iter_controls(item.get("controls"), path)
        else:
            key = item.get("key", "")
            yield (f"{prefix}.{key}" if prefix else str(key)), item


def extract_defaults(schema: Any) -> dict[str, Any]:
    """Return a flat ``key -> default`` map for every control with a default.

    Parameters
    ----------
    schema:
        The ``settings_schema`` list of a UI config.

    Returns
    -------
    dict[str, Any]
        Defaults keyed by control key (section keys are not prefixed).
    """
    defaults: dict[str, Any] = {}
    for _path, control in iter_controls(schema):
        key = control.get("key")
        if key and "default" in control:
            defaults[key] = control["default"]
    return defaults


def _make(
    code: str,
    severity: Severity,
    message: str,
    study_id: str,
    control_path: str = "",
    suggestion: str | None = None,
) -> Diagnostic:
    return Diagnostic(
        code=code,
        severity=severity,
        message=message,
        study_id=study_id,
        stage=Stage.UI_CONFIG,
        control_path=control_path,
        suggestion=suggestion,
    )


def _check_bounds(control: Mapping[str, Any], study_id: str, path: str) -> list[Diagnostic]:
    default = control.get("default")
    if isinstance(default, bool) or not isinstance(default, (int, float)):
        return []
    low, high = control.get("min"), control.get("max")
    if (isinstance(low, (int, float)) and default < low) or (
        isinstance(high, (int, float)) and default > high
    ):
        return [
            _make(
                "STU008",
                Severity.ERROR,
                f"Default {default!r} is outside [{low}, {high}]",
                study_id,
                path,
                "Move the default inside the min/max bounds",
            )
        ]
    return []


def _check_options(control: Mapping[str, Any], study_id: str, path: str) -> list[Diagnostic]:
    options = control.get("options") or []
    values = [o.get("value") if isinstance(o, Mapping) else o for o in options]
    if "default" in control and control["default"] not in values:
        return [
            _make(
                "STU009",
                Severity.ERROR,
                f"Default {control['default']!r} is not one of {values!r}",
                study_id,
                path,
            )
        ]
    return []


def lint_ui_config(config: Any, study_id: str) -> list[Diagnostic]:
    """Lint a UI config and return all findings. Never raises."""
    if not isinstance(config, Mapping):
        return [
            _make(
                "STU001",
                Severity.ERROR,
                f"get_ui_config() returned {type(config).__name__}, expected a mapping",
                study_id,
            )
        ]

    diagnostics: list[Diagnostic] = []
    if not config.get("display_name"):
        diagnostics.append(
            _make(
                "STU002",
                Severity.WARNING,
                "UI config has no display_name",
                study_id,
                suggestion="Add a human-readable display_name",
            )
        )

    schema = config.get("settings_schema", [])
    if not isinstance(schema, list):
        diagnostics.append(
            _make("STU003", Severity.ERROR, "settings_schema must be a list", study_id)
        )
        return diagnostics

    seen: set[str] = set()
    for path, control in iter_controls(schema):
        key = control.get("key")
        if not key:
            diagnostics.append(
                _make("STU004", Severity.ERROR, "Control has no key", study_id, path)
            )
            continue
        control_type = control.get("type")
        if control_type not in _CONTROL_TYPES:
            diagnostics.append(
                _make(
                    "STU005",
                    Severity.ERROR,
                    f"Unknown control type {control_type!r}",
                    study_id,
                    path,
                    f"Use one of: {', '.join(sorted(_CONTROL_TYPES))}",
                )
            )
        if key in seen:
            diagnostics.append(
                _make(
                    "STU006",
                    Severity.ERROR,
                    f"Duplicate control key {key!r}",
                    study_id,
                    path,
                    "Settings are flattened, so keys must be unique across sections",
                )
            )
        seen.add(key)
        if "default" not in control:
            diagnostics.append(
                _make(
                    "STU007",
                    Severity.WARNING,
                    f"Control {key!r} has no default",
                    study_id,
                    path,
                )
            )
            continue
        if control_type in (ControlType.NUMBER.value, ControlType.RANGE.value):
            diagnostics.extend(_check_bounds(control, study_id, path))
        elif control_type == ControlType.SELECT.value:
            diagnostics.extend(_check_options(control, study_id, path))

    if "enabled" not in seen:
        diagnostics.append(
            _make(
                "STU010",
                Severity.HINT,
                "No 'enabled' checkbox; the study is dormant unless its settings enable it",
                study_id,
            )
        )
    return diagnostics
