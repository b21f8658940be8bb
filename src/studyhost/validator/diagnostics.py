"""Findings reported by ``studyhost check`` and the UI-config linter.

Every finding belongs to one study and points either at the plugin file
(``line``) or at a settings control (``control_path``, the dotted path
through sections such as ``"appearance.thickness"``). Codes are grouped
by the stage that produced them:

=========  ==========================================================
range      stage
=========  ==========================================================
STU001-    UI config lint (``get_ui_config()`` and its settings schema)
STU100     evaluation of the plugin source in the sandbox
STU101-    lifecycle interface of the exported study
=========  ==========================================================
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from studyhost.errors import EvaluationError


class Severity(Enum):
    """How a finding affects the plugin.

    Only ``ERROR`` keeps a plugin from loading; the loader would reject
    it. ``WARNING`` marks UI configs the settings form renders poorly and
    ``HINT`` marks studies that load but stay dormant.
    """

    ERROR = "error"
    WARNING = "warning"
    HINT = "hint"

    @property
    def style(self) -> str:
        """Rich style the CLI renders this severity with."""
        return _SEVERITY_STYLES[self]


_SEVERITY_STYLES = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.HINT: "dim",
}


class Stage(Enum):
    """The part of the check pipeline that produced a finding."""

    EVALUATION = "evaluation"
    INTERFACE = "interface"
    UI_CONFIG = "ui_config"


@dataclass(frozen=True)
class Diagnostic:
    """A single finding about one study plugin.

    Parameters
    ----------
    code:
        Stable identifier, e.g. ``"STU008"``.
    severity:
        Whether the finding blocks loading.
    message:
        Human-readable description.
    study_id:
        Id the plugin registers under.
    stage:
        Pipeline stage that reported it.
    control_path:
        Dotted path of the settings control concerned, if any.
    line:
        Line in the plugin file, for evaluation failures.
    suggestion:
        Optional fix.
    """

    code: str
    severity: Severity
    message: str
    study_id: str
    stage: Stage
    control_path: str = ""
    line: int | None = None
    suggestion: str | None = None

    @classmethod
    def from_evaluation_error(cls, exc: EvaluationError) -> Diagnostic:
        return cls(
            code="STU100",
            severity=Severity.ERROR,
            message=exc.message,
            study_id=exc.study_id,
            stage=Stage.EVALUATION,
            line=exc.lineno,
        )

    @property
    def location(self) -> str:
        """``id``, ``id:line`` or ``id.control.path``, for display."""
        if self.control_path:
            return f"{self.study_id}.{self.control_path}"
        if self.line is not None:
            return f"{self.study_id}:{self.line}"
        return self.study_id

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def __str__(self) -> str:
        text = f"{self.location}: {self.severity.value} {self.code} {self.message}"
        if self.suggestion:
            text += f" (fix: {self.suggestion})"
        return text
