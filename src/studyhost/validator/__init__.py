"""Study validation.

Exports the lifecycle interface check, the settings-schema helpers and
the ``Diagnostic`` types they report with.
"""
from __future__ import annotations

from studyhost.validator.diagnostics import Diagnostic, Severity, Stage
from studyhost.validator.interface import (
    REQUIRED_METHODS,
    InterfaceCheck,
    Study,
    check_interface,
    require_interface,
)
from studyhost.validator.schema import (
    ControlType,
    extract_defaults,
    iter_controls,
    lint_ui_config,
)

__all__ = [
    "REQUIRED_METHODS",
    "InterfaceCheck",
    "Study",
    "check_interface",
    "require_interface",
    "ControlType",
    "extract_defaults",
    "iter_controls",
    "lint_ui_config",
    "Diagnostic",
    "Severity",
    "Stage",
]
