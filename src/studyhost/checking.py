"""Offline check of a single plugin source.

Runs the same pipeline the loader does (sandbox evaluation, interface
check) and then lints the study's UI config, reporting every finding as
a ``Diagnostic`` instead of raising. Nothing is registered and no
lifecycle method other than ``get_ui_config`` is called.

Codes in addition to the ``STU0xx`` schema codes:

    STU100  Source failed to evaluate
    STU101  Missing lifecycle method
    STU102  get_ui_config() raised
"""
from __future__ import annotations

import logging

from studyhost.errors import EvaluationError
from studyhost.sandbox.evaluator import SandboxEvaluator
from studyhost.validator.diagnostics import Diagnostic, Severity, Stage
from studyhost.validator.interface import check_interface
from studyhost.validator.schema import lint_ui_config

logger = logging.getLogger(__name__)


def check_source(
    source: str,
    study_id: str,
    filename: str | None = None,
    evaluator: SandboxEvaluator | None = None,
) -> list[Diagnostic]:
    """Check one plugin source and return all findings.

    Parameters
    ----------
    source:
        Plugin source text.
    study_id:
        Id the plugin would be registered under.
    filename:
        File name used in tracebacks.
    evaluator:
        Sandbox to evaluate with; a fresh one by default.

    Returns
    -------
    list[Diagnostic]
        Findings in pipeline order; empty when the plugin is clean.
    """
    sandbox = evaluator or SandboxEvaluator()
    try:
        evaluated = sandbox.evaluate_plugin(source, study_id, filename)
    except EvaluationError as exc:
        return [Diagnostic.from_evaluation_error(exc)]

    try:
        interface = check_interface(evaluated.study)
        if not interface.valid:
            return [
                Diagnostic(
                    code="STU101",
                    severity=Severity.ERROR,
                    message=f"Missing lifecycle method {name}()",
                    study_id=study_id,
                    stage=Stage.INTERFACE,
                    suggestion="Subclass StudyBase or implement every lifecycle method",
                )
                for name in interface.missing
            ]

        try:
            config = evaluated.study.get_ui_config()
        except Exception as exc:  # noqa: BLE001
            logger.debug("get_ui_config() of %r raised", study_id, exc_info=exc)
            return [
                Diagnostic(
                    code="STU102",
                    severity=Severity.ERROR,
                    message=f"get_ui_config() raised {type(exc).__name__}: {exc}",
                    study_id=study_id,
                    stage=Stage.INTERFACE,
                )
            ]
        return lint_ui_config(config, study_id)
    finally:
        evaluated.timers.cancel_all()
