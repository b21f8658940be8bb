"""Sandboxed evaluation of study plugin source.

``SandboxEvaluator.evaluate`` compiles plugin source, executes it
against a fresh capability namespace (see ``capabilities``) and returns
the study object the module exports. Every failure, syntax or runtime,
surfaces as a single ``EvaluationError``; the caller decides what to do
with it.

Export convention
-----------------
The exported study is looked up in this fixed order, first match wins:

1. ``__study__``
2. a binding named exactly like the study id
3. ``study``, ``user_study``, ``StudyClass``

Injected capability bindings never count as an export. If the match is
a class it is instantiated with no arguments. Nothing else in the
module namespace is inspected.

Usage
-----
::

    from studyhost.sandbox import SandboxEvaluator

    evaluator = SandboxEvaluator()
    study = evaluator.evaluate(source_text, "high_low")
"""
from __future__ import annotations

import logging
import traceback
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from studyhost.errors import EvaluationError
from studyhost.sandbox.capabilities import build_namespace
from studyhost.sandbox.timers import TimerScope

logger = logging.getLogger(__name__)

DEFAULT_EXPORT = "__study__"
CONVENTIONAL_EXPORTS: tuple[str, ...] = ("study", "user_study", "StudyClass")


@dataclass
class EvaluatedPlugin:
    """Result of evaluating one plugin source.

    Parameters
    ----------
    study:
        The exported (and, for classes, constructed) study object.
    export_name:
        The namespace binding the study was found under.
    timers:
        The plugin's timer scope; cancel it when unloading.
    """

    study: Any
    export_name: str
    timers: TimerScope


def _failing_line(exc: BaseException, filename: str) -> int | None:
    for frame in reversed(traceback.extract_tb(exc.__traceback__)):
        if frame.filename == filename:
            return frame.lineno
    return None


class SandboxEvaluator:
    """Evaluates plugin source against the capability table.

    Parameters
    ----------
    extra_bindings:
        Additional names made visible to every plugin, layered over the
        standard table. Hosts use this to grant extra capabilities; tests
        use it to inject recorders.
    """

    def __init__(self, extra_bindings: Mapping[str, Any] | None = None) -> None:
        self._extra: dict[str, Any] = dict(extra_bindings or {})

    @property
    def extra_bindings(self) -> dict[str, Any]:
        return dict(self._extra)

    def evaluate(self, source_text: str, study_id: str, filename: str | None = None) -> Any:
        """Evaluate ``source_text`` and return the exported study.

        Raises
        ------
        EvaluationError
            On syntax errors, exceptions raised while executing the
            module, a missing export, or a failing constructor.
        """
        return self.evaluate_plugin(source_text, study_id, filename).study

    def evaluate_plugin(
        self, source_text: str, study_id: str, filename: str | None = None
    ) -> EvaluatedPlugin:
        """Evaluate ``source_text`` and return the study with its timer scope."""
        code_name = filename or f"<study:{study_id}>"
        try:
            code = compile(source_text, code_name, "exec")
        except SyntaxError as exc:
            raise EvaluationError(study_id, f"syntax error: {exc.msg}", exc.lineno) from exc
        except ValueError as exc:
            # e.g. source containing null bytes
            raise EvaluationError(study_id, str(exc)) from exc

        timers = TimerScope(study_id)
        namespace = build_namespace(study_id, timers, self._extra)
        injected = dict(namespace)
        try:
            exec(code, namespace)  # noqa: S102
        except Exception as exc:
            timers.cancel_all()
            raise EvaluationError(
                study_id,
                f"{type(exc).__name__}: {exc}",
                _failing_line(exc, code_name),
            ) from exc

        try:
            export_name, exported = self._resolve_export(namespace, injected, study_id)
            study = self._construct(exported, export_name, study_id, code_name)
        except EvaluationError:
            timers.cancel_all()
            raise
        logger.debug("Evaluated study %r (export %r)", study_id, export_name)
        return EvaluatedPlugin(study=study, export_name=export_name, timers=timers)

    @staticmethod
    def _resolve_export(
        namespace: Mapping[str, Any], injected: Mapping[str, Any], study_id: str
    ) -> tuple[str, Any]:
        for name in (DEFAULT_EXPORT, study_id, *CONVENTIONAL_EXPORTS):
            if name not in namespace:
                continue
            value = namespace[name]
            if value is None or (name in injected and injected[name] is value):
                continue
            return name, value
        raise EvaluationError(
            study_id,
            "no study export found; bind the study to "
            f"{DEFAULT_EXPORT!r}, {study_id!r} or one of {', '.join(CONVENTIONAL_EXPORTS)}",
        )

    @staticmethod
    def _construct(exported: Any, export_name: str, study_id: str, code_name: str) -> Any:
        if not isinstance(exported, type):
            return exported
        try:
            return exported()
        except Exception as exc:
            raise EvaluationError(
                study_id,
                f"constructing {export_name} failed: {type(exc).__name__}: {exc}",
                _failing_line(exc, code_name),
            ) from exc
