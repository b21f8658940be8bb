"""Capability sandbox for study plugins.

Exports the evaluator, the capability table and the drawing primitives
plugins build their output from.
"""
from __future__ import annotations

from studyhost.sandbox.capabilities import CAPABILITY_MODULES, SAFE_BUILTINS, build_namespace
from studyhost.sandbox.evaluator import (
    CONVENTIONAL_EXPORTS,
    DEFAULT_EXPORT,
    EvaluatedPlugin,
    SandboxEvaluator,
)
from studyhost.sandbox.timers import TimerScope

__all__ = [
    "CAPABILITY_MODULES",
    "SAFE_BUILTINS",
    "build_namespace",
    "CONVENTIONAL_EXPORTS",
    "DEFAULT_EXPORT",
    "EvaluatedPlugin",
    "SandboxEvaluator",
    "TimerScope",
]
