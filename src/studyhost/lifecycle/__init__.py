"""Study lifecycle coordination."""
from __future__ import annotations

from studyhost.lifecycle.context import (
    CoordinatorState,
    ReintegrationRequest,
    StudyContext,
    UpdateEnvelope,
)
from studyhost.lifecycle.coordinator import DEFAULT_DRAIN_YIELD_SECONDS, LifecycleCoordinator

__all__ = [
    "DEFAULT_DRAIN_YIELD_SECONDS",
    "CoordinatorState",
    "LifecycleCoordinator",
    "ReintegrationRequest",
    "StudyContext",
    "UpdateEnvelope",
]
