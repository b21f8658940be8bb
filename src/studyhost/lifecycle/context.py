"""Runtime context and message types used by the lifecycle coordinator."""
from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class CoordinatorState(Enum):
    """States of the lifecycle coordinator.

    ``UNINITIALIZED → INITIALIZING → READY ⇄ UPDATING → DESTROYED``;
    ``DESTROYED`` may go back to ``INITIALIZING`` through ``reset``.
    """

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    UPDATING = "updating"
    DESTROYED = "destroyed"

    @property
    def accepts_updates(self) -> bool:
        return self in (CoordinatorState.READY, CoordinatorState.UPDATING)


@dataclass(frozen=True)
class StudyContext:
    """Everything a study receives on ``initialize``.

    Parameters
    ----------
    surfaces:
        Opaque rendering-surface handles keyed by timeframe. Passed to
        studies unchanged.
    timeframes:
        Active timeframes, e.g. ``("1m", "5m", "1h")``.
    chart_data:
        Latest candle data keyed by timeframe.
    sessions:
        Latest trading sessions.
    """

    surfaces: dict[str, Any] = field(default_factory=dict)
    timeframes: tuple[str, ...] = ()
    chart_data: dict[str, Any] = field(default_factory=dict)
    sessions: list[Any] = field(default_factory=list)

    def with_data(self, chart_data: Any, sessions: Any) -> StudyContext:
        """Return a copy carrying a newer data snapshot."""
        return replace(self, chart_data=chart_data, sessions=sessions)


@dataclass(frozen=True)
class UpdateEnvelope:
    """One queued ``(chart_data, sessions)`` delivery."""

    chart_data: Any
    sessions: Any
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class ReintegrationRequest:
    """Emitted by the watcher after a changed plugin was reloaded."""

    study_id: str
    study: Any = field(repr=False)
