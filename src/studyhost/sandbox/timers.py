"""Per-study timer functions backed by the asyncio event loop.

Each evaluated plugin receives its own ``TimerScope``; the loader cancels
the scope when the plugin is unloaded so that a hot-reloaded study never
leaves callbacks running against a destroyed instance. Delays are in
milliseconds.
"""
from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class TimerScope:
    """Timer handles owned by a single study.

    Parameters
    ----------
    study_id:
        Owner id, used in log messages.
    """

    def __init__(self, study_id: str) -> None:
        self._study_id = study_id
        self._handles: dict[int, asyncio.TimerHandle] = {}
        self._counter = itertools.count(1)

    @property
    def active(self) -> int:
        """Number of timers still scheduled."""
        return len(self._handles)

    def _loop(self) -> asyncio.AbstractEventLoop:
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            raise RuntimeError(
                f"Study {self._study_id!r} scheduled a timer outside the event loop"
            ) from None

    def _run(self, callback: Callable[..., Any], args: tuple[Any, ...]) -> None:
        try:
            callback(*args)
        except Exception:
            logger.exception("Timer callback of study %r raised", self._study_id)

    def set_timeout(self, callback: Callable[..., Any], delay_ms: float = 0, *args: Any) -> int:
        timer_id = next(self._counter)

        def fire() -> None:
            self._handles.pop(timer_id, None)
            self._run(callback, args)

        self._handles[timer_id] = self._loop().call_later(max(delay_ms, 0) / 1000.0, fire)
        return timer_id

    def set_interval(self, callback: Callable[..., Any], delay_ms: float, *args: Any) -> int:
        timer_id = next(self._counter)
        loop = self._loop()
        delay = max(delay_ms, 1) / 1000.0

        def fire() -> None:
            if timer_id not in self._handles:
                return
            # reschedule first so the callback may clear its own interval
            self._handles[timer_id] = loop.call_later(delay, fire)
            self._run(callback, args)

        self._handles[timer_id] = loop.call_later(delay, fire)
        return timer_id

    def clear(self, timer_id: int | None) -> None:
        if timer_id is None:
            return
        handle = self._handles.pop(timer_id, None)
        if handle is not None:
            handle.cancel()

    # setTimeout/setInterval style aliases exposed to plugins
    clear_timeout = clear
    clear_interval = clear

    def cancel_all(self) -> None:
        """Cancel every pending timer of this study."""
        if self._handles:
            logger.debug(
                "Cancelling %d timer(s) of study %r", len(self._handles), self._study_id
            )
        for handle in self._handles.values():
            handle.cancel()
        self._handles.clear()

    def __repr__(self) -> str:
        return f"TimerScope(study_id={self._study_id!r}, active={self.active})"
