"""Unit tests for studyhost.sandbox.timers."""
from __future__ import annotations

import asyncio
import logging

import pytest

from studyhost.sandbox.timers import TimerScope


def test_timeout_fires_once_with_args() -> None:
    fired: list[str] = []

    async def scenario() -> None:
        timers = TimerScope("s")
        timers.set_timeout(fired.append, 1, "tick")
        assert timers.active == 1
        await asyncio.sleep(0.05)
        assert timers.active == 0

    asyncio.run(scenario())
    assert fired == ["tick"]


def test_clear_timeout_prevents_callback() -> None:
    fired: list[int] = []

    async def scenario() -> None:
        timers = TimerScope("s")
        timer_id = timers.set_timeout(lambda: fired.append(1), 10)
        timers.clear_timeout(timer_id)
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert fired == []


def test_interval_repeats_until_cleared() -> None:
    fired: list[int] = []

    async def scenario() -> None:
        timers = TimerScope("s")
        holder: dict[str, int] = {}

        def tick() -> None:
            fired.append(1)
            if len(fired) == 3:
                timers.clear_interval(holder["id"])

        holder["id"] = timers.set_interval(tick, 1)
        await asyncio.sleep(0.2)
        assert timers.active == 0

    asyncio.run(scenario())
    assert len(fired) == 3


def test_cancel_all_cancels_everything() -> None:
    fired: list[int] = []

    async def scenario() -> None:
        timers = TimerScope("s")
        timers.set_timeout(lambda: fired.append(1), 5)
        timers.set_interval(lambda: fired.append(2), 5)
        timers.cancel_all()
        assert timers.active == 0
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert fired == []


def test_callback_errors_are_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    def explode() -> None:
        raise ValueError("boom")

    async def scenario() -> None:
        timers = TimerScope("noisy")
        timers.set_timeout(explode, 0)
        await asyncio.sleep(0.02)

    with caplog.at_level(logging.ERROR, logger="studyhost.sandbox.timers"):
        asyncio.run(scenario())
    assert "noisy" in caplog.text


def test_scheduling_outside_a_loop_raises() -> None:
    with pytest.raises(RuntimeError, match="outside the event loop"):
        TimerScope("s").set_timeout(lambda: None, 1)


def test_clear_unknown_or_none_is_a_no_op() -> None:
    timers = TimerScope("s")
    timers.clear(None)
    timers.clear(42)
    assert "active=0" in repr(timers)
