#!/usr/bin/env python3
"""Example: Quickstart (studyhost)

Load the plugins in ``examples/studies``, initialize them against two
in-memory surfaces, enable one study and push a data update through the
ordered queue.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install studyhost
"""
from __future__ import annotations

import asyncio
from pathlib import Path

import studyhost
from studyhost import RuntimeConfig, StudyContext, StudyManager

STUDIES = Path(__file__).parent / "studies"


class PrintSurface:
    """Stand-in for a chart surface: remembers and prints what studies draw."""

    def __init__(self, timeframe: str) -> None:
        self.timeframe = timeframe
        self.items: dict[str, object] = {}

    def add(self, primitive) -> None:
        self.items[primitive.id] = primitive
        print(f"  [{self.timeframe}] + {primitive.kind} y={primitive.y1} {primitive.label_value}")

    def remove(self, primitive) -> None:
        self.items.pop(primitive.id, None)


def candles(base: float) -> list[dict[str, float]]:
    return [
        {"timestamp": t, "open": base, "high": base + t % 7, "low": base - t % 5, "close": base + 1}
        for t in range(0, 100, 10)
    ]


async def main() -> None:
    print(f"studyhost version: {studyhost.__version__}")

    manager = StudyManager(RuntimeConfig(plugin_root=STUDIES))
    surfaces = {tf: PrintSurface(tf) for tf in ("1m", "5m")}
    sessions = [{"relative_number": 1, "start_time": 0, "end_time": 50}]

    # Step 1: load and initialize every study (disabled ones stay dormant)
    await manager.initialize(StudyContext(surfaces=surfaces, timeframes=tuple(surfaces)))
    manager.log_status()
    for study in manager.get_available_studies():
        print(f"Loaded {study['id']!r}: {study['name']} (enabled={study['enabled']})")

    # Step 2: queue a data snapshot
    manager.update_all_studies({"1m": candles(100.0), "5m": candles(100.0)}, sessions)
    await manager.join()

    # Step 3: enabling a study initializes it with the latest snapshot
    print("Enabling high_low:")
    manager.update_study_settings("high_low", {"enabled": True})

    # Step 4: further updates redraw in arrival order
    print("Updating:")
    manager.update_all_studies({"1m": candles(120.0), "5m": candles(120.0)}, sessions)
    await manager.join()

    await manager.close()
    print(f"Drawn on 1m after close: {len(surfaces['1m'].items)} item(s)")


if __name__ == "__main__":
    asyncio.run(main())
