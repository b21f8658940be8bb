"""The bundled example plugins load, lint clean and draw."""
from __future__ import annotations

import asyncio
from pathlib import Path

import studyhost
from studyhost import RuntimeConfig, StudyContext, StudyManager

STUDIES = Path(__file__).parent.parent.parent / "examples" / "studies"


class FakeSurface:
    def __init__(self) -> None:
        self.items: dict[str, object] = {}

    def add(self, primitive) -> None:
        self.items[primitive.id] = primitive

    def remove(self, primitive) -> None:
        self.items.pop(primitive.id, None)


def _candles() -> list[dict[str, float]]:
    return [
        {"timestamp": 0, "high": 10.0, "low": 5.0},
        {"timestamp": 10, "high": 12.0, "low": 6.0},
        {"timestamp": 60, "high": 99.0, "low": 1.0},
    ]


def test_high_low_lints_clean() -> None:
    path = STUDIES / "high_low.py"
    assert studyhost.check(path.read_text(encoding="utf-8"), "high_low", str(path)) == []


def test_high_low_draws_previous_session() -> None:
    surface = FakeSurface()
    sessions = [{"relative_number": 1, "start_time": 0, "end_time": 50}]

    async def scenario() -> StudyManager:
        manager = StudyManager(RuntimeConfig(plugin_root=STUDIES, drain_yield_seconds=0.0))
        await manager.initialize(StudyContext(surfaces={"1m": surface}, timeframes=("1m",)))
        manager.update_all_studies({"1m": _candles()}, sessions)
        await manager.join()
        assert surface.items == {}  # disabled by default

        manager.update_study_settings("high_low", {"enabled": True, "style": {"thickness": 2}})
        return manager

    manager = asyncio.run(scenario())
    lines = sorted(surface.items.values(), key=lambda line: line.y1)
    assert [line.y1 for line in lines] == [5.0, 12.0]
    assert all(line.stroke_thickness == 2 for line in lines)

    manager.destroy_all_studies()
    assert surface.items == {}
