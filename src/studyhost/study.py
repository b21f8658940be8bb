"""Authoring kit available to study plugins.

``StudyBase`` supplies the settings half of the lifecycle interface so a
plugin only has to draw: settings start from the defaults declared in
``get_ui_config()`` and ``update_settings`` merges partial updates,
flattening section-keyed sub-mappings the settings form may send.

``study_utils`` holds helpers for the candle/session structures studies
receive. Both are injected into the sandbox; plugins do not import them.

Example plugin::

    class HighLow(StudyBase):
        def get_ui_config(self):
            return {"display_name": "High/Low", "settings_schema": [...]}

        def initialize(self, context): ...
        def update_data(self, chart_data, sessions): ...
        def destroy(self): ...

    __study__ = HighLow
"""
from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from types import SimpleNamespace
from typing import Any

from studyhost.validator.schema import ControlType, extract_defaults


class StudyBase(ABC):
    """Base class implementing settings handling for study plugins."""

    def __init__(self) -> None:
        self.settings: dict[str, Any] = self.default_settings()
        self.context: Any = None

    def default_settings(self) -> dict[str, Any]:
        """Return the defaults declared in the UI schema."""
        config = self.get_ui_config()
        return extract_defaults(config.get("settings_schema", []))

    def get_settings(self) -> dict[str, Any]:
        return dict(self.settings)

    def update_settings(self, new_settings: Mapping[str, Any]) -> None:
        section_keys = self._section_keys()
        flattened: dict[str, Any] = {}
        for key, value in new_settings.items():
            if key in section_keys and isinstance(value, Mapping):
                flattened.update(value)
            else:
                flattened[key] = value
        self.settings = {**self.settings, **flattened}
        self.on_settings_changed()

    def on_settings_changed(self) -> None:
        """Hook called after every settings merge. Override to redraw."""

    @property
    def enabled(self) -> bool:
        return bool(self.settings.get("enabled", False))

    def _section_keys(self) -> set[str]:
        schema = self.get_ui_config().get("settings_schema", [])
        return {
            item["key"]
            for item in schema
            if isinstance(item, Mapping)
            and item.get("type") == ControlType.SECTION.value
            and item.get("key")
        }

    @abstractmethod
    def get_ui_config(self) -> dict[str, Any]: ...

    @abstractmethod
    def initialize(self, context: Any) -> None: ...

    @abstractmethod
    def update_data(self, chart_data: Mapping[str, Any], sessions: list[Any]) -> None: ...

    @abstractmethod
    def destroy(self) -> None: ...


def _field(candle: Any, name: str) -> Any:
    if isinstance(candle, Mapping):
        return candle[name]
    return getattr(candle, name)


def latest_candle(data: Sequence[Any] | None) -> Any:
    return data[-1] if data else None


def session_candles(data: Sequence[Any] | None, session: Any) -> list[Any]:
    """Candles whose timestamp falls inside ``session``."""
    if not data or not session:
        return []
    start = _field(session, "start_time")
    end = session.get("end_time") if isinstance(session, Mapping) else getattr(session, "end_time", None)
    return [
        c
        for c in data
        if _field(c, "timestamp") >= start and (end is None or _field(c, "timestamp") <= end)
    ]


def sma(data: Sequence[Any] | None, period: int, field: str = "close") -> list[dict[str, Any]]:
    """Simple moving average as ``[{"timestamp", "value"}]``."""
    if not data or period <= 0 or len(data) < period:
        return []
    result = []
    window = sum(_field(c, field) for c in data[:period])
    result.append({"timestamp": _field(data[period - 1], "timestamp"), "value": window / period})
    for i in range(period, len(data)):
        window += _field(data[i], field) - _field(data[i - period], field)
        result.append({"timestamp": _field(data[i], "timestamp"), "value": window / period})
    return result


def find_session(sessions: Sequence[Any] | None, relative_number: int) -> Any:
    for session in sessions or ():
        if _field(session, "relative_number") == relative_number:
            return session
    return None


def annotation_id(study_id: str, kind: str, timeframe: str) -> str:
    return f"{study_id}_{kind}_{time.time_ns()}_{timeframe}"


study_utils = SimpleNamespace(
    latest_candle=latest_candle,
    session_candles=session_candles,
    sma=sma,
    find_session=find_session,
    annotation_id=annotation_id,
)
