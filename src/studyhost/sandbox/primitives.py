"""Drawing primitives handed to plugin code.

Studies never import a rendering library. Instead they build these plain
descriptions and pass them to the surface handle they received in their
context (``surface.add(primitive)`` / ``surface.remove(primitive)``). The
surface implementation decides how to draw them; the runtime itself never
inspects surface contents.

Keyword names follow the surface's conventions (``stroke``,
``stroke_thickness``, ``label_placement`` and so on). Unknown keywords are
kept in ``extra`` so surfaces can support options this module does not
model yet.
"""
from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

_ids = itertools.count(1)


def _next_id(prefix: str) -> str:
    return f"{prefix}_{next(_ids)}"


class LabelPlacement(Enum):
    """Where a line annotation draws its axis label."""

    AUTO = "auto"
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"
    TOP_LEFT = "top_left"
    TOP_RIGHT = "top_right"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM_RIGHT = "bottom_right"
    AXIS = "axis"


class HorizontalAnchor(Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class VerticalAnchor(Enum):
    TOP = "top"
    CENTER = "center"
    BOTTOM = "bottom"


class AnnotationLayer(Enum):
    """Z-order layer relative to the chart series."""

    BELOW_CHART = "below_chart"
    ABOVE_CHART = "above_chart"
    BACKGROUND = "background"


class CoordinateMode(Enum):
    """How x/y values are interpreted by the surface."""

    DATA_VALUE = "data_value"
    RELATIVE = "relative"
    PIXEL = "pixel"


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class NumberRange:
    min: float
    max: float

    def __post_init__(self) -> None:
        if self.min > self.max:
            raise ValueError(f"NumberRange min {self.min} is greater than max {self.max}")

    @property
    def span(self) -> float:
        return self.max - self.min

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


@dataclass
class Primitive:
    """Common fields shared by every drawing primitive."""

    id: str = ""
    stroke: str = "#FFFFFF"
    stroke_thickness: float = 1.0
    stroke_dash_array: list[float] = field(default_factory=list)
    layer: AnnotationLayer = AnnotationLayer.ABOVE_CHART
    coordinate_mode: CoordinateMode = CoordinateMode.DATA_VALUE
    x_axis_id: str = "xAxis"
    y_axis_id: str = "yAxis"
    extra: dict[str, Any] = field(default_factory=dict)

    kind = "primitive"

    def __post_init__(self) -> None:
        if not self.id:
            self.id = _next_id(self.kind)

    def to_dict(self) -> dict[str, Any]:
        """Return a plain-data description suitable for a surface bridge."""
        data: dict[str, Any] = {"kind": self.kind}
        for key, value in self.__dict__.items():
            if key == "extra":
                continue
            data[key] = value.value if isinstance(value, Enum) else value
        data.update(self.extra)
        return data


@dataclass
class HorizontalLine(Primitive):
    y1: float = 0.0
    x1: float | None = None
    x2: float | None = None
    show_label: bool = False
    label_placement: LabelPlacement = LabelPlacement.AXIS
    label_value: str = ""
    axis_font_size: int = 10

    kind = "horizontal_line"


@dataclass
class VerticalLine(Primitive):
    x1: float = 0.0
    y1: float | None = None
    y2: float | None = None
    show_label: bool = False
    label_placement: LabelPlacement = LabelPlacement.AXIS
    label_value: str = ""

    kind = "vertical_line"


@dataclass
class Line(Primitive):
    x1: float = 0.0
    y1: float = 0.0
    x2: float = 0.0
    y2: float = 0.0

    kind = "line"


@dataclass
class Box(Primitive):
    x1: float = 0.0
    y1: float = 0.0
    x2: float = 0.0
    y2: float = 0.0
    fill: str = "#FFFFFF22"

    kind = "box"


@dataclass
class Text(Primitive):
    x1: float = 0.0
    y1: float = 0.0
    text: str = ""
    font_size: int = 12
    horizontal_anchor: HorizontalAnchor = HorizontalAnchor.LEFT
    vertical_anchor: VerticalAnchor = VerticalAnchor.CENTER

    kind = "text"


@dataclass
class AxisMarker(Primitive):
    y1: float = 0.0
    fill: str = "#000000"
    font_size: int = 10
    format_label: str = ""

    kind = "axis_marker"


PRIMITIVE_TYPES: tuple[type[Primitive], ...] = (
    HorizontalLine,
    VerticalLine,
    Line,
    Box,
    Text,
    AxisMarker,
)

ENUM_TYPES: tuple[type[Enum], ...] = (
    LabelPlacement,
    HorizontalAnchor,
    VerticalAnchor,
    AnnotationLayer,
    CoordinateMode,
)
