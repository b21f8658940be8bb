"""Unit tests for studyhost.sandbox.primitives."""
from __future__ import annotations

import pytest

from studyhost.sandbox.primitives import (
    ENUM_TYPES,
    PRIMITIVE_TYPES,
    AnnotationLayer,
    Box,
    HorizontalLine,
    LabelPlacement,
    NumberRange,
    Point,
    Text,
)


class TestPrimitiveIds:
    def test_ids_are_assigned_and_unique(self) -> None:
        first, second = HorizontalLine(y1=1.0), HorizontalLine(y1=2.0)
        assert first.id.startswith("horizontal_line_")
        assert first.id != second.id

    def test_explicit_id_is_kept(self) -> None:
        assert Box(id="session_box").id == "session_box"


class TestToDict:
    def test_enum_values_are_flattened(self) -> None:
        line = HorizontalLine(y1=101.5, label_placement=LabelPlacement.TOP_RIGHT)
        data = line.to_dict()
        assert data["kind"] == "horizontal_line"
        assert data["y1"] == 101.5
        assert data["label_placement"] == "top_right"
        assert data["layer"] == AnnotationLayer.ABOVE_CHART.value

    def test_extra_options_are_merged(self) -> None:
        data = Text(text="PDH", extra={"opacity": 0.5}).to_dict()
        assert data["opacity"] == 0.5
        assert "extra" not in data


class TestValueTypes:
    def test_point_is_frozen(self) -> None:
        point = Point(1.0, 2.0)
        with pytest.raises(AttributeError):
            point.x = 5.0  # type: ignore[misc]

    def test_number_range_span_and_contains(self) -> None:
        rng = NumberRange(10.0, 20.0)
        assert rng.span == 10.0
        assert rng.contains(15.0)
        assert not rng.contains(25.0)

    def test_number_range_rejects_inverted_bounds(self) -> None:
        with pytest.raises(ValueError):
            NumberRange(5.0, 1.0)


def test_exported_type_tables() -> None:
    assert HorizontalLine in PRIMITIVE_TYPES
    assert LabelPlacement in ENUM_TYPES
