"""Unit tests for studyhost.validator.interface."""
from __future__ import annotations

from typing import Any

import pytest

from studyhost.errors import ValidationError
from studyhost.validator.interface import (
    REQUIRED_METHODS,
    Study,
    check_interface,
    require_interface,
)


class Complete:
    def initialize(self, context: Any) -> None: ...

    def update_data(self, chart_data: Any, sessions: Any) -> None: ...

    def destroy(self) -> None: ...

    def get_settings(self) -> dict[str, Any]:
        return {}

    def update_settings(self, new_settings: Any) -> None: ...

    def get_ui_config(self) -> dict[str, Any]:
        return {}


class MissingDestroy(Complete):
    destroy = None  # type: ignore[assignment]


class TestCheckInterface:
    def test_complete_object_is_valid(self) -> None:
        result = check_interface(Complete())
        assert result.valid
        assert result.missing == ()
        assert bool(result) is True

    def test_none_misses_everything(self) -> None:
        result = check_interface(None)
        assert not result
        assert result.missing == REQUIRED_METHODS

    def test_non_callable_attribute_counts_as_missing(self) -> None:
        assert check_interface(MissingDestroy()).missing == ("destroy",)

    def test_missing_methods_keep_canonical_order(self) -> None:
        class OnlyInit:
            def initialize(self, context: Any) -> None: ...

        assert check_interface(OnlyInit()).missing == REQUIRED_METHODS[1:]

    def test_plain_dict_is_not_a_study(self) -> None:
        assert not check_interface({"initialize": lambda ctx: None})


class TestRequireInterface:
    def test_returns_the_candidate(self) -> None:
        study = Complete()
        assert require_interface(study, "s") is study

    def test_raises_with_missing_names(self) -> None:
        with pytest.raises(ValidationError) as excinfo:
            require_interface(MissingDestroy(), "broken")
        assert excinfo.value.study_id == "broken"
        assert excinfo.value.missing == ("destroy",)


def test_protocol_matches_structurally() -> None:
    assert isinstance(Complete(), Study)
