"""Unit tests for studyhost.errors."""
from __future__ import annotations

from pathlib import Path

import pytest

from studyhost.errors import (
    ConfigError,
    DiscoveryError,
    EvaluationError,
    LifecycleCallError,
    RegistrationConflict,
    StudyHostError,
    ValidationError,
)


class TestErrorHierarchy:
    @pytest.mark.parametrize(
        "error",
        [
            DiscoveryError("/nowhere", "directory does not exist"),
            EvaluationError("s", "boom"),
            ValidationError("s", ("destroy",)),
            LifecycleCallError("s", "initialize", RuntimeError("x")),
            RegistrationConflict("s"),
            ConfigError("bad"),
        ],
    )
    def test_every_error_is_a_studyhost_error(self, error: StudyHostError) -> None:
        assert isinstance(error, StudyHostError)


class TestDiscoveryError:
    def test_root_is_a_path(self) -> None:
        error = DiscoveryError("/nowhere", "directory does not exist")
        assert error.root == Path("/nowhere")

    def test_message_contains_reason(self) -> None:
        error = DiscoveryError("/nowhere", "directory does not exist")
        assert "directory does not exist" in str(error)


class TestEvaluationError:
    def test_attributes(self) -> None:
        error = EvaluationError("high_low", "syntax error", lineno=3)
        assert error.study_id == "high_low"
        assert error.message == "syntax error"
        assert error.lineno == 3

    def test_message_includes_line_when_known(self) -> None:
        assert "(line 3)" in str(EvaluationError("s", "boom", lineno=3))

    def test_message_omits_line_when_unknown(self) -> None:
        assert "line" not in str(EvaluationError("s", "boom"))


class TestValidationError:
    def test_lists_missing_methods(self) -> None:
        error = ValidationError("s", ("destroy", "get_ui_config"))
        assert error.missing == ("destroy", "get_ui_config")
        assert "destroy, get_ui_config" in str(error)


class TestLifecycleCallError:
    def test_wraps_cause(self) -> None:
        cause = ValueError("bad candle")
        error = LifecycleCallError("s", "update_data", cause)
        assert error.cause is cause
        assert error.method == "update_data"
        assert "ValueError: bad candle" in str(error)


class TestRegistrationConflict:
    def test_message_names_the_id(self) -> None:
        assert "'dup'" in str(RegistrationConflict("dup"))
