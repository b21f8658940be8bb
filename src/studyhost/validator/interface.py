"""Lifecycle interface check for evaluated study objects.

A study is any object exposing the six lifecycle callables below. The
check is a plain attribute inspection; it never calls the methods. A
study that fails it is never registered and never receives a lifecycle
call.

Usage
-----
::

    from studyhost.validator import check_interface

    result = check_interface(candidate)
    if not result.valid:
        print("missing:", ", ".join(result.missing))
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from studyhost.errors import ValidationError

REQUIRED_METHODS: tuple[str, ...] = (
    "initialize",
    "update_data",
    "destroy",
    "get_settings",
    "update_settings",
    "get_ui_config",
)


@runtime_checkable
class Study(Protocol):
    """Structural type of a study plugin."""

    def initialize(self, context: Any) -> None: ...

    def update_data(self, chart_data: Mapping[str, Any], sessions: list[Any]) -> None: ...

    def destroy(self) -> None: ...

    def get_settings(self) -> dict[str, Any]: ...

    def update_settings(self, new_settings: Mapping[str, Any]) -> None: ...

    def get_ui_config(self) -> dict[str, Any]: ...


@dataclass(frozen=True)
class InterfaceCheck:
    """Outcome of ``check_interface``.

    Parameters
    ----------
    valid:
        True when every lifecycle method is present and callable.
    missing:
        Names of absent or non-callable methods, in canonical order.
    """

    valid: bool
    missing: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return self.valid


def check_interface(candidate: object) -> InterfaceCheck:
    """Check ``candidate`` against the lifecycle interface.

    Parameters
    ----------
    candidate:
        The object produced by sandbox evaluation.

    Returns
    -------
    InterfaceCheck
        ``valid`` plus the list of missing method names.
    """
    if candidate is None:
        return InterfaceCheck(valid=False, missing=REQUIRED_METHODS)
    missing = tuple(
        name for name in REQUIRED_METHODS if not callable(getattr(candidate, name, None))
    )
    return InterfaceCheck(valid=not missing, missing=missing)


def require_interface(candidate: object, study_id: str) -> Study:
    """Return ``candidate`` typed as a ``Study`` or raise ``ValidationError``.

    Raises
    ------
    ValidationError
        If any lifecycle method is missing.
    """
    result = check_interface(candidate)
    if not result.valid:
        raise ValidationError(study_id, result.missing)
    return candidate  # type: ignore[return-value]
