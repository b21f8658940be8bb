"""Error taxonomy for studyhost.

Every error raised by the runtime derives from ``StudyHostError`` so that
hosts can catch the whole family in one clause. Most of these errors are
never seen by the host at all: the loader and registry catch them per
study, log them, and surface them only through status introspection.

    DiscoveryError        plugin root missing or unreadable
    EvaluationError       a plugin source failed to compile or execute
    ValidationError       an evaluated object lacks lifecycle methods
    LifecycleCallError    a study's lifecycle method raised
    RegistrationConflict  an id is already registered and replace=False
    ConfigError           a configuration file or value is invalid
"""
from __future__ import annotations

from pathlib import Path


class StudyHostError(Exception):
    """Base class for all studyhost errors."""


class DiscoveryError(StudyHostError):
    """Raised when the plugin root cannot be scanned."""

    def __init__(self, root: Path | str, reason: str) -> None:
        self.root = Path(root)
        self.reason = reason
        super().__init__(f"Cannot scan plugin root {str(self.root)!r}: {reason}")


class EvaluationError(StudyHostError):
    """Raised when plugin source fails to evaluate inside the sandbox.

    Parameters
    ----------
    study_id:
        Id of the plugin being evaluated.
    message:
        Human-readable description of the failure.
    lineno:
        Source line of the failure when known.
    """

    def __init__(self, study_id: str, message: str, lineno: int | None = None) -> None:
        self.study_id = study_id
        self.message = message
        self.lineno = lineno
        location = f" (line {lineno})" if lineno is not None else ""
        super().__init__(f"Study {study_id!r} failed to evaluate{location}: {message}")


class ValidationError(StudyHostError):
    """Raised when an object does not implement the lifecycle interface."""

    def __init__(self, study_id: str, missing: tuple[str, ...]) -> None:
        self.study_id = study_id
        self.missing = missing
        super().__init__(
            f"Study {study_id!r} is missing required method(s): {', '.join(missing)}"
        )


class LifecycleCallError(StudyHostError):
    """Wraps an exception raised by a study's lifecycle method.

    The registry creates these for logging and diagnostics; they are not
    propagated out of batch operations.
    """

    def __init__(self, study_id: str, method: str, cause: BaseException) -> None:
        self.study_id = study_id
        self.method = method
        self.cause = cause
        super().__init__(
            f"Study {study_id!r} raised in {method}(): "
            f"{type(cause).__name__}: {cause}"
        )


class RegistrationConflict(StudyHostError):
    """Raised when registering an id that exists and replacement is disabled."""

    def __init__(self, study_id: str) -> None:
        self.study_id = study_id
        super().__init__(
            f"Study {study_id!r} is already registered. "
            "Unregister it first or register with replace=True."
        )


class ConfigError(StudyHostError):
    """Raised when runtime configuration cannot be loaded."""
