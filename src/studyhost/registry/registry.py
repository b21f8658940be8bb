"""Study registry: the table of validated studies and their call sequence.

The registry is the only component that calls lifecycle methods on a
study. Batch operations isolate failures per study: an exception raised
by one study is wrapped in a ``LifecycleCallError``, logged, kept in a
bounded history, and the batch moves on to the next study.

Example
-------
::

    from studyhost.registry import StudyRegistry

    registry = StudyRegistry()
    registry.register("high_low", study)
    registry.initialize_all(context)
    registry.update_all(chart_data, sessions)
    registry.destroy_all()
"""
from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Mapping
from typing import Any

from studyhost.errors import LifecycleCallError, RegistrationConflict
from studyhost.validator.interface import Study, check_interface

logger = logging.getLogger(__name__)

_ERROR_HISTORY = 100


class StudyRegistry:
    """Table of validated studies keyed by id.

    Parameters
    ----------
    name:
        A human-readable name for this registry (used in log messages).
    """

    def __init__(self, name: str = "studies") -> None:
        self._name = name
        self._studies: dict[str, Study] = {}
        self._active: set[str] = set()
        self._initialized = False
        self._call_errors: deque[LifecycleCallError] = deque(maxlen=_ERROR_HISTORY)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, study_id: str, study: object, replace: bool = True) -> bool:
        """Validate and store ``study`` under ``study_id``.

        Parameters
        ----------
        study_id:
            The unique key for this study.
        study:
            The evaluated plugin object.
        replace:
            When ``True`` (the default) an existing entry is overwritten,
            which is how reloads are expressed.

        Returns
        -------
        bool
            ``False`` if ``study`` does not implement the lifecycle
            interface; ``True`` once stored.

        Raises
        ------
        RegistrationConflict
            If ``study_id`` is taken and ``replace`` is ``False``.
        """
        check = check_interface(study)
        if not check.valid:
            logger.error(
                "Study %r does not implement the lifecycle interface; missing: %s",
                study_id,
                ", ".join(check.missing),
            )
            return False
        previous = self._studies.get(study_id)
        if previous is not None and previous is not study:
            if not replace:
                raise RegistrationConflict(study_id)
            logger.info("Replacing registered study %r", study_id)
            self._active.discard(study_id)
        self._studies[study_id] = study  # type: ignore[assignment]
        logger.debug("Registered study %r in registry %r", study_id, self._name)
        return True

    def unregister(self, study_id: str) -> None:
        """Destroy and remove the study registered under ``study_id``.

        ``destroy()`` is called defensively: an exception is logged and
        never propagated. Unknown ids are ignored.
        """
        study = self._studies.get(study_id)
        if study is None:
            return
        self._call(study_id, "destroy", study.destroy)
        del self._studies[study_id]
        self._active.discard(study_id)
        logger.info("Unregistered study %r", study_id)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, study_id: str) -> Study | None:
        return self._studies.get(study_id)

    def ids(self) -> list[str]:
        """Return registered ids in registration order."""
        return list(self._studies)

    def settings_of(self, study_id: str) -> dict[str, Any] | None:
        """Return the study's current settings, or ``None`` if unavailable."""
        study = self._studies.get(study_id)
        if study is None:
            return None
        ok, settings = self._call(study_id, "get_settings", study.get_settings)
        if not ok or not isinstance(settings, Mapping):
            return None
        return dict(settings)

    def is_enabled(self, study_id: str) -> bool:
        settings = self.settings_of(study_id)
        return bool(settings and settings.get("enabled"))

    def is_active(self, study_id: str) -> bool:
        """Whether ``initialize`` was called on the study and no ``destroy`` since."""
        return study_id in self._active

    def list_studies(self) -> list[dict[str, Any]]:
        """Return ``{id, config, enabled}`` for every registered study."""
        listing = []
        for study_id, study in self._studies.items():
            ok, config = self._call(study_id, "get_ui_config", study.get_ui_config)
            listing.append(
                {
                    "id": study_id,
                    "config": config if ok else None,
                    "enabled": self.is_enabled(study_id),
                }
            )
        return listing

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def call_errors(self) -> list[LifecycleCallError]:
        """Most recent captured lifecycle failures, oldest first."""
        return list(self._call_errors)

    def stats(self) -> dict[str, Any]:
        return {
            "total_registered": len(self._studies),
            "initialized": self._initialized,
            "enabled_count": sum(1 for study_id in self._studies if self.is_enabled(study_id)),
            "active_count": len(self._active),
            "call_errors": len(self._call_errors),
        }

    def __contains__(self, study_id: object) -> bool:
        return study_id in self._studies

    def __len__(self) -> int:
        return len(self._studies)

    def __repr__(self) -> str:
        return (
            f"StudyRegistry(name={self._name!r}, initialized={self._initialized}, "
            f"studies={self.ids()})"
        )

    # ------------------------------------------------------------------
    # Batch lifecycle
    # ------------------------------------------------------------------

    def initialize_all(self, context: Any) -> None:
        """Initialize every enabled study with ``context``."""
        logger.info("Initializing %d registered study(ies)", len(self._studies))
        for study_id in list(self._studies):
            if self.is_enabled(study_id):
                self.initialize_study(study_id, context)
        self._initialized = True

    def update_all(self, chart_data: Any, sessions: Any) -> None:
        """Deliver one update to every active, enabled study. No-op until initialized.

        Studies registered after ``initialize_all`` stay out of the fan-out
        until ``initialize_study`` activates them.
        """
        if not self._initialized:
            logger.debug("Registry %r not initialized; skipping update", self._name)
            return
        for study_id, study in list(self._studies.items()):
            if study_id in self._active and self.is_enabled(study_id):
                self._call(study_id, "update_data", study.update_data, chart_data, sessions)

    def destroy_all(self) -> None:
        """Destroy every study regardless of ``enabled``, then clear the table."""
        if self._studies:
            logger.info("Destroying %d registered study(ies)", len(self._studies))
        for study_id, study in list(self._studies.items()):
            self._call(study_id, "destroy", study.destroy)
        self._studies.clear()
        self._active.clear()
        self._initialized = False

    # ------------------------------------------------------------------
    # Single-study lifecycle
    # ------------------------------------------------------------------

    def initialize_study(self, study_id: str, context: Any) -> bool:
        study = self._studies.get(study_id)
        if study is None:
            return False
        self._active.add(study_id)
        ok, _ = self._call(study_id, "initialize", study.initialize, context)
        if ok:
            logger.info("Initialized study %r", study_id)
        return ok

    def destroy_study(self, study_id: str) -> bool:
        """Call ``destroy()`` on a study but keep it registered."""
        study = self._studies.get(study_id)
        if study is None:
            return False
        self._active.discard(study_id)
        ok, _ = self._call(study_id, "destroy", study.destroy)
        return ok

    def apply_settings(self, study_id: str, new_settings: Mapping[str, Any]) -> bool:
        study = self._studies.get(study_id)
        if study is None:
            return False
        ok, _ = self._call(study_id, "update_settings", study.update_settings, new_settings)
        return ok

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_settings(self) -> dict[str, dict[str, Any]]:
        """Return a flat ``id -> settings`` map for every registered study."""
        exported: dict[str, dict[str, Any]] = {}
        for study_id in self._studies:
            settings = self.settings_of(study_id)
            if settings is not None:
                exported[study_id] = settings
        return exported

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _call(
        self, study_id: str, method: str, func: Callable[..., Any], *args: Any
    ) -> tuple[bool, Any]:
        try:
            return True, func(*args)
        except Exception as exc:  # noqa: BLE001
            error = LifecycleCallError(study_id, method, exc)
            self._call_errors.append(error)
            logger.error("%s", error, exc_info=exc)
            return False, None
