"""Lifecycle coordinator: owns the runtime context and sequences every
call into the study registry.

The coordinator runs on a single asyncio event loop. Updates are queued
and delivered by one drain task, one envelope at a time, so no study ever
sees two overlapping ``update_data`` calls and every enabled study sees
the envelopes in arrival order. Between envelopes the drain yields to the
loop, which is where watcher reintegration and settings changes get their
turn.

Usage
-----
::

    coordinator = LifecycleCoordinator(registry, loader)
    await coordinator.initialize(StudyContext(surfaces=refs, timeframes=("1m",)))
    coordinator.update_data(chart_data, sessions)
    await coordinator.join()
    coordinator.destroy()
"""
from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from studyhost.lifecycle.context import (
    CoordinatorState,
    ReintegrationRequest,
    StudyContext,
    UpdateEnvelope,
)
from studyhost.loader.loader import StudyLoader
from studyhost.registry.registry import StudyRegistry

logger = logging.getLogger(__name__)

DEFAULT_DRAIN_YIELD_SECONDS = 0.01


def requested_enabled(new_settings: Mapping[str, Any]) -> bool | None:
    """Return the ``enabled`` value a settings payload asks for, if any.

    A top-level key wins; otherwise the first section sub-mapping that
    carries ``enabled`` is used. ``None`` means the payload leaves it as is.
    """
    if "enabled" in new_settings:
        return bool(new_settings["enabled"])
    for value in new_settings.values():
        if isinstance(value, Mapping) and "enabled" in value:
            return bool(value["enabled"])
    return None


class LifecycleCoordinator:
    """Sequences initialize/update/destroy for all registered studies.

    Parameters
    ----------
    registry:
        The registry holding validated studies.
    loader:
        Loader used to populate the registry on ``initialize``.
    drain_yield_seconds:
        Pause between two queued envelopes.
    """

    def __init__(
        self,
        registry: StudyRegistry,
        loader: StudyLoader,
        drain_yield_seconds: float = DEFAULT_DRAIN_YIELD_SECONDS,
    ) -> None:
        self._registry = registry
        self._loader = loader
        self._drain_yield = drain_yield_seconds
        self._state = CoordinatorState.UNINITIALIZED
        self._context: StudyContext | None = None
        self._queue: deque[UpdateEnvelope] = deque()
        self._drain_task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state.accepts_updates

    @property
    def context(self) -> StudyContext | None:
        """The context studies are initialized with; ``None`` when not held."""
        return self._context

    @property
    def pending_updates(self) -> int:
        return len(self._queue)

    @property
    def is_processing(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    # ------------------------------------------------------------------
    # Initialize / destroy
    # ------------------------------------------------------------------

    async def initialize(self, context: StudyContext) -> None:
        """Load studies and initialize every enabled one with ``context``.

        Calling ``initialize`` while already initializing or ready is
        logged and ignored; use ``reset`` to swap the context.
        """
        if self._state in (
            CoordinatorState.INITIALIZING,
            CoordinatorState.READY,
            CoordinatorState.UPDATING,
        ):
            logger.warning("Coordinator already %s; ignoring initialize", self._state.value)
            return

        logger.info("Initializing study lifecycle for timeframes %s", list(context.timeframes))
        self._state = CoordinatorState.INITIALIZING
        self._context = context
        self._loader.load_all()

        # loading is I/O; let pending loop work (watcher events) run
        await asyncio.sleep(0)
        if self._state is not CoordinatorState.INITIALIZING:
            logger.info("Initialization superseded (state is now %s)", self._state.value)
            return

        self._registry.initialize_all(self._context)
        self._state = CoordinatorState.READY
        logger.info("Study lifecycle ready: %s", self._registry.stats())

    def destroy(self) -> None:
        """Discard pending updates, destroy every study and drop the context."""
        logger.info("Destroying study lifecycle")
        self._discard_queue()
        self._registry.destroy_all()
        self._loader.clear()
        self._context = None
        self._state = CoordinatorState.DESTROYED

    async def reset(self, context: StudyContext) -> None:
        """Destroy, then initialize again with a new context."""
        logger.info("Resetting study lifecycle")
        self.destroy()
        await self.initialize(context)

    async def reload_studies(self) -> None:
        """Reload every plugin from disk, keeping the held context.

        Studies are re-initialized only if the coordinator was ready.
        """
        was_ready = self._state.accepts_updates
        self._discard_queue()
        self._loader.reload_all()
        await asyncio.sleep(0)
        if was_ready and self._context is not None:
            self._registry.initialize_all(self._context)
            self._state = CoordinatorState.READY

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def update_data(self, chart_data: Any, sessions: Any = None) -> bool:
        """Queue one data update for ordered delivery.

        Must be called from the coordinator's event loop.

        Returns
        -------
        bool
            ``False`` if the update was dropped because the coordinator
            is not ready.
        """
        if not self._state.accepts_updates:
            logger.warning("Study lifecycle is %s; dropping data update", self._state.value)
            return False
        self._queue.append(UpdateEnvelope(chart_data, sessions if sessions is not None else []))
        logger.debug("Queued update; %d pending", len(self._queue))
        if not self.is_processing:
            self._drain_task = asyncio.get_running_loop().create_task(self._drain())
        return True

    def force_update(self) -> bool:
        """Queue a redelivery of the current data snapshot."""
        if self._context is None or not self._state.accepts_updates:
            logger.warning("Cannot force update; study lifecycle is %s", self._state.value)
            return False
        return self.update_data(self._context.chart_data, self._context.sessions)

    async def join(self) -> None:
        """Wait until every queued update has been delivered."""
        task = self._drain_task
        while task is not None and not task.done():
            await asyncio.wait({task})
            task = self._drain_task

    async def _drain(self) -> None:
        self._state = CoordinatorState.UPDATING
        try:
            while self._queue and self._state is CoordinatorState.UPDATING:
                envelope = self._queue.popleft()
                if self._context is not None:
                    self._context = self._context.with_data(envelope.chart_data, envelope.sessions)
                self._registry.update_all(envelope.chart_data, envelope.sessions)
                if self._queue:
                    await asyncio.sleep(self._drain_yield)
        finally:
            if self._state is CoordinatorState.UPDATING:
                self._state = CoordinatorState.READY

    def _discard_queue(self) -> None:
        if self._queue:
            logger.info("Discarding %d pending update(s)", len(self._queue))
        self._queue.clear()
        task, self._drain_task = self._drain_task, None
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def update_study_settings(self, study_id: str, new_settings: Mapping[str, Any]) -> bool:
        """Apply settings and drive the matching enable/disable transition.

        ===============  ==============================================
        transition       calls
        ===============  ==============================================
        off → on         ``update_settings`` then ``initialize``
        on → off         ``destroy`` then ``update_settings``
        on → on          ``update_settings``
        off → off        ``update_settings``
        ===============  ==============================================

        A partial update without ``enabled`` keeps the previous value.
        ``enabled`` may also arrive inside a section sub-mapping, the way
        the settings form sends sectioned schemas. The study's settings
        after the update are authoritative: a study whose ``enabled`` ends
        up differing from whether it is active is initialized or destroyed
        to match.

        While the coordinator is not ready only ``update_settings`` runs;
        the study picks up its state at the next ``initialize``.

        Returns
        -------
        bool
            ``False`` for unknown ids or when a study call failed.
        """
        if study_id not in self._registry:
            logger.warning("Study %r not found for settings update", study_id)
            return False

        if not self._state.accepts_updates:
            logger.debug("Lifecycle %s; storing settings for %r only", self._state.value, study_id)
            return self._registry.apply_settings(study_id, new_settings)

        ok = True
        was_active = self._registry.is_active(study_id)
        requested = requested_enabled(new_settings)
        if was_active and requested is False:
            logger.info("Disabling study %r", study_id)
            ok = self._registry.destroy_study(study_id)
        ok = self._registry.apply_settings(study_id, new_settings) and ok

        now_enabled = self._registry.is_enabled(study_id)
        if now_enabled and not self._registry.is_active(study_id):
            logger.info("Enabling study %r", study_id)
            ok = self._registry.initialize_study(study_id, self._context) and ok
        elif not now_enabled and self._registry.is_active(study_id):
            logger.info("Disabling study %r after settings update", study_id)
            ok = self._registry.destroy_study(study_id) and ok
        return ok

    def export_settings(self) -> dict[str, dict[str, Any]]:
        return self._registry.export_settings()

    def import_settings(self, settings: Mapping[str, Mapping[str, Any]]) -> list[str]:
        """Replay exported settings for registered ids; unknown ids are ignored.

        Returns
        -------
        list[str]
            Ids the settings were applied to.
        """
        applied = []
        for study_id, study_settings in settings.items():
            if study_id not in self._registry:
                logger.debug("Ignoring settings for unknown study %r", study_id)
                continue
            if not isinstance(study_settings, Mapping):
                logger.warning("Ignoring non-mapping settings for study %r", study_id)
                continue
            if self.update_study_settings(study_id, study_settings):
                applied.append(study_id)
        return applied

    # ------------------------------------------------------------------
    # Hot reload
    # ------------------------------------------------------------------

    def reintegrate(self, request: ReintegrationRequest) -> bool:
        """Second phase of a hot reload.

        Re-registers the reloaded study and initializes it right away when
        the coordinator is ready and the study is enabled. Otherwise the
        study stays dormant until the next ``initialize``/``reset``.

        Returns
        -------
        bool
            ``True`` if the study was initialized now.
        """
        descriptor = self._loader.descriptor(request.study_id)
        if descriptor is None or descriptor.study is not request.study:
            logger.info("Ignoring stale reintegration request for %r", request.study_id)
            return False
        if not self._registry.register(request.study_id, request.study):
            return False
        if self._state.accepts_updates and self._registry.is_enabled(request.study_id):
            logger.info("Reintegrating hot-reloaded study %r", request.study_id)
            return self._registry.initialize_study(request.study_id, self._context)
        logger.info(
            "Deferring activation of hot-reloaded study %r (lifecycle %s)",
            request.study_id,
            self._state.value,
        )
        return False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def status(self) -> dict[str, Any]:
        """Return a diagnostic snapshot. Never raises."""
        try:
            context = self._context
            return {
                "state": self._state.value,
                "initialized": self._state.accepts_updates,
                "surfaces_available": bool(context and context.surfaces),
                "timeframes": list(context.timeframes) if context else [],
                "data_available": bool(context and context.chart_data),
                "sessions_available": bool(context and context.sessions),
                "update_queue_length": len(self._queue),
                "is_processing_updates": self.is_processing,
                "registry": self._registry.stats(),
                "loader": self._loader.status().to_dict(),
            }
        except Exception as exc:  # noqa: BLE001
            logger.exception("Failed to collect lifecycle status")
            return {"state": self._state.value, "error": str(exc)}

    def study_details(self) -> list[dict[str, Any]]:
        details = []
        for entry in self._registry.list_studies():
            config = entry["config"] if isinstance(entry["config"], Mapping) else {}
            details.append(
                {
                    "id": entry["id"],
                    "name": config.get("display_name", entry["id"]),
                    "description": config.get("description", ""),
                    "category": config.get("category", ""),
                    "settings": self._registry.settings_of(entry["id"]),
                    "enabled": entry["enabled"],
                }
            )
        return details

    def export_state(self) -> dict[str, Any]:
        return {
            "state": self._state.value,
            "timeframes": list(self._context.timeframes) if self._context else [],
            "studies": self.study_details(),
            "status": self.status(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def __repr__(self) -> str:
        return (
            f"LifecycleCoordinator(state={self._state.value}, "
            f"pending={len(self._queue)}, studies={len(self._registry)})"
        )
