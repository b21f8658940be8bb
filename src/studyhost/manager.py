"""Host-facing facade wiring config, registry, loader, coordinator and watcher.

Usage
-----
::

    import asyncio
    from studyhost import StudyContext, StudyManager

    async def main():
        manager = StudyManager.from_config()
        await manager.initialize(StudyContext(surfaces=refs, timeframes=("1m",)))
        manager.start_watching()
        manager.update_all_studies(chart_data, sessions)
        await manager.join()
        manager.destroy_all_studies()

    asyncio.run(main())
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from studyhost.config import RuntimeConfig, load_config
from studyhost.lifecycle.context import StudyContext
from studyhost.lifecycle.coordinator import LifecycleCoordinator
from studyhost.loader.loader import StudyLoader
from studyhost.registry.registry import StudyRegistry
from studyhost.sandbox.evaluator import SandboxEvaluator
from studyhost.watcher.watcher import StudyWatcher

logger = logging.getLogger(__name__)


class StudyManager:
    """Owns one complete study runtime.

    Parameters
    ----------
    config:
        Runtime configuration; defaults to ``RuntimeConfig()``.
    extra_bindings:
        Additional names injected into every plugin's sandbox.
    """

    def __init__(
        self,
        config: RuntimeConfig | None = None,
        extra_bindings: Mapping[str, Any] | None = None,
    ) -> None:
        self.config = config or RuntimeConfig()
        self.registry = StudyRegistry()
        self.evaluator = SandboxEvaluator(extra_bindings)
        self.loader = StudyLoader(
            self.config.plugin_root,
            self.registry,
            self.evaluator,
            extensions=self.config.extensions,
            ignore_hidden=self.config.ignore_hidden,
        )
        self.coordinator = LifecycleCoordinator(
            self.registry,
            self.loader,
            drain_yield_seconds=self.config.drain_yield_seconds,
        )
        self.watcher = StudyWatcher(
            self.loader,
            self.registry,
            debounce_seconds=self.config.watch_debounce_seconds,
        )
        self._unsubscribe = self.watcher.subscribe(self.coordinator.reintegrate)

    @classmethod
    def from_config(
        cls,
        path: str | Path | None = None,
        extra_bindings: Mapping[str, Any] | None = None,
        **overrides: Any,
    ) -> StudyManager:
        """Build a manager from ``load_config(path)`` plus keyword overrides."""
        config = load_config(path).with_overrides(**overrides)
        return cls(config, extra_bindings)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self, context: StudyContext) -> None:
        await self.coordinator.initialize(context)

    def update_all_studies(self, chart_data: Any, sessions: Any = None) -> bool:
        return self.coordinator.update_data(chart_data, sessions)

    async def join(self) -> None:
        await self.coordinator.join()

    def destroy_all_studies(self) -> None:
        self.coordinator.destroy()

    async def reset(self, context: StudyContext) -> None:
        await self.coordinator.reset(context)

    async def reload_studies(self) -> None:
        await self.coordinator.reload_studies()

    def force_update(self) -> bool:
        return self.coordinator.force_update()

    async def close(self) -> None:
        """Stop watching and destroy every study."""
        self.stop_watching()
        await self.coordinator.join()
        self.coordinator.destroy()

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def update_study_settings(self, study_id: str, new_settings: Mapping[str, Any]) -> bool:
        return self.coordinator.update_study_settings(study_id, new_settings)

    def export_settings(self) -> dict[str, dict[str, Any]]:
        return self.coordinator.export_settings()

    def import_settings(self, settings: Mapping[str, Mapping[str, Any]]) -> list[str]:
        return self.coordinator.import_settings(settings)

    def get_available_studies(self) -> list[dict[str, Any]]:
        return self.coordinator.study_details()

    # ------------------------------------------------------------------
    # Hot reload
    # ------------------------------------------------------------------

    def start_watching(self) -> None:
        """Start the watcher on the running event loop."""
        self.watcher.start()

    def stop_watching(self) -> None:
        self.watcher.stop()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def status(self) -> dict[str, Any]:
        """Return loader, registry and coordinator status. Never raises."""
        try:
            loading = self.loader.status()
            return {
                "loaded_count": loading.loaded_count,
                "error_count": loading.error_count,
                "errors": dict(loading.errors),
                "plugin_root": loading.plugin_root,
                "loaded_ids": list(loading.loaded_ids),
                "watching": self.watcher.is_running,
                "lifecycle": self.coordinator.status(),
            }
        except Exception as exc:  # noqa: BLE001
            logger.exception("Failed to collect study status")
            return {
                "loaded_count": 0,
                "error_count": 0,
                "errors": {},
                "plugin_root": str(self.config.plugin_root),
                "error": str(exc),
            }

    def log_status(self) -> None:
        status = self.status()
        logger.info(
            "Studies under %s: %d loaded, %d failed, lifecycle %s",
            status["plugin_root"],
            status["loaded_count"],
            status["error_count"],
            status.get("lifecycle", {}).get("state", "unknown"),
        )
        for study_id, message in status["errors"].items():
            logger.warning("  %s: %s", study_id, message)

    def __repr__(self) -> str:
        return f"StudyManager(root={str(self.config.plugin_root)!r}, {self.coordinator!r})"
