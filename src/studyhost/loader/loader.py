"""Study loader: turns plugin files into registered studies.

The loader runs the per-file pipeline

    read → sandbox evaluate → interface check → registry.register

and records the outcome against the file's study id. ``load_all`` never
raises: a missing plugin root is logged and treated as an empty plugin
set, and every per-file failure is kept in ``status().errors`` while the
other files load normally.

Usage
-----
::

    from studyhost.loader import StudyLoader
    from studyhost.registry import StudyRegistry
    from studyhost.sandbox import SandboxEvaluator

    registry = StudyRegistry()
    loader = StudyLoader("studies", registry, SandboxEvaluator())
    status = loader.load_all()
    print(status.loaded_count, status.errors)
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from studyhost.errors import DiscoveryError, EvaluationError, ValidationError
from studyhost.loader.discovery import DEFAULT_EXTENSIONS, derive_study_id, discover_sources
from studyhost.registry.registry import StudyRegistry
from studyhost.sandbox.evaluator import SandboxEvaluator
from studyhost.sandbox.timers import TimerScope
from studyhost.validator.interface import require_interface

logger = logging.getLogger(__name__)


@dataclass
class PluginDescriptor:
    """A successfully loaded plugin file.

    Parameters
    ----------
    id:
        Study id derived from ``source_path``.
    source_path:
        File the study was loaded from.
    loaded_at:
        UTC time of the load.
    raw_source:
        The source text that was evaluated.
    study:
        The registered study object.
    timers:
        Timer scope handed to the plugin's sandbox.
    """

    id: str
    source_path: Path
    loaded_at: datetime
    raw_source: str
    study: Any = field(repr=False)
    timers: TimerScope = field(repr=False)


@dataclass(frozen=True)
class LoadingStatus:
    """Aggregate outcome of the loader's current state."""

    loaded_count: int
    error_count: int
    loaded_ids: tuple[str, ...]
    errors: dict[str, str]
    plugin_root: str
    is_loaded: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "loaded_count": self.loaded_count,
            "error_count": self.error_count,
            "loaded_ids": list(self.loaded_ids),
            "errors": dict(self.errors),
            "plugin_root": self.plugin_root,
            "is_loaded": self.is_loaded,
        }


class StudyLoader:
    """Discovers, evaluates, validates and registers study plugins.

    Parameters
    ----------
    root:
        Plugin root directory, scanned recursively.
    registry:
        Registry successful studies are registered into.
    evaluator:
        Sandbox used to evaluate plugin source.
    extensions:
        Accepted source file suffixes.
    ignore_hidden:
        Skip dotfiles and dot-directories.
    """

    def __init__(
        self,
        root: Path | str,
        registry: StudyRegistry,
        evaluator: SandboxEvaluator | None = None,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        ignore_hidden: bool = True,
    ) -> None:
        self._root = Path(root)
        self._registry = registry
        self._evaluator = evaluator or SandboxEvaluator()
        self._extensions = tuple(extensions)
        self._ignore_hidden = ignore_hidden
        self._descriptors: dict[str, PluginDescriptor] = {}
        self._errors: dict[str, str] = {}
        self._is_loaded = False

    @property
    def root(self) -> Path:
        return self._root

    @property
    def extensions(self) -> tuple[str, ...]:
        return self._extensions

    @property
    def ignore_hidden(self) -> bool:
        return self._ignore_hidden

    def id_for(self, path: Path | str) -> str:
        """Return the study id a file under this loader's root maps to."""
        return derive_study_id(path, self._root)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_all(self) -> LoadingStatus:
        """Load every plugin file under the root. Never raises."""
        logger.info("Discovering studies under %s", self._root)
        self._forget_stale()
        try:
            sources = discover_sources(self._root, self._extensions, self._ignore_hidden)
        except DiscoveryError as exc:
            logger.warning("%s; continuing with no studies", exc)
            return self.status()

        logger.debug("Found %d candidate file(s)", len(sources))
        for path in sources:
            self.load_file(path)

        self._is_loaded = True
        status = self.status()
        logger.info(
            "Study loading complete: %d loaded, %d failed",
            status.loaded_count,
            status.error_count,
        )
        for study_id, message in status.errors.items():
            logger.warning("Study %r failed to load: %s", study_id, message)
        return status

    def load_file(self, path: Path | str) -> Any | None:
        """Run the load pipeline for one file.

        Returns
        -------
        object | None
            The registered study, or ``None`` when any step failed (the
            failure is recorded in ``status().errors``).
        """
        source_path = Path(path)
        study_id = self.id_for(source_path)
        try:
            raw_source = source_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            return self._record_error(study_id, f"cannot read {source_path}: {exc}")

        try:
            evaluated = self._evaluator.evaluate_plugin(raw_source, study_id, str(source_path))
        except EvaluationError as exc:
            return self._record_error(study_id, str(exc))

        try:
            study = require_interface(evaluated.study, study_id)
        except ValidationError as exc:
            evaluated.timers.cancel_all()
            return self._record_error(study_id, str(exc))

        if not self._registry.register(study_id, study):
            evaluated.timers.cancel_all()
            return self._record_error(study_id, "registration rejected the study")
        previous = self._descriptors.get(study_id)
        if previous is not None:
            previous.timers.cancel_all()

        self._descriptors[study_id] = PluginDescriptor(
            id=study_id,
            source_path=source_path,
            loaded_at=datetime.now(timezone.utc),
            raw_source=raw_source,
            study=study,
            timers=evaluated.timers,
        )
        self._errors.pop(study_id, None)
        logger.info("Loaded study %r from %s", study_id, source_path)
        return study

    def unload(self, study_id: str) -> None:
        """Cancel timers, unregister (destroying) and forget ``study_id``."""
        descriptor = self._descriptors.pop(study_id, None)
        if descriptor is not None:
            descriptor.timers.cancel_all()
        self._registry.unregister(study_id)
        self._errors.pop(study_id, None)

    def reload_all(self) -> LoadingStatus:
        """Destroy every study, clear all state, and load from disk again."""
        logger.info("Reloading all studies from %s", self._root)
        self._registry.destroy_all()
        self.clear()
        return self.load_all()

    def clear(self) -> None:
        """Cancel every plugin's timers and forget all descriptors and errors.

        The registry is left untouched; callers destroy it first.
        """
        for descriptor in self._descriptors.values():
            descriptor.timers.cancel_all()
        self._descriptors.clear()
        self._errors.clear()
        self._is_loaded = False

    def _forget_stale(self) -> None:
        """Drop descriptors whose study is no longer registered and old errors."""
        for study_id in [i for i in self._descriptors if i not in self._registry]:
            self._descriptors.pop(study_id).timers.cancel_all()
        self._errors.clear()

    def _record_error(self, study_id: str, message: str) -> None:
        self._errors[study_id] = message
        logger.error("Failed to load study %r: %s", study_id, message)
        return None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def descriptor(self, study_id: str) -> PluginDescriptor | None:
        return self._descriptors.get(study_id)

    def descriptors(self) -> list[PluginDescriptor]:
        return list(self._descriptors.values())

    def path_for(self, study_id: str) -> Path | None:
        descriptor = self._descriptors.get(study_id)
        return descriptor.source_path if descriptor else None

    def status(self) -> LoadingStatus:
        """Return the current loading status. Never raises."""
        return LoadingStatus(
            loaded_count=len(self._descriptors),
            error_count=len(self._errors),
            loaded_ids=tuple(self._descriptors),
            errors=dict(self._errors),
            plugin_root=str(self._root),
            is_loaded=self._is_loaded,
        )

    def __repr__(self) -> str:
        return (
            f"StudyLoader(root={str(self._root)!r}, loaded={len(self._descriptors)}, "
            f"errors={len(self._errors)})"
        )
