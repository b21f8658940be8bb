"""Hot-reload watcher for the plugin root.

A ``watchdog`` observer reports file events on its own thread. Events are
debounced per path with a ``threading.Timer`` (editors tend to fire a
burst of create/modify/move events for one save) and then handed to the
asyncio loop with ``call_soon_threadsafe``. Every reconciliation step
runs on the loop thread, so the observer thread never touches loader,
registry or coordinator state.

Reconciliation:

* added   -> load and register; the study stays dormant
* changed -> unload the old instance, load again, emit a
  ``ReintegrationRequest`` to subscribers
* removed -> unload
"""
from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from studyhost.lifecycle.context import ReintegrationRequest
from studyhost.loader.discovery import is_hidden, matches_extension
from studyhost.loader.loader import StudyLoader
from studyhost.registry.registry import StudyRegistry

logger = logging.getLogger(__name__)

# Debounce window for filesystem events (seconds)
DEFAULT_DEBOUNCE_SECONDS = 0.25

ReintegrationCallback = Callable[[ReintegrationRequest], object]


class ChangeKind(Enum):
    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"


def merge_kinds(pending: ChangeKind | None, incoming: ChangeKind) -> ChangeKind:
    """Collapse two events for one path inside a debounce window.

    A removal always wins. A removal followed by a creation (atomic
    save) is a change. An add stays an add while the file keeps being
    written.
    """
    if pending is None or incoming is ChangeKind.REMOVED:
        return incoming
    if pending is ChangeKind.REMOVED:
        return ChangeKind.CHANGED
    if pending is ChangeKind.ADDED:
        return ChangeKind.ADDED
    return incoming if incoming is ChangeKind.CHANGED else pending


class _PluginEventHandler(FileSystemEventHandler):
    def __init__(self, watcher: StudyWatcher) -> None:
        self._watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher.post(ChangeKind.ADDED, event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher.post(ChangeKind.CHANGED, event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher.post(ChangeKind.REMOVED, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        # editors often write temp -> move into place
        if event.is_directory:
            return
        self._watcher.post(ChangeKind.REMOVED, event.src_path)
        dest = getattr(event, "dest_path", "")
        if dest:
            self._watcher.post(ChangeKind.ADDED, dest)


class StudyWatcher:
    """Watches the loader's plugin root and reconciles changes.

    Parameters
    ----------
    loader:
        Loader whose root is watched and which performs (re)loads.
    registry:
        Registry the loader registers into; consulted for known ids.
    debounce_seconds:
        Quiet period per path before an event is reconciled.
    """

    def __init__(
        self,
        loader: StudyLoader,
        registry: StudyRegistry,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ) -> None:
        self._loader = loader
        self._registry = registry
        self._debounce = debounce_seconds
        self._subscribers: list[ReintegrationCallback] = []
        self._lock = threading.Lock()
        self._pending: dict[str, tuple[ChangeKind, threading.Timer]] = {}
        self._observer: Observer | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def subscribe(self, callback: ReintegrationCallback) -> Callable[[], None]:
        """Register a reintegration callback; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ---------- lifecycle ----------

    def start(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Start watching. Must be given, or called from, the host's loop."""
        if self._observer is not None:
            logger.debug("Watcher already running")
            return
        root = self._loader.root
        if not root.is_dir():
            logger.warning("Plugin root %s does not exist; hot reload disabled", root)
            return
        self._loop = loop or asyncio.get_running_loop()
        observer = Observer()
        observer.schedule(_PluginEventHandler(self), str(root), recursive=True)
        observer.start()
        self._observer = observer
        logger.info("Watching %s for study changes", root)

    def stop(self) -> None:
        with self._lock:
            for _, timer in self._pending.values():
                timer.cancel()
            self._pending.clear()
        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            observer.join(timeout=2)
            logger.info("Stopped watching %s", self._loader.root)
        self._loop = None

    # ---------- event intake (observer thread) ----------

    def accepts(self, path: Path | str) -> bool:
        """Return True if ``path`` is a plugin source this watcher cares about."""
        source = Path(path)
        try:
            rel = source.resolve().relative_to(self._loader.root.resolve())
        except ValueError:
            return False
        if "__pycache__" in rel.parts:
            return False
        if self._loader.ignore_hidden and is_hidden(rel):
            return False
        return matches_extension(source, self._loader.extensions)

    def post(self, kind: ChangeKind, path: str | bytes) -> None:
        """Debounce an event for ``path``; safe to call from any thread."""
        if isinstance(path, bytes):
            path = path.decode()
        if not self.accepts(path):
            return
        with self._lock:
            pending = self._pending.get(path)
            if pending is not None:
                pending[1].cancel()
            merged = merge_kinds(pending[0] if pending else None, kind)
            timer = threading.Timer(self._debounce, self._flush, args=(path,))
            timer.daemon = True
            self._pending[path] = (merged, timer)
            timer.start()

    def _flush(self, path: str) -> None:
        with self._lock:
            pending = self._pending.pop(path, None)
        loop = self._loop
        if pending is None or loop is None:
            return
        try:
            loop.call_soon_threadsafe(self.dispatch, pending[0], Path(path))
        except RuntimeError:
            logger.debug("Event loop closed; dropping %s event for %s", pending[0].value, path)

    # ---------- reconciliation (loop thread) ----------

    def dispatch(self, kind: ChangeKind, path: Path) -> None:
        logger.debug("Reconciling %s: %s", kind.value, path)
        try:
            if kind is ChangeKind.ADDED:
                self.handle_added(path)
            elif kind is ChangeKind.CHANGED:
                self.handle_changed(path)
            else:
                self.handle_removed(path)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to reconcile %s event for %s", kind.value, path)

    def handle_added(self, path: Path | str) -> object | None:
        """Load a new plugin file. The study is registered but not initialized.

        A file whose id is already loaded is handled as a change.
        """
        study_id = self._loader.id_for(path)
        if self._loader.descriptor(study_id) is not None:
            self.handle_changed(path)
            return self._registry.get(study_id)
        logger.info("Study file added: %s", path)
        return self._loader.load_file(path)

    def handle_changed(self, path: Path | str) -> ReintegrationRequest | None:
        """Replace the old instance and ask subscribers to reintegrate it.

        Returns
        -------
        ReintegrationRequest | None
            The emitted request, or ``None`` if the new source failed to load.
        """
        study_id = self._loader.id_for(path)
        if self._loader.descriptor(study_id) is not None:
            logger.info("Study file changed: %s", path)
            self._loader.unload(study_id)
        else:
            logger.info("Changed file for unknown study %r; loading it", study_id)

        study = self._loader.load_file(path)
        if study is None:
            logger.warning("Hot reload of %r failed; study stays unloaded", study_id)
            return None

        request = ReintegrationRequest(study_id, study)
        for callback in list(self._subscribers):
            try:
                callback(request)
            except Exception:  # noqa: BLE001
                logger.exception("Reintegration subscriber failed for %r", study_id)
        return request

    def handle_removed(self, path: Path | str) -> None:
        study_id = self._loader.id_for(path)
        if self._loader.descriptor(study_id) is None and study_id not in self._registry:
            logger.debug("Removed file %s was not loaded", path)
        else:
            logger.info("Study file removed: %s", path)
        # also clears a recorded load error for the file
        self._loader.unload(study_id)

    def __repr__(self) -> str:
        return (
            f"StudyWatcher(root={str(self._loader.root)!r}, running={self.is_running}, "
            f"subscribers={len(self._subscribers)})"
        )
