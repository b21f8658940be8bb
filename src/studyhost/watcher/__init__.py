"""Hot-reload watcher."""
from __future__ import annotations

from studyhost.watcher.watcher import (
    DEFAULT_DEBOUNCE_SECONDS,
    ChangeKind,
    StudyWatcher,
    merge_kinds,
)

__all__ = ["DEFAULT_DEBOUNCE_SECONDS", "ChangeKind", "StudyWatcher", "merge_kinds"]
