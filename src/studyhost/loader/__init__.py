"""Study discovery and loading.

Exports the ``StudyLoader`` pipeline, its status/descriptor types and
the discovery helpers it is built on.
"""
from __future__ import annotations

from studyhost.loader.discovery import (
    DEFAULT_EXTENSIONS,
    derive_study_id,
    discover_sources,
    is_hidden,
    matches_extension,
)
from studyhost.loader.loader import LoadingStatus, PluginDescriptor, StudyLoader

__all__ = [
    "DEFAULT_EXTENSIONS",
    "derive_study_id",
    "discover_sources",
    "is_hidden",
    "matches_extension",
    "LoadingStatus",
    "PluginDescriptor",
    "StudyLoader",
]
