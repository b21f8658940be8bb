"""Study registry.

The registry owns the table of validated studies and is the only
component that calls their lifecycle methods.
"""
from __future__ import annotations

from studyhost.registry.registry import StudyRegistry

__all__ = ["StudyRegistry"]
