"""studyhost: plugin runtime for sandboxed, hot-reloadable chart studies.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
::

    import asyncio
    import studyhost

    async def main():
        manager = studyhost.StudyManager.from_config(plugin_root="studies")
        await manager.initialize(studyhost.StudyContext(timeframes=("1m",)))
        manager.update_all_studies({"1m": candles}, sessions)
        await manager.join()
        print(manager.status())
        manager.destroy_all_studies()

    asyncio.run(main())

    # Check a plugin file without loading it into a runtime
    findings = studyhost.check(source, "high_low")

    studyhost.__version__
    '0.1.0'
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from studyhost.config import RuntimeConfig, load_config
from studyhost.errors import (
    ConfigError,
    DiscoveryError,
    EvaluationError,
    LifecycleCallError,
    RegistrationConflict,
    StudyHostError,
    ValidationError,
)
from studyhost.lifecycle import (
    CoordinatorState,
    LifecycleCoordinator,
    ReintegrationRequest,
    StudyContext,
)
from studyhost.loader import LoadingStatus, StudyLoader
from studyhost.manager import StudyManager
from studyhost.registry import StudyRegistry
from studyhost.sandbox import SandboxEvaluator
from studyhost.study import StudyBase, study_utils
from studyhost.watcher import StudyWatcher

__version__: str = "0.1.0"

if TYPE_CHECKING:
    from studyhost.validator.diagnostics import Diagnostic


def check(source: str, study_id: str, filename: str | None = None) -> list["Diagnostic"]:
    """Evaluate, interface-check and lint one plugin source.

    Parameters
    ----------
    source:
        Plugin source text.
    study_id:
        Id the plugin would be registered under.
    filename:
        Optional file name for tracebacks.

    Returns
    -------
    list[Diagnostic]
        All findings; empty when the plugin is clean.
    """
    from studyhost.checking import check_source

    return check_source(source, study_id, filename)


__all__ = [
    "__version__",
    "check",
    "ConfigError",
    "CoordinatorState",
    "DiscoveryError",
    "EvaluationError",
    "LifecycleCallError",
    "LifecycleCoordinator",
    "LoadingStatus",
    "RegistrationConflict",
    "ReintegrationRequest",
    "RuntimeConfig",
    "SandboxEvaluator",
    "StudyBase",
    "StudyContext",
    "StudyHostError",
    "StudyLoader",
    "StudyManager",
    "StudyRegistry",
    "StudyWatcher",
    "ValidationError",
    "load_config",
    "study_utils",
]
