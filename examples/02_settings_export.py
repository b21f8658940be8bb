#!/usr/bin/env python3
"""Example: Settings export and import (studyhost)

Export every study's settings to YAML, edit them, and import them into a
fresh runtime. Unknown study ids in the imported file are skipped.

Usage:
    python examples/02_settings_export.py
"""
from __future__ import annotations

import asyncio
from pathlib import Path

import yaml

from studyhost import RuntimeConfig, StudyContext, StudyManager

STUDIES = Path(__file__).parent / "studies"


async def main() -> None:
    config = RuntimeConfig(plugin_root=STUDIES)

    source = StudyManager(config)
    await source.initialize(StudyContext())
    exported = source.export_settings()
    await source.close()

    text = yaml.dump(exported, sort_keys=True)
    print("Exported settings:")
    print(text)

    edited = yaml.safe_load(text)
    edited["high_low"]["thickness"] = 3
    edited["retired_study"] = {"enabled": True}

    target = StudyManager(config)
    await target.initialize(StudyContext())
    applied = target.import_settings(edited)
    print(f"Applied settings for: {', '.join(applied)}")
    print(f"high_low now: {target.export_settings()['high_low']}")
    await target.close()


if __name__ == "__main__":
    asyncio.run(main())
