#!/usr/bin/env python3
"""Example: Checking a plugin before deploying it (studyhost)

``studyhost.check`` evaluates a plugin in the sandbox, verifies the
lifecycle interface and lints the settings form it declares. The same
checks back the ``studyhost check`` command.

Usage:
    python examples/03_check_plugin.py
"""
from __future__ import annotations

from pathlib import Path

import studyhost

DRAFT = '''
class Draft(StudyBase):
    def get_ui_config(self):
        return {
            "settings_schema": [
                {"key": "period", "type": "number", "default": 500, "min": 1, "max": 200},
                {"key": "mode", "type": "select", "default": "ema",
                 "options": [{"value": "sma"}, {"value": "wma"}]},
            ]
        }

    def initialize(self, context): pass
    def update_data(self, chart_data, sessions): pass
    def destroy(self): pass

__study__ = Draft
'''


def report(name: str, diagnostics: list) -> None:
    if not diagnostics:
        print(f"{name}: no issues found")
        return
    print(f"{name}: {len(diagnostics)} issue(s)")
    for diag in diagnostics:
        print(f"  [{diag.severity.value}] {diag.code} {diag.location}: {diag.message}")


def main() -> None:
    high_low = Path(__file__).parent / "studies" / "high_low.py"
    report("high_low", studyhost.check(high_low.read_text(encoding="utf-8"), "high_low", str(high_low)))
    report("draft", studyhost.check(DRAFT, "draft"))


if __name__ == "__main__":
    main()
