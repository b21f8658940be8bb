"""Integration tests.

These drive a full ``StudyManager`` against plugin files written to a
temporary directory, plus the bundled example plugins. Run only the fast
unit tests with ``pytest tests/unit/``.
"""
from __future__ import annotations
