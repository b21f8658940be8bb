"""Plugin source discovery and study id derivation."""
from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path

from studyhost.errors import DiscoveryError

DEFAULT_EXTENSIONS: tuple[str, ...] = (".py",)

_INVALID_ID_CHARS = re.compile(r"[^A-Za-z0-9_]")
_SKIPPED_DIRS = frozenset({"__pycache__"})


def is_hidden(path: Path, root: Path | None = None) -> bool:
    """Return True if any component of ``path`` below ``root`` starts with a dot."""
    parts = path.relative_to(root).parts if root is not None else path.parts
    return any(part.startswith(".") for part in parts)


def matches_extension(path: Path, extensions: Iterable[str]) -> bool:
    return path.suffix.lower() in {ext.lower() for ext in extensions}


def derive_study_id(path: Path | str, root: Path | str | None = None) -> str:
    """Derive a study id from a source path.

    The path is taken relative to ``root`` when it lies below it, the
    extension is dropped, separators become ``_`` and every remaining
    character outside ``[A-Za-z0-9_]`` is replaced with ``_``.

    Example
    -------
    ::

        >>> derive_study_id("/plugins/gaps/opening-gaps.py", "/plugins")
        'gaps_opening_gaps'
    """
    source = Path(path)
    if root is not None:
        try:
            source = source.resolve().relative_to(Path(root).resolve())
        except ValueError:
            source = Path(source.name)
    stem = source.with_suffix("").as_posix().replace("/", "_")
    return _INVALID_ID_CHARS.sub("_", stem)


def discover_sources(
    root: Path | str,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    ignore_hidden: bool = True,
) -> list[Path]:
    """Recursively list plugin source files under ``root``.

    Parameters
    ----------
    root:
        Directory to scan.
    extensions:
        File suffixes to accept (case-insensitive).
    ignore_hidden:
        Skip dotfiles and anything inside dot-directories.

    Returns
    -------
    list[Path]
        Matching files, sorted for a deterministic load order.

    Raises
    ------
    DiscoveryError
        If ``root`` does not exist, is not a directory, or cannot be read.
    """
    root_path = Path(root)
    if not root_path.exists():
        raise DiscoveryError(root_path, "directory does not exist")
    if not root_path.is_dir():
        raise DiscoveryError(root_path, "not a directory")

    exts = tuple(extensions)
    found: list[Path] = []
    try:
        for path in root_path.rglob("*"):
            rel = path.relative_to(root_path)
            if any(part in _SKIPPED_DIRS for part in rel.parts):
                continue
            if ignore_hidden and is_hidden(rel):
                continue
            if path.is_file() and matches_extension(path, exts):
                found.append(path)
    except OSError as exc:
        raise DiscoveryError(root_path, str(exc)) from exc
    return sorted(found)
