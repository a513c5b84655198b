"""Source file discovery for analysis runs."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List

from .logging import get_logger

EXCLUDED_DIRS = frozenset(
    {
        "node_modules",
        ".git",
        "dist",
        "build",
        "target",
        "bin",
        "obj",
        ".idea",
        ".vscode",
        "coverage",
        "logs",
        "tmp",
        "temp",
    }
)

_logger = get_logger("discovery")


def should_skip_directory(name: str, extra_excludes: Iterable[str] = ()) -> bool:
    """Return True for denylisted directory names and any dot-directory."""
    return name in EXCLUDED_DIRS or name.startswith(".") or name in set(extra_excludes)


def resolve_root(root: str | Path) -> Path:
    """Resolve an analysis root, raising when it is missing or not a directory."""
    root_path = Path(root).expanduser().resolve()
    if not root_path.exists():
        raise FileNotFoundError(f"Analysis root not found: {root}")
    if not root_path.is_dir():
        raise NotADirectoryError(f"Analysis root is not a directory: {root}")
    # os.walk swallows errors for the top directory, so probe it explicitly.
    os.listdir(root_path)
    return root_path


def discover_files(
    root: str | Path,
    extensions: Iterable[str],
    extra_excludes: Iterable[str] = (),
) -> List[Path]:
    """Return supported source files below ``root`` in deterministic order."""
    root_path = resolve_root(root)
    suffixes = {ext.lower() for ext in extensions}
    excludes = set(extra_excludes)

    def _on_error(error: OSError) -> None:
        _logger.warning("Skipping unreadable directory %s: %s", error.filename, error.strerror)

    files: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(root_path, onerror=_on_error):
        dirnames[:] = sorted(name for name in dirnames if not should_skip_directory(name, excludes))
        current_dir = Path(dirpath)
        for filename in sorted(filenames):
            if Path(filename).suffix.lower() in suffixes:
                files.append(current_dir / filename)

    _logger.debug("Discovered %d source files under %s", len(files), root_path)
    return files


__all__ = ["EXCLUDED_DIRS", "discover_files", "resolve_root", "should_skip_directory"]
