"""Name-based heuristics that partition files into services and categories."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

SERVICE_SUFFIXES: Tuple[str, ...] = (
    "Controller",
    "Service",
    "Handler",
    "Repository",
    "Manager",
    "Provider",
    "Component",
)

_SERVICE_PATTERNS = tuple(re.compile(rf"^(.+){suffix}$", re.IGNORECASE) for suffix in SERVICE_SUFFIXES)
_SEPARATORS = "_-."

ROOT_SERVICE = "Root"

# Ordered: the first category whose keywords match wins.
FILE_NAME_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("controller", ("controller", "handler", "router")),
    ("service", ("service", "manager", "provider")),
    ("model", ("model", "entity", "dto", "domain")),
    ("repository", ("repository", "dao", "data")),
    ("config", ("config", "setting", "property")),
    ("utility", ("util", "helper", "tool")),
    ("test", ("test", "spec")),
)

DIRECTORY_NAMES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("controller", ("controller", "controllers", "handler", "handlers")),
    ("service", ("service", "services", "business", "logic")),
    ("model", ("model", "models", "entity", "entities", "domain", "dto")),
    ("repository", ("repository", "repositories", "dao", "data")),
    ("config", ("config", "configuration", "settings")),
    ("utility", ("util", "utils", "utility", "utilities", "helper", "helpers")),
    ("test", ("test", "tests", "spec", "specs")),
)

UNKNOWN_CATEGORY = "unknown"


def extract_service_name(file_path: str | Path, root: str | Path | None = None) -> str:
    """Derive the service a file belongs to from its name, else its directory.

    ``UserController.go`` -> ``User``; ``user_controller.go`` -> ``User``;
    ``helpers.go`` under ``utils/`` -> ``utils``; a file directly in ``root``
    (or with no parent directory) -> ``Root``.
    """
    path = Path(file_path)
    stem = path.stem
    for pattern in _SERVICE_PATTERNS:
        match = pattern.match(stem)
        if not match:
            continue
        name = _normalize_prefix(match.group(1), stem)
        if name:
            return name

    parent = path.parent
    if parent.name in ("", "."):
        return ROOT_SERVICE
    if root is not None and parent.resolve() == Path(root).resolve():
        return ROOT_SERVICE
    return parent.name


def _normalize_prefix(prefix: str, stem: str) -> str:
    prefix = prefix.rstrip(_SEPARATORS)
    if not any(separator in stem for separator in _SEPARATORS):
        return prefix
    parts = [part for part in re.split(r"[_\-.]+", prefix) if part]
    return "".join(part[:1].upper() + part[1:] for part in parts)


def categorize_file(file_path: str | Path) -> str:
    """Classify a file by name keywords, then by its directory name."""
    path = Path(file_path)
    file_name = path.name.lower()
    dir_name = path.parent.name.lower()

    for category, keywords in FILE_NAME_KEYWORDS:
        if any(keyword in file_name for keyword in keywords):
            return category
    for category, names in DIRECTORY_NAMES:
        if dir_name in names:
            return category
    return UNKNOWN_CATEGORY


def group_files_by_service(
    file_paths: Iterable[str], root: Optional[str | Path] = None
) -> Dict[str, List[str]]:
    """Map service names to member files, in first-seen order."""
    groups: Dict[str, List[str]] = {}
    for file_path in file_paths:
        groups.setdefault(extract_service_name(file_path, root), []).append(file_path)
    return groups


__all__ = [
    "DIRECTORY_NAMES",
    "FILE_NAME_KEYWORDS",
    "ROOT_SERVICE",
    "SERVICE_SUFFIXES",
    "UNKNOWN_CATEGORY",
    "categorize_file",
    "extract_service_name",
    "group_files_by_service",
]
