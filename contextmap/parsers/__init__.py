"""Structural fact parsers and the registry that dispatches files to them."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set

from ..discovery import discover_files
from ..logging import get_logger
from ..models import CodeModule
from .base import BaseParser
from .csharp import CSharpParser
from .go import GoParser
from .java import JavaParser

_BUILTIN_FACTORIES: Dict[str, Callable[[], BaseParser]] = {
    "go": GoParser,
    "java": JavaParser,
    "csharp": CSharpParser,
}


def discover_parsers(enabled: Sequence[str] | None = None) -> List[BaseParser]:
    """Return instantiated parsers, honoring optional enabled language names."""

    enabled_set: Set[str] | None = None
    if enabled is not None:
        enabled_set = {name.lower() for name in enabled}

    parsers: List[BaseParser] = []
    for name, factory in _BUILTIN_FACTORIES.items():
        if enabled_set is not None and name not in enabled_set:
            continue
        parsers.append(factory())
        if enabled_set is not None:
            enabled_set.discard(name)

    if enabled_set:
        missing = ", ".join(sorted(enabled_set))
        raise ValueError(f"Unknown languages requested: {missing}")

    return parsers


class ParserRegistry:
    """Routes files to the parser registered for their extension."""

    def __init__(
        self,
        languages: Sequence[str] | None = None,
        *,
        exclude_dirs: Iterable[str] = (),
    ) -> None:
        self.parsers = discover_parsers(languages)
        self.exclude_dirs = list(exclude_dirs)
        self.logger = get_logger("parsers")
        self._by_extension: Dict[str, BaseParser] = {}
        for parser in self.parsers:
            for extension in parser.extensions:
                self._by_extension.setdefault(extension, parser)

    def supported_extensions(self) -> List[str]:
        return sorted(self._by_extension)

    def parser_for_path(self, path: str | Path) -> Optional[BaseParser]:
        return self._by_extension.get(Path(path).suffix.lower())

    def parse_file(self, path: str | Path) -> Optional[CodeModule]:
        """Parse one file; unsupported or unreadable files yield ``None``."""
        parser = self.parser_for_path(path)
        if parser is None:
            self.logger.debug("No parser registered for %s", path)
            return None
        return parser.parse_file(path)

    def parse_directory(self, path: str | Path, languages: Sequence[str] | None = None) -> List[CodeModule]:
        """Parse every supported file below ``path``, skipping files that yield nothing."""
        wanted = set(languages) if languages is not None else None
        extensions = [
            extension
            for extension, parser in self._by_extension.items()
            if wanted is None or parser.language in wanted
        ]
        modules: List[CodeModule] = []
        for file_path in discover_files(path, extensions, self.exclude_dirs):
            module = self.parse_file(file_path)
            if module is not None:
                modules.append(module)
        return modules


__all__ = [
    "BaseParser",
    "CSharpParser",
    "GoParser",
    "JavaParser",
    "ParserRegistry",
    "discover_parsers",
]
