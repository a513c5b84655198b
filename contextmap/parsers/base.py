"""Base class for language-specific structural fact parsers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

from ..logging import get_logger
from ..models import ApiEndpoint, ClassInfo, CodeModule, FunctionInfo, Language


class BaseParser(ABC):
    """Contract for parsers that turn one source file into a ``CodeModule``."""

    language: Language
    extensions: Tuple[str, ...] = ()

    def __init__(self) -> None:
        self.logger = get_logger(f"parsers.{self.language}")

    def parse_file(self, path: str | Path) -> Optional[CodeModule]:
        """Parse a file from disk; unreadable files yield ``None``."""
        file_path = Path(path)
        try:
            content = file_path.read_text(encoding="utf-8")
            modified = datetime.fromtimestamp(file_path.stat().st_mtime, tz=timezone.utc)
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.debug("Skipping %s: %s", file_path, exc)
            return None
        module = self.parse_source(content, str(file_path))
        module.last_modified = modified
        return module

    def parse_source(self, content: str, file_path: str) -> CodeModule:
        """Extract structural facts from in-memory source text."""
        return CodeModule(
            file_path=file_path,
            language=self.language,
            endpoints=self.extract_endpoints(content, file_path),
            classes=self.extract_classes(content),
            functions=self.extract_functions(content),
        )

    @abstractmethod
    def extract_endpoints(self, content: str, file_path: str) -> List[ApiEndpoint]:
        """Return HTTP endpoints declared in the file."""

    @abstractmethod
    def extract_classes(self, content: str) -> List[ClassInfo]:
        """Return declared types (classes, interfaces, structs)."""

    @abstractmethod
    def extract_functions(self, content: str) -> List[FunctionInfo]:
        """Return declared functions and methods."""


__all__ = ["BaseParser"]
