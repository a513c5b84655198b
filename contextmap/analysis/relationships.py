"""Cross-file relationship extraction.

Each language is described by a :class:`LanguagePatterns` entry: import
rules that resolve to files on disk and symbol rules that resolve type
names through the table of parsed modules. Adding a language means adding
an entry to :data:`LANGUAGE_PATTERNS`.
"""

from __future__ import annotations

import os
import re
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from ..logging import get_logger
from ..models import CodeModule, Relationship, RelationType
from ..parsers.utils import balanced_inner, mask_comments, split_top_level

PROJECT_MARKERS: Tuple[str, ...] = ("package.json", "pom.xml", "build.gradle", "go.mod", "*.csproj", "*.sln", ".git")

_logger = get_logger("analysis.relationships")


@dataclass(frozen=True)
class ImportRule:
    """Import declarations resolved by probing candidate files on disk."""

    pattern: re.Pattern[str]
    specs: Callable[[re.Match[str]], List[str]]
    candidates: Callable[["RelationshipExtractor", Path, str], List[Path]]


@dataclass(frozen=True)
class SymbolRule:
    """References to declared type names, resolved through the module table.

    ``expand`` yields ``(type_name, details)`` pairs for one match. When
    ``guard`` is set the rule only runs for files where the guard matches.
    """

    kind: RelationType
    pattern: re.Pattern[str]
    expand: Callable[[re.Match[str]], Iterable[Tuple[str, str]]]
    guard: Optional[re.Pattern[str]] = None


@dataclass(frozen=True)
class LanguagePatterns:
    language: str
    extension: str
    imports: Tuple[ImportRule, ...] = ()
    symbols: Tuple[SymbolRule, ...] = ()
    raw_quote: Optional[str] = None


# ---------------------------------------------------------------------------
# Go
# ---------------------------------------------------------------------------


def _go_import_specs(match: re.Match[str]) -> List[str]:
    block, single = match.group(1), match.group(2)
    if single is not None:
        return [single]
    return re.findall(r"\"([^\"]+)\"", block or "")


def _go_candidates(extractor: "RelationshipExtractor", source: Path, spec: str) -> List[Path]:
    if not spec.startswith(("./", "../")):
        return []
    base = Path(os.path.normpath(source.parent / spec))
    if not base.name:
        return []
    candidates = [base.parent / (base.name + ".go")]
    try:
        entries = os.listdir(base) if base.is_dir() else []
    except (OSError, ValueError) as exc:
        _logger.debug("Cannot list import directory %s: %s", base, exc)
        entries = []
    go_files = sorted(entry for entry in entries if entry.endswith(".go"))
    if go_files:
        candidates.append(base / go_files[0])
    return candidates


def _go_embeddings(match: re.Match[str]) -> Iterable[Tuple[str, str]]:
    body, _ = balanced_inner(match.string, match.end() - 1)
    for raw_line in body.splitlines():
        line = re.sub(r"`[^`]*`", "", raw_line).strip()
        if not line or len(line.split()) != 1 or not re.match(r"^\*?[\w.]+$", line):
            continue
        type_name = line.lstrip("*").split(".")[-1]
        yield type_name, f"Struct embedding: {match.group(1)} embeds {type_name}"


# ---------------------------------------------------------------------------
# Java
# ---------------------------------------------------------------------------


def _single_spec(match: re.Match[str]) -> List[str]:
    return [match.group(1).strip()]


def _java_candidates(extractor: "RelationshipExtractor", source: Path, spec: str) -> List[Path]:
    root = extractor.project_root(source)
    if root is None:
        return []
    relative = spec.replace(".", "/") + ".java"
    return [root / "src" / "main" / "java" / relative, root / "src" / relative, source.parent / relative]


def _strip_generics(type_name: str) -> str:
    return re.sub(r"<.*>", "", type_name).strip()


def _java_class_edges(kind: str) -> Callable[[re.Match[str]], Iterable[Tuple[str, str]]]:
    def _expand(match: re.Match[str]) -> Iterable[Tuple[str, str]]:
        class_name = match.group(1)
        if kind == "extends":
            if match.group(2):
                yield match.group(2).split(".")[-1], f"{class_name} extends {match.group(2)}"
            return
        for interface in split_top_level(match.group(3) or ""):
            name = _strip_generics(interface).split(".")[-1]
            if name:
                yield name, f"{class_name} implements {name}"

    return _expand


def _java_injected_fields(match: re.Match[str]) -> Iterable[Tuple[str, str]]:
    service_type, field_name = match.groups()
    yield service_type, f"@Autowired {service_type} {field_name}"


# ---------------------------------------------------------------------------
# C#
# ---------------------------------------------------------------------------


def _csharp_candidates(extractor: "RelationshipExtractor", source: Path, spec: str) -> List[Path]:
    root = extractor.project_root(source)
    if root is None:
        return []
    relative = spec.replace(".", "/") + ".cs"
    return [root / relative, source.parent / relative]


def _csharp_base_types(match: re.Match[str]) -> Iterable[Tuple[str, str]]:
    class_name = match.group(1)
    for base_type in split_top_level(match.group(2) or ""):
        name = _strip_generics(base_type)
        if name:
            yield name, f"{class_name} : {base_type}"


def _csharp_injected_fields(match: re.Match[str]) -> Iterable[Tuple[str, str]]:
    interface_name = f"I{match.group(1)}"
    yield interface_name, f"Dependency injection: {interface_name}"


_JAVA_CLASS = re.compile(
    r"\bclass\s+(\w+)(?:\s*<[^{]*?>)?(?:\s+extends\s+([\w.]+)(?:\s*<[^{]*?>)?)?(?:\s+implements\s+([\w.,\s<>]+))?"
)

LANGUAGE_PATTERNS: Dict[str, LanguagePatterns] = {
    "go": LanguagePatterns(
        language="go",
        extension=".go",
        raw_quote="`",
        imports=(
            ImportRule(
                pattern=re.compile(r"\bimport\s+(?:\(([^)]*)\)|(?:[\w.]+\s+)?\"([^\"]+)\")"),
                specs=_go_import_specs,
                candidates=_go_candidates,
            ),
        ),
        symbols=(
            SymbolRule(
                kind="references",
                pattern=re.compile(r"\btype\s+(\w+)\s+struct\s*\{"),
                expand=_go_embeddings,
            ),
        ),
    ),
    "java": LanguagePatterns(
        language="java",
        extension=".java",
        imports=(
            ImportRule(
                pattern=re.compile(r"\bimport\s+(?:static\s+)?([^;]+);"),
                specs=_single_spec,
                candidates=_java_candidates,
            ),
        ),
        symbols=(
            SymbolRule(kind="extends", pattern=_JAVA_CLASS, expand=_java_class_edges("extends")),
            SymbolRule(kind="implements", pattern=_JAVA_CLASS, expand=_java_class_edges("implements")),
            SymbolRule(
                kind="references",
                pattern=re.compile(r"@Autowired\s+(?:private|protected|public)?\s*(\w+)\s+(\w+);"),
                expand=_java_injected_fields,
                guard=re.compile(r"@(?:Autowired|Inject|Service|Component|Repository)\b"),
            ),
        ),
    ),
    "csharp": LanguagePatterns(
        language="csharp",
        extension=".cs",
        imports=(
            ImportRule(
                pattern=re.compile(r"\busing\s+(?:static\s+)?(?:\w+\s*=\s*)?([\w.]+)\s*;"),
                specs=_single_spec,
                candidates=_csharp_candidates,
            ),
        ),
        symbols=(
            SymbolRule(
                kind="extends",
                pattern=re.compile(r"\bclass\s+(\w+)(?:\s*<[^{:]*>)?(?:\s*:\s*([^{;]+?))?\s*(?:\bwhere\b[^{;]*)?\{"),
                expand=_csharp_base_types,
            ),
            SymbolRule(
                kind="references",
                pattern=re.compile(r"(?:private|protected|public)\s+readonly\s+I(\w+)\s+_(\w+);"),
                expand=_csharp_injected_fields,
            ),
        ),
    ),
}


# ---------------------------------------------------------------------------
# Resolution helpers
# ---------------------------------------------------------------------------


def find_project_root(source: Path) -> Optional[Path]:
    """Nearest ancestor of ``source`` holding a project marker, or ``None``."""
    current = source.parent
    while True:
        if _has_marker(current):
            return current
        if current.parent == current:
            return None
        current = current.parent


def _has_marker(directory: Path) -> bool:
    try:
        entries = os.listdir(directory)
    except OSError:
        return False
    for marker in PROJECT_MARKERS:
        if marker.startswith("*"):
            if any(entry.endswith(marker[1:]) for entry in entries):
                return True
        elif marker in entries:
            return True
    return False


def find_class_definition(modules: Mapping[str, CodeModule], class_name: str) -> Optional[str]:
    """First module, in table order, that declares ``class_name``."""
    for file_path, module in modules.items():
        if module.declares(class_name):
            return file_path
    return None


class RelationshipExtractor:
    """Scans source files and emits resolved :class:`Relationship` edges.

    The module table is read-only here; it must be complete before the
    first scan so symbol lookups see every declared type.
    """

    def __init__(
        self,
        modules: Mapping[str, CodeModule],
        patterns: Mapping[str, LanguagePatterns] | None = None,
    ) -> None:
        self.modules = modules
        self.patterns = dict(patterns or LANGUAGE_PATTERNS)
        self._symbols: Dict[str, str] = {}
        for file_path, module in modules.items():
            for declared in module.classes:
                self._symbols.setdefault(declared.name, file_path)
        self._roots: Dict[Path, Optional[Path]] = {}

    def project_root(self, source: Path) -> Optional[Path]:
        directory = source.parent
        if directory not in self._roots:
            self._roots[directory] = find_project_root(source)
        return self._roots[directory]

    def resolve_symbol(self, name: str) -> Optional[str]:
        return self._symbols.get(name)

    def resolve_import(self, rule: ImportRule, source: Path, spec: str) -> Optional[str]:
        for candidate in rule.candidates(self, source, spec):
            try:
                found = candidate.is_file()
            except (OSError, ValueError) as exc:
                _logger.debug("Cannot probe %s for import %s: %s", candidate, spec, exc)
                continue
            if found:
                return str(candidate)
        return None

    def extract(self, file_path: str, content: str, language: str) -> List[Relationship]:
        """Return the edges found in one file's text."""
        table = self.patterns.get(language)
        if table is None:
            return []
        masked = mask_comments(content, raw_quote=table.raw_quote)
        source = Path(file_path)
        edges: List[Relationship] = []

        for rule in table.imports:
            for match in rule.pattern.finditer(masked):
                for spec in rule.specs(match):
                    target = self.resolve_import(rule, source, spec)
                    if target is None:
                        _logger.debug("Unresolved import %s in %s", spec, file_path)
                        continue
                    edges.append(Relationship(file_path, target, "import", spec))

        for symbol_rule in table.symbols:
            if symbol_rule.guard is not None and not symbol_rule.guard.search(masked):
                continue
            for match in symbol_rule.pattern.finditer(masked):
                for type_name, details in symbol_rule.expand(match):
                    target = self.resolve_symbol(type_name)
                    if target is None:
                        continue
                    edges.append(Relationship(file_path, target, symbol_rule.kind, details))
        return edges

    def scan_file(self, module: CodeModule) -> List[Relationship]:
        try:
            content = Path(module.file_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            _logger.debug("Skipping relationships for %s: %s", module.file_path, exc)
            return []
        return self.extract(module.file_path, content, module.language)

    def extract_all(self, workers: int = 1) -> List[Relationship]:
        """Scan every module; edges come back grouped in module-table order."""
        if workers <= 1 or len(self.modules) <= 1:
            relationships: List[Relationship] = []
            for module in self.modules.values():
                relationships.extend(self.scan_file(module))
            return relationships

        lock = threading.Lock()
        per_file: Dict[str, List[Relationship]] = {}

        def _scan(module: CodeModule) -> None:
            edges = self.scan_file(module)
            with lock:
                per_file[module.file_path] = edges

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(_scan, module) for module in self.modules.values()]
            for future in as_completed(futures):
                future.result()
        return [edge for file_path in self.modules for edge in per_file.get(file_path, [])]


def extract_relationships(modules: Mapping[str, CodeModule], workers: int = 1) -> List[Relationship]:
    return RelationshipExtractor(modules).extract_all(workers=workers)


__all__ = [
    "ImportRule",
    "LANGUAGE_PATTERNS",
    "LanguagePatterns",
    "PROJECT_MARKERS",
    "RelationshipExtractor",
    "SymbolRule",
    "extract_relationships",
    "find_class_definition",
    "find_project_root",
]
