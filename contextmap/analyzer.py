"""Analysis pipeline: discovery, facts, relationships, grouping, assembly."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .analysis import RelationshipExtractor, assemble_contexts, group_files_by_service, service_dependency_graph
from .config import ContextMapConfig
from .discovery import discover_files, resolve_root
from .logging import get_logger
from .models import AnalysisResult, CodeModule, CrossFileReference, DependencyGraph, Relationship
from .parsers import ParserRegistry


@dataclass
class AnalysisRun:
    """Mutable state owned by a single analysis invocation."""

    root: Path
    modules: Dict[str, CodeModule] = field(default_factory=dict)
    relationships: List[Relationship] = field(default_factory=list)
    cross_references: List[CrossFileReference] = field(default_factory=list)
    skipped_files: List[str] = field(default_factory=list)


class ContextAnalyzer:
    """Builds service contexts for one or more source directories.

    Each call to :meth:`analyze_directory` works on a fresh
    :class:`AnalysisRun`, so one analyzer can serve concurrent callers.
    """

    def __init__(
        self,
        config: ContextMapConfig | None = None,
        parser_registry: ParserRegistry | None = None,
        workers: int | None = None,
    ) -> None:
        self.config = config
        languages = config.languages if config is not None else None
        exclude_dirs = config.exclude_dirs if config is not None else []
        self.registry = parser_registry or ParserRegistry(languages, exclude_dirs=exclude_dirs)
        if workers is None:
            workers = config.analysis.workers if config is not None else 1
        self.workers = max(1, workers)
        self._exclude_dirs = sorted(set(self.registry.exclude_dirs) | set(exclude_dirs))
        self.logger = get_logger("analyzer")

    def analyze_directory(self, path: str | Path) -> AnalysisResult:
        """Analyze one root; a missing or unreadable root raises."""
        root = resolve_root(path)
        self.logger.info("Analyzing %s", root)
        run = AnalysisRun(root=root)

        self._parse_files(run)
        self.logger.debug("Parsed %d files (%d skipped)", len(run.modules), len(run.skipped_files))

        extractor = RelationshipExtractor(run.modules)
        run.relationships.extend(extractor.extract_all(workers=self.workers))
        self.logger.debug("Found %d relationships", len(run.relationships))

        groups = group_files_by_service(run.modules, root)
        contexts = assemble_contexts(groups, run.modules, run.relationships, str(root))

        result = AnalysisResult(
            root=str(root),
            contexts=contexts,
            relationships=list(run.relationships),
            cross_references=list(run.cross_references),
            skipped_files=list(run.skipped_files),
        )
        stats = result.statistics()
        self.logger.info(
            "Analyzed %d files into %d services with %d relationships",
            stats["files_analyzed"],
            stats["services_analyzed"],
            stats["relationships_found"],
        )
        return result

    def analyze_directories(self, paths: Sequence[str | Path] | None = None) -> List[AnalysisResult]:
        """Analyze each root in order; defaults to the configured source directories."""
        if paths is None:
            if self.config is None:
                raise ValueError("No paths given and no configuration to read source directories from")
            paths = self.config.analysis_roots()
        return [self.analyze_directory(path) for path in paths]

    def dependency_graph(self, result: AnalysisResult, service_name: str) -> DependencyGraph:
        return service_dependency_graph(result.relationships, service_name, result.root)

    def _parse_files(self, run: AnalysisRun) -> None:
        for file_path in discover_files(run.root, self.registry.supported_extensions(), self._exclude_dirs):
            module = self.registry.parse_file(file_path)
            if module is None:
                self.logger.debug("No structural facts for %s", file_path)
                run.skipped_files.append(str(file_path))
                continue
            run.modules[module.file_path] = module


def combined_statistics(results: Iterable[AnalysisResult]) -> Dict[str, int]:
    """Sum the statistics of several analysis results."""
    totals: Dict[str, int] = {
        "files_analyzed": 0,
        "services_analyzed": 0,
        "relationships_found": 0,
        "skipped_files": 0,
    }
    for result in results:
        for key, value in result.statistics().items():
            totals[key] = totals.get(key, 0) + value
    return totals


def combined_dependency_graph(results: Iterable[AnalysisResult], service_name: str) -> DependencyGraph:
    """Merge the per-root graphs of several analysis results."""
    graph = DependencyGraph()
    for result in results:
        partial = service_dependency_graph(result.relationships, service_name, result.root)
        graph.nodes |= partial.nodes
        graph.edges.extend(partial.edges)
    return graph


def analyze_directory(path: str | Path, config: Optional[ContextMapConfig] = None) -> AnalysisResult:
    return ContextAnalyzer(config=config).analyze_directory(path)


__all__ = ["AnalysisRun", "ContextAnalyzer", "analyze_directory", "combined_dependency_graph", "combined_statistics"]
