"""Core data models shared across contextmap components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Set

Language = Literal["go", "java", "csharp"]

RelationType = Literal["import", "extends", "implements", "calls", "references", "config"]


@dataclass
class Parameter:
    """A parameter of a function or an API endpoint."""

    name: str
    type: str
    location: str
    required: bool = True
    description: str = ""


@dataclass
class RequestBody:
    content_type: str
    schema: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ResponseInfo:
    status_code: int
    description: str
    schema: Optional[Dict[str, Any]] = None


@dataclass
class ApiEndpoint:
    """HTTP endpoint declared in a source file."""

    method: str
    path: str
    description: str
    file_name: str
    line_number: int
    parameters: List[Parameter] = field(default_factory=list)
    request_body: Optional[RequestBody] = None
    responses: List[ResponseInfo] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)


@dataclass
class PropertyInfo:
    name: str
    type: str
    description: str = ""
    annotations: List[str] = field(default_factory=list)


@dataclass
class FunctionInfo:
    name: str
    description: str
    line_number: int
    parameters: List[Parameter] = field(default_factory=list)
    return_type: str = "unknown"
    annotations: List[str] = field(default_factory=list)


@dataclass
class ClassInfo:
    """A declared type: class, interface or Go struct."""

    name: str
    description: str
    line_number: int
    methods: List[FunctionInfo] = field(default_factory=list)
    properties: List[PropertyInfo] = field(default_factory=list)
    annotations: List[str] = field(default_factory=list)


@dataclass
class CodeModule:
    """Structural facts extracted from one source file."""

    file_path: str
    language: Language
    endpoints: List[ApiEndpoint] = field(default_factory=list)
    classes: List[ClassInfo] = field(default_factory=list)
    functions: List[FunctionInfo] = field(default_factory=list)
    last_modified: Optional[datetime] = None

    def declares(self, type_name: str) -> bool:
        return any(cls.name == type_name for cls in self.classes)


@dataclass(frozen=True)
class Relationship:
    """Directed edge between two source files."""

    source_file: str
    target_file: str
    kind: RelationType
    details: str


@dataclass(frozen=True)
class CrossFileReference:
    """Symbol-level reference between files.

    No analysis phase produces these yet; the collection on an analysis result
    is always empty but kept so consumers can rely on the field.
    """

    from_file: str
    from_line: int
    from_column: int
    to_file: str
    to_symbol: str
    reference_type: str


@dataclass
class ServiceContext:
    """Files, facts and relationships grouped under one service name."""

    service_name: str
    root_path: str
    controllers: List[CodeModule] = field(default_factory=list)
    services: List[CodeModule] = field(default_factory=list)
    models: List[CodeModule] = field(default_factory=list)
    repositories: List[CodeModule] = field(default_factory=list)
    configurations: List[CodeModule] = field(default_factory=list)
    utilities: List[CodeModule] = field(default_factory=list)
    tests: List[CodeModule] = field(default_factory=list)
    relationships: List[Relationship] = field(default_factory=list)
    api_endpoints: List[ApiEndpoint] = field(default_factory=list)
    business_logic: List[ClassInfo] = field(default_factory=list)
    data_models: List[ClassInfo] = field(default_factory=list)

    def buckets(self) -> Dict[str, List[CodeModule]]:
        return {
            "controllers": self.controllers,
            "services": self.services,
            "models": self.models,
            "repositories": self.repositories,
            "configurations": self.configurations,
            "utilities": self.utilities,
            "tests": self.tests,
        }

    @property
    def member_files(self) -> List[str]:
        """File paths of every module in the context, in bucket order."""
        return [module.file_path for modules in self.buckets().values() for module in modules]


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str
    type: str


@dataclass
class DependencyGraph:
    """Files and edges touching one service."""

    nodes: Set[str] = field(default_factory=set)
    edges: List[GraphEdge] = field(default_factory=list)


@dataclass
class AnalysisResult:
    """Output of a single analysis run over one root directory."""

    root: str
    contexts: List[ServiceContext]
    relationships: List[Relationship]
    cross_references: List[CrossFileReference] = field(default_factory=list)
    skipped_files: List[str] = field(default_factory=list)

    def context(self, service_name: str) -> Optional[ServiceContext]:
        for context in self.contexts:
            if context.service_name == service_name:
                return context
        return None

    def statistics(self) -> Dict[str, int]:
        return {
            "files_analyzed": sum(len(context.member_files) for context in self.contexts),
            "services_analyzed": len(self.contexts),
            "relationships_found": len(self.relationships),
            "skipped_files": len(self.skipped_files),
        }


__all__ = [
    "AnalysisResult",
    "ApiEndpoint",
    "ClassInfo",
    "CodeModule",
    "CrossFileReference",
    "DependencyGraph",
    "FunctionInfo",
    "GraphEdge",
    "Language",
    "Parameter",
    "PropertyInfo",
    "RelationType",
    "Relationship",
    "RequestBody",
    "ResponseInfo",
    "ServiceContext",
]
