"""Relationship extraction, service grouping and context assembly."""

from __future__ import annotations

from .contexts import GENERAL_SERVICE, assemble_contexts, build_service_context, relationships_touching
from .graph import service_dependency_graph
from .grouping import categorize_file, extract_service_name, group_files_by_service
from .relationships import (
    LANGUAGE_PATTERNS,
    LanguagePatterns,
    RelationshipExtractor,
    extract_relationships,
    find_class_definition,
    find_project_root,
)

__all__ = [
    "GENERAL_SERVICE",
    "LANGUAGE_PATTERNS",
    "LanguagePatterns",
    "RelationshipExtractor",
    "assemble_contexts",
    "build_service_context",
    "categorize_file",
    "extract_relationships",
    "extract_service_name",
    "find_class_definition",
    "find_project_root",
    "group_files_by_service",
    "relationships_touching",
    "service_dependency_graph",
]
