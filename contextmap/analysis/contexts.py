"""Assemble :class:`ServiceContext` aggregates from grouped files."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from ..models import CodeModule, Relationship, ServiceContext
from .grouping import categorize_file

GENERAL_SERVICE = "General"

CATEGORY_BUCKETS: Dict[str, str] = {
    "controller": "controllers",
    "service": "services",
    "model": "models",
    "repository": "repositories",
    "config": "configurations",
    "utility": "utilities",
    "test": "tests",
}


def index_relationships(relationships: Sequence[Relationship]) -> Dict[str, List[int]]:
    """Map each file to the positions of the relationships that touch it."""
    index: Dict[str, List[int]] = {}
    for position, relationship in enumerate(relationships):
        index.setdefault(relationship.source_file, []).append(position)
        if relationship.target_file != relationship.source_file:
            index.setdefault(relationship.target_file, []).append(position)
    return index


def relationships_touching(
    files: Iterable[str],
    relationships: Sequence[Relationship],
    index: Optional[Mapping[str, List[int]]] = None,
) -> List[Relationship]:
    """Relationships whose source or target is one of ``files``, in collection order."""
    members = set(files)
    if index is None:
        return [
            relationship
            for relationship in relationships
            if relationship.source_file in members or relationship.target_file in members
        ]
    positions = sorted({position for file_path in members for position in index.get(file_path, ())})
    return [relationships[position] for position in positions]


def build_service_context(
    service_name: str,
    root_path: str,
    files: Sequence[str],
    modules: Mapping[str, CodeModule],
    relationships: Sequence[Relationship],
    index: Optional[Mapping[str, List[int]]] = None,
) -> ServiceContext:
    context = ServiceContext(service_name=service_name, root_path=root_path)
    for file_path in files:
        module = modules.get(file_path)
        if module is None:
            continue
        category = categorize_file(file_path)
        getattr(context, CATEGORY_BUCKETS.get(category, "utilities")).append(module)
        if category == "controller":
            context.api_endpoints.extend(module.endpoints)
        elif category == "service":
            context.business_logic.extend(module.classes)
        elif category == "model":
            context.data_models.extend(module.classes)
    context.relationships = relationships_touching(files, relationships, index)
    return context


def assemble_contexts(
    groups: Mapping[str, Sequence[str]],
    modules: Mapping[str, CodeModule],
    relationships: Sequence[Relationship],
    root_path: str,
) -> List[ServiceContext]:
    """One context per group in group order, then ``General`` for leftovers."""
    index = index_relationships(relationships)
    contexts: List[ServiceContext] = []
    processed: set[str] = set()
    for service_name, files in groups.items():
        contexts.append(build_service_context(service_name, root_path, files, modules, relationships, index))
        processed.update(files)

    ungrouped = [file_path for file_path in modules if file_path not in processed]
    if ungrouped:
        contexts.append(
            build_service_context(GENERAL_SERVICE, root_path, ungrouped, modules, relationships, index)
        )
    return contexts


__all__ = [
    "CATEGORY_BUCKETS",
    "GENERAL_SERVICE",
    "assemble_contexts",
    "build_service_context",
    "index_relationships",
    "relationships_touching",
]
