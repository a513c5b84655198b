"""Ad hoc dependency graph queries over a relationship collection."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from ..models import DependencyGraph, GraphEdge, Relationship
from .grouping import extract_service_name


def service_dependency_graph(
    relationships: Iterable[Relationship],
    service_name: str,
    root: str | Path | None = None,
) -> DependencyGraph:
    """Files and edges where either end belongs to ``service_name``.

    Nodes are file base names. The input collection is not modified.
    """
    graph = DependencyGraph()
    for relationship in relationships:
        source_service = extract_service_name(relationship.source_file, root)
        target_service = extract_service_name(relationship.target_file, root)
        if service_name not in (source_service, target_service):
            continue
        source = os.path.basename(relationship.source_file)
        target = os.path.basename(relationship.target_file)
        graph.nodes.add(source)
        graph.nodes.add(target)
        graph.edges.append(GraphEdge(source=source, target=target, type=relationship.kind))
    return graph


__all__ = ["service_dependency_graph"]
