"""JSON export of analysis results."""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from .models import AnalysisResult, DependencyGraph, ServiceContext


def context_to_dict(context: ServiceContext) -> Dict[str, Any]:
    data = _jsonable(asdict(context))
    data["member_files"] = context.member_files
    return data


def graph_to_dict(graph: DependencyGraph) -> Dict[str, Any]:
    return {
        "nodes": sorted(graph.nodes),
        "edges": [{"from": edge.source, "to": edge.target, "type": edge.type} for edge in graph.edges],
    }


def result_to_dict(result: AnalysisResult) -> Dict[str, Any]:
    """JSON-ready representation of a full analysis result."""
    return {
        "root": result.root,
        "statistics": result.statistics(),
        "contexts": [context_to_dict(context) for context in result.contexts],
        "relationships": [_jsonable(asdict(relationship)) for relationship in result.relationships],
        "cross_references": [_jsonable(asdict(reference)) for reference in result.cross_references],
        "skipped_files": list(result.skipped_files),
    }


def dumps(result: AnalysisResult) -> str:
    return json.dumps(result_to_dict(result), indent=2, sort_keys=True)


def write_json(result: AnalysisResult, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps(result) + "\n", encoding="utf-8")
    return path


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return sorted(_jsonable(item) for item in value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


__all__ = ["context_to_dict", "dumps", "graph_to_dict", "result_to_dict", "write_json"]
