"""Markdown rendering of service contexts."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Sequence

from jinja2 import Environment, FileSystemLoader

from ..models import CodeModule, ServiceContext

# Buckets whose files become nodes in the dependency diagram.
DIAGRAM_BUCKETS = ("controllers", "services", "models", "repositories")


class ContextRenderer:
    """Renders service contexts and the cross-service overview with Jinja2."""

    def __init__(self, templates_dir: Path | None = None, *, include_diagram: bool = True) -> None:
        self.templates_dir = templates_dir
        self.include_diagram = include_diagram
        self._env = self._create_env(templates_dir)

    def render_service(self, context: ServiceContext) -> str:
        template = self._env.get_template("service.md.j2")
        return (
            template.render(
                context=context,
                counts={name: len(modules) for name, modules in context.buckets().items()},
                endpoints=context.api_endpoints,
                relationships=[
                    {
                        "kind": relationship.kind,
                        "source": os.path.basename(relationship.source_file),
                        "target": os.path.basename(relationship.target_file),
                        "details": relationship.details,
                    }
                    for relationship in context.relationships
                ],
                business_logic=_classes_with_files(context.business_logic, context.services),
                data_models=_classes_with_files(context.data_models, context.models),
                diagram=self.dependency_diagram(context) if self.include_diagram else "",
            ).strip()
            + "\n"
        )

    def render_overview(self, contexts: Sequence[ServiceContext]) -> str:
        template = self._env.get_template("overview.md.j2")
        services = [
            {
                "name": context.service_name,
                "endpoint_count": len(context.api_endpoints),
                "component_count": len(context.controllers) + len(context.services) + len(context.models),
                "relationship_count": len(context.relationships),
                "key_apis": [f"{endpoint.method} {endpoint.path}" for endpoint in context.api_endpoints[:3]],
            }
            for context in contexts
        ]
        return template.render(services=services).strip() + "\n"

    @staticmethod
    def dependency_diagram(context: ServiceContext) -> str:
        """Mermaid ``graph TD`` of the context's component files.

        Edges are drawn only when both ends are nodes.
        """
        nodes: List[str] = []
        for bucket in DIAGRAM_BUCKETS:
            for module in getattr(context, bucket):
                node = _node_name(module.file_path)
                if node not in nodes:
                    nodes.append(node)

        edges: List[str] = []
        for relationship in context.relationships:
            source = _node_name(relationship.source_file)
            target = _node_name(relationship.target_file)
            if source in nodes and target in nodes:
                edges.append(f"{source} -->|{relationship.kind}| {target}")

        lines = ["```mermaid", "graph TD"]
        lines.extend(f"    {node}[{node}]" for node in nodes)
        lines.extend(f"    {edge}" for edge in edges)
        lines.append("```")
        return "\n".join(lines)

    def _create_env(self, templates_dir: Path | None) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).with_name("templates")))
        loader = FileSystemLoader(directories)
        env = Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)
        env.filters["basename"] = os.path.basename
        return env


def _node_name(file_path: str) -> str:
    return os.path.splitext(os.path.basename(file_path))[0]


def _classes_with_files(classes, modules: Sequence[CodeModule]) -> List[Dict[str, object]]:  # noqa: ANN001
    rows: List[Dict[str, object]] = []
    for declared in classes:
        owner = next((module for module in modules if declared in module.classes), None)
        rows.append(
            {
                "info": declared,
                "file": os.path.basename(owner.file_path) if owner else "",
            }
        )
    return rows


__all__ = ["ContextRenderer", "DIAGRAM_BUCKETS"]
