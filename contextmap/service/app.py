"""FastAPI application entrypoint for contextmap service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..analyzer import ContextAnalyzer
from ..config import ConfigError, ContextMapConfig, load_config
from ..discovery import resolve_root
from ..export import context_to_dict, graph_to_dict
from ..models import AnalysisResult


class AnalyzeRequest(BaseModel):
    path: str


class AnalyzeResponse(BaseModel):
    root: str
    statistics: Dict[str, int]
    contexts: List[Dict[str, Any]]
    skipped_files: List[str] = []


class GraphRequest(BaseModel):
    path: str
    service: str


class GraphResponse(BaseModel):
    service: str
    nodes: List[str]
    edges: List[Dict[str, str]]


class HealthResponse(BaseModel):
    status: str


AnalyzerFactory = Callable[[ContextMapConfig], ContextAnalyzer]


def _default_analyzer(config: ContextMapConfig) -> ContextAnalyzer:
    return ContextAnalyzer(config=config)


def create_app(analyzer_factory: AnalyzerFactory = _default_analyzer) -> FastAPI:
    """Create the FastAPI application exposing contextmap operations."""

    app = FastAPI(title="ContextMap Service", version="1.0.0")

    async def _analyze(path: str) -> tuple[ContextAnalyzer, AnalysisResult]:
        def _run() -> tuple[ContextAnalyzer, AnalysisResult]:
            root = resolve_root(path)
            analyzer = analyzer_factory(load_config(root))
            return analyzer, analyzer.analyze_directory(root)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:  # pragma: no cover - fallback path when not in async context
            return _run()
        return await loop.run_in_executor(None, _run)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/analyze", response_model=AnalyzeResponse)
    async def analyze(payload: AnalyzeRequest) -> AnalyzeResponse:
        _, result = await _analyze(payload.path)
        return AnalyzeResponse(
            root=result.root,
            statistics=result.statistics(),
            contexts=[context_to_dict(context) for context in result.contexts],
            skipped_files=result.skipped_files,
        )

    @app.post("/graph", response_model=GraphResponse)
    async def graph(payload: GraphRequest) -> GraphResponse:
        analyzer, result = await _analyze(payload.path)
        data = graph_to_dict(analyzer.dependency_graph(result, payload.service))
        return GraphResponse(service=payload.service, nodes=data["nodes"], edges=data["edges"])

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(NotADirectoryError)
    async def not_a_directory_handler(_: Any, exc: NotADirectoryError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(PermissionError)
    async def permission_error_handler(_: Any, exc: PermissionError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    app = create_app()
    uvicorn.run(app, host=host, port=port)


__all__ = ["create_app", "run_service"]
