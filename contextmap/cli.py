"""CLI entrypoints for contextmap commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List

from .analyzer import ContextAnalyzer, combined_dependency_graph, combined_statistics
from .config import ConfigError, ContextMapConfig, load_config
from .discovery import resolve_root
from .export import graph_to_dict, result_to_dict
from .logging import configure_logging, get_logger
from .models import AnalysisResult
from .rendering import ContextRenderer


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_path_argument(parser: argparse.ArgumentParser, *, optional: bool) -> None:
    if optional:
        parser.add_argument(
            "path",
            nargs="?",
            default=".",
            help="Path to the source root (defaults to current directory).",
        )
    else:
        parser.add_argument("path", help="Path to the source root.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contextmap",
        description="Group Go, Java and C# source files into service contexts.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write debug logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze a source tree and report its service contexts.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    _add_path_argument(analyze_parser, optional=True)
    analyze_parser.add_argument(
        "--format",
        choices=("json", "markdown"),
        default="json",
        help="Report format (default: json).",
    )
    analyze_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the report to this file instead of stdout.",
    )
    analyze_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Threads used for relationship extraction (overrides the config file).",
    )

    graph_parser = subparsers.add_parser(
        "graph",
        help="Print the dependency graph touching one service as JSON.",
    )
    _add_verbose_option(graph_parser, suppress_default=True)
    _add_path_argument(graph_parser, optional=False)
    graph_parser.add_argument("service", help="Service name, e.g. User.")

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1).")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on (default: 8000).")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for contextmap commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    logger = get_logger("cli")

    if args.command == "analyze":
        if args.workers is not None and args.workers < 1:
            parser.exit(1, "--workers must be a positive integer\n")
        try:
            config = _load(args.path)
            analyzer = ContextAnalyzer(config=config, workers=args.workers)
            results = analyzer.analyze_directories()
        except (FileNotFoundError, NotADirectoryError, PermissionError) as exc:
            parser.exit(1, f"{exc}\n")
        except ConfigError as exc:
            parser.exit(1, f"contextmap analyze failed: {exc}\n")

        stats = combined_statistics(results)
        logger.info(
            "Services analyzed: %d, relationships: %d",
            stats["services_analyzed"],
            stats["relationships_found"],
        )
        if args.format == "markdown":
            report = _render_markdown(results, config)
        else:
            report = json.dumps(
                {"statistics": stats, "results": [result_to_dict(result) for result in results]},
                indent=2,
                sort_keys=True,
            )
        if args.output is None:
            print(report)
        else:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(report + "\n", encoding="utf-8")
            print(f"Report written to {_relativize(args.output)}")
    elif args.command == "graph":
        try:
            config = _load(args.path)
            results = ContextAnalyzer(config=config).analyze_directories()
        except (FileNotFoundError, NotADirectoryError, PermissionError) as exc:
            parser.exit(1, f"{exc}\n")
        except ConfigError as exc:
            parser.exit(1, f"contextmap graph failed: {exc}\n")
        graph = combined_dependency_graph(results, args.service)
        print(json.dumps({"service": args.service, **graph_to_dict(graph)}, indent=2))
    elif args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _load(path: str) -> ContextMapConfig:
    root = resolve_root(path)
    return load_config(root)


def _render_markdown(results: List[AnalysisResult], config: ContextMapConfig) -> str:
    renderer = ContextRenderer(config.render.templates_dir, include_diagram=config.render.include_diagram)
    contexts = [context for result in results for context in result.contexts]
    parts = [renderer.render_overview(contexts)]
    parts.extend(renderer.render_service(context) for context in contexts)
    return "\n".join(part.rstrip() + "\n" for part in parts).rstrip()


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
