"""Configuration loading for contextmap (.contextmap.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".contextmap.yml"

SUPPORTED_LANGUAGES: tuple[str, ...] = ("go", "java", "csharp")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class AnalysisConfig:
    """Settings for the relationship analysis phase."""

    workers: int = 1


@dataclass
class RenderConfig:
    """Markdown rendering settings."""

    templates_dir: Optional[Path] = None
    include_diagram: bool = True


@dataclass
class ContextMapConfig:
    """Represents the settings defined in .contextmap.yml."""

    root: Path
    source_directories: List[Path] = field(default_factory=list)
    languages: List[str] = field(default_factory=lambda: list(SUPPORTED_LANGUAGES))
    exclude_dirs: List[str] = field(default_factory=list)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    render: RenderConfig = field(default_factory=RenderConfig)

    def analysis_roots(self) -> List[Path]:
        """Directories to analyze; the config root when none are listed."""
        return list(self.source_directories) or [self.root]


def load_config(config_path: Path) -> ContextMapConfig:
    """Load configuration from a directory or an explicit config file path."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ContextMapConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    source_directories = [
        (root / entry).resolve() for entry in _as_str_list(data.get("source_directories"))
    ]

    languages = [language.lower() for language in _as_str_list(data.get("languages"))]
    unknown = sorted(set(languages) - set(SUPPORTED_LANGUAGES))
    if unknown:
        raise ConfigError(f"Unsupported languages in {CONFIG_FILENAME}: {', '.join(unknown)}")

    analysis_data = _as_dict(data.get("analysis"))
    analysis = AnalysisConfig()
    workers = _as_int(analysis_data.get("workers"))
    if workers is not None:
        if workers < 1:
            raise ConfigError("analysis.workers must be a positive integer")
        analysis.workers = workers

    render_data = _as_dict(data.get("render"))
    render = RenderConfig()
    templates_dir = _as_str(render_data.get("templates_dir"))
    if templates_dir:
        render.templates_dir = root / templates_dir
    include_diagram = _as_bool(render_data.get("include_diagram"))
    if include_diagram is not None:
        render.include_diagram = include_diagram

    return ContextMapConfig(
        root=root,
        source_directories=source_directories,
        languages=languages or list(SUPPORTED_LANGUAGES),
        exclude_dirs=_as_str_list(data.get("exclude_dirs")),
        analysis=analysis,
        render=render,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError as exc:
            raise ConfigError(f"Expected an integer, got {value!r}") from exc
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "AnalysisConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "ContextMapConfig",
    "RenderConfig",
    "SUPPORTED_LANGUAGES",
    "load_config",
]
