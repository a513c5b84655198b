"""Service context mapping for Go, Java and C# source trees."""

from .analyzer import ContextAnalyzer, analyze_directory
from .config import ConfigError, ContextMapConfig, load_config

__version__ = "0.1.0"

__all__ = ["ConfigError", "ContextAnalyzer", "ContextMapConfig", "analyze_directory", "load_config", "__version__"]
