"""Markdown rendering for service contexts."""

from .builder import ContextRenderer

__all__ = ["ContextRenderer"]
