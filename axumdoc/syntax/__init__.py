"""Rust source loading and declaration lookups."""

from .source import SourceError, SourceFile, SourceLoader

__all__ = ["SourceError", "SourceFile", "SourceLoader"]
