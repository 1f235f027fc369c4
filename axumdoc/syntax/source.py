"""Tree-sitter backed loading of Rust source files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import tree_sitter_rust
from tree_sitter import Language, Node, Parser, Tree

from ..logging import get_logger

RUST_LANGUAGE = Language(tree_sitter_rust.language())


class SourceError(RuntimeError):
    """Raised when a source file cannot be read."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


@dataclass
class SourceFile:
    """A parsed Rust file plus helpers to read node text."""

    path: Path
    relative: str
    source: bytes
    tree: Tree

    @property
    def root(self) -> Node:
        return self.tree.root_node

    @property
    def has_errors(self) -> bool:
        return self.tree.root_node.has_error

    def text(self, node: Optional[Node]) -> str:
        if node is None:
            return ""
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")

    def line(self, node: Node) -> int:
        return node.start_point[0] + 1

    def where(self, node: Optional[Node] = None) -> str:
        """Human readable location used as diagnostic context."""
        if node is None:
            return self.relative
        return f"{self.relative}:{self.line(node)}"


class SourceLoader:
    """Parses files on demand and caches them for the duration of a run."""

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)
        self._parser = Parser(RUST_LANGUAGE)
        self._cache: Dict[Path, SourceFile] = {}
        self.logger = get_logger("syntax")

    def load(self, path: Path) -> SourceFile:
        resolved = Path(path).resolve()
        cached = self._cache.get(resolved)
        if cached is not None:
            return cached
        try:
            source = resolved.read_bytes()
            source.decode("utf-8")
        except OSError as exc:
            raise SourceError(resolved, exc.strerror or str(exc)) from exc
        except UnicodeDecodeError as exc:
            raise SourceError(resolved, "file is not valid UTF-8") from exc
        tree = self._parser.parse(source)
        parsed = SourceFile(
            path=resolved,
            relative=self.relative(resolved),
            source=source,
            tree=tree,
        )
        self._cache[resolved] = parsed
        self.logger.debug("Parsed %s", parsed.relative)
        return parsed

    def parse_text(self, text: str, relative: str = "<memory>") -> SourceFile:
        """Parse in-memory source, bypassing the cache."""
        source = text.encode("utf-8")
        return SourceFile(
            path=self.base_dir / relative,
            relative=relative,
            source=source,
            tree=self._parser.parse(source),
        )

    def relative(self, path: Path) -> str:
        try:
            return Path(path).resolve().relative_to(self.base_dir.resolve()).as_posix()
        except ValueError:
            return Path(path).as_posix()

    def loaded(self) -> Dict[Path, SourceFile]:
        return dict(self._cache)


__all__ = ["RUST_LANGUAGE", "SourceError", "SourceFile", "SourceLoader"]
