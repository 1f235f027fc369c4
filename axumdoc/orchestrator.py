"""Pipeline orchestration for one OpenAPI generation run."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import AxumDocConfig, load_config
from .handlers import HandlerSignatureReader
from .logging import get_logger
from .models import Diagnostics, RouteEntry
from .openapi import DocumentAssembler
from .routing.modules import ModuleLocator
from .routing.resolver import MissingEntryError, RouteResolver
from .schema.mapper import TypeMapper
from .schema.models import ModelReader
from .syntax.source import SourceLoader


@dataclass
class GenerationResult:
    """Outcome of a generation run: the document plus what was learned on the way."""

    document: Dict[str, Any]
    routes: List[RouteEntry]
    diagnostics: Diagnostics
    model_count: int
    entry_function: str

    def to_json(self) -> str:
        return json.dumps(self.document, indent=2, ensure_ascii=False)

    def route_summaries(self) -> List[Dict[str, str]]:
        return [
            {
                "method": route.method.value,
                "path": route.full_path,
                "handler": route.handler_name,
            }
            for route in self.routes
        ]


class Generator:
    """Coordinates source loading, route resolution, model reading and assembly."""

    def __init__(self, config: AxumDocConfig) -> None:
        self.config = config
        self.logger = get_logger("orchestrator")

    @classmethod
    def from_directory(cls, base_dir: Path) -> "Generator":
        return cls(load_config(Path(base_dir)))

    def run(self) -> GenerationResult:
        config = self.config
        base = Path(config.root)
        if not base.is_dir():
            raise MissingEntryError(f"Base directory does not exist: {base}")
        self.logger.info("Starting generation for %s", base)

        diagnostics = Diagnostics()
        loader = SourceLoader(base)
        locator = ModuleLocator(base, config.entry.source_root)
        mapper = TypeMapper(diagnostics)
        handlers = HandlerSignatureReader(loader, locator, diagnostics)
        resolver = RouteResolver(loader, locator, mapper, handlers, diagnostics)

        if not config.model_files:
            diagnostics.warn(
                "models",
                "No model files specified; schemas come only from structs in the parsed sources",
            )

        resolution = resolver.resolve(config.entry_path(), config.entry.function)
        parsed_sources = list(loader.loaded().values())
        catalog = ModelReader(loader, diagnostics).catalog(
            mapper, config.model_paths(), parsed_sources
        )
        document = DocumentAssembler(catalog, diagnostics, config.info).assemble(resolution.routes)

        self.logger.info(
            "Generated %d route(s) and %d model(s) with %d diagnostic(s)",
            len(resolution.routes),
            len(catalog),
            len(diagnostics),
        )
        return GenerationResult(
            document=document,
            routes=resolution.routes,
            diagnostics=diagnostics,
            model_count=len(catalog),
            entry_function=resolution.entry_function,
        )

    def write(self, result: GenerationResult, output: Optional[Path] = None) -> Path:
        path = Path(output) if output is not None else self.config.output_path()
        if not path.is_absolute():
            path = Path(self.config.root) / path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(result.to_json() + "\n", encoding="utf-8")
        self.logger.info("Wrote %s", path)
        return path


__all__ = ["GenerationResult", "Generator"]
