"""Model declaration reading and component schema generation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..logging import get_logger
from ..models import Diagnostics, ModelDecl
from ..syntax.declarations import read_structs
from ..syntax.source import SourceError, SourceFile, SourceLoader
from .mapper import TypeMapper
from .nodes import NullableSchema, ObjectSchema


@dataclass(frozen=True)
class ModelSchema:
    """A model declaration with its fields already mapped to schema nodes."""

    decl: ModelDecl
    schema: ObjectSchema

    @property
    def required(self) -> List[str]:
        return [
            name
            for name, node in self.schema.properties.items()
            if not isinstance(node, NullableSchema)
        ]

    def to_openapi(self) -> Dict[str, Any]:
        payload = self.schema.to_openapi()
        required = self.required
        if required:
            payload["required"] = required
        return payload


class ModelCatalog:
    """Named component schemas; the first declaration of a name wins."""

    def __init__(self, mapper: TypeMapper, diagnostics: Optional[Diagnostics] = None) -> None:
        self.mapper = mapper
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self._models: Dict[str, ModelSchema] = {}

    def add(self, decl: ModelDecl, *, explicit: bool = False) -> None:
        existing = self._models.get(decl.name)
        if existing is not None:
            if explicit and existing.decl.file != decl.file:
                self.diagnostics.warn(
                    decl.file,
                    f"Model '{decl.name}' already declared in {existing.decl.file}; keeping the first",
                )
            return
        properties = {
            field.name: self.mapper.resolve_text(field.type_text, context=f"{decl.name}.{field.name}")
            for field in decl.fields
        }
        self._models[decl.name] = ModelSchema(decl=decl, schema=ObjectSchema.of(properties))

    def get(self, name: str) -> Optional[ModelSchema]:
        return self._models.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def __len__(self) -> int:
        return len(self._models)

    def names(self) -> List[str]:
        return list(self._models)

    def components(self) -> Dict[str, Dict[str, Any]]:
        return {name: model.to_openapi() for name, model in sorted(self._models.items())}


class ModelReader:
    """Reads struct declarations from model files and already parsed sources."""

    def __init__(self, loader: SourceLoader, diagnostics: Optional[Diagnostics] = None) -> None:
        self.loader = loader
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.logger = get_logger("models")

    def read_files(self, paths: Iterable[Path]) -> List[ModelDecl]:
        models: List[ModelDecl] = []
        for path in paths:
            try:
                source = self.loader.load(path)
            except SourceError as exc:
                self.diagnostics.warn(
                    self.loader.relative(path), f"Model file not found or unreadable: {exc.reason}"
                )
                continue
            if source.has_errors:
                self.diagnostics.warn(source.relative, "Model file contains syntax errors; reading what parsed")
            found = self.read_source(source)
            self.logger.info("Parsed %d model(s) from %s", len(found), source.relative)
            models.extend(found)
        return models

    def read_source(self, source: SourceFile) -> List[ModelDecl]:
        return read_structs(source)

    def catalog(
        self,
        mapper: TypeMapper,
        model_files: Iterable[Path],
        sources: Iterable[SourceFile] = (),
    ) -> ModelCatalog:
        """Build the catalog: model files first, then structs of other parsed sources."""
        catalog = ModelCatalog(mapper, self.diagnostics)
        model_files = list(model_files)
        for decl in self.read_files(model_files):
            catalog.add(decl, explicit=True)
        explicit_paths = {Path(path).resolve() for path in model_files}
        for source in sources:
            if source.path in explicit_paths:
                continue
            for decl in self.read_source(source):
                catalog.add(decl)
        return catalog


__all__ = ["ModelCatalog", "ModelReader", "ModelSchema"]
