"""OpenAPI document assembly from the route table and the model catalog."""

from __future__ import annotations

import re
from typing import Any, Dict, Iterator, List, Optional, Sequence, Set, Tuple

from .config import InfoConfig
from .logging import get_logger
from .models import Diagnostics, ParameterSource, RouteEntry
from .schema.models import ModelCatalog
from .schema.nodes import (
    REF_PREFIX,
    ArraySchema,
    MapSchema,
    NullableSchema,
    ObjectSchema,
    ReferenceSchema,
    SchemaNode,
    StringSchema,
    strip_nullable,
)

OPENAPI_VERSION = "3.0.0"
SUCCESS_DESCRIPTION = "Successful response"

_PATH_PARAMETER = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)|\{\*?([A-Za-z_][A-Za-z0-9_]*)\}")


def path_parameter_names(path: str) -> List[str]:
    """Names of ``:id`` and ``{id}`` style parameters, in order of appearance."""
    names: List[str] = []
    for match in _PATH_PARAMETER.finditer(path):
        name = match.group(1) or match.group(2)
        if name not in names:
            names.append(name)
    return names


class DocumentAssembler:
    """Builds the OpenAPI document; diagnostics cover duplicates and dangling references."""

    def __init__(
        self,
        catalog: ModelCatalog,
        diagnostics: Optional[Diagnostics] = None,
        info: Optional[InfoConfig] = None,
    ) -> None:
        self.catalog = catalog
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.info = info or InfoConfig()
        self.logger = get_logger("openapi")

    def assemble(self, routes: Sequence[RouteEntry]) -> Dict[str, Any]:
        paths: Dict[str, Dict[str, Any]] = {}
        owners: Dict[Tuple[str, str], RouteEntry] = {}
        for route in routes:
            method = route.method.value.lower()
            operations = paths.setdefault(route.full_path, {})
            previous = owners.get((route.full_path, method))
            if previous is not None:
                self.diagnostics.warn(
                    route.source_file or route.full_path,
                    f"Duplicate route {route.method.value} {route.full_path}: "
                    f"'{route.handler_name}' replaces '{previous.handler_name}'",
                )
            owners[(route.full_path, method)] = route
            operations[method] = self.operation(route)

        schemas = self.catalog.components()
        self._check_references(paths, schemas)
        document: Dict[str, Any] = {
            "openapi": OPENAPI_VERSION,
            "info": self.info.to_openapi(),
            "paths": paths,
            "components": {"schemas": schemas},
        }
        self.logger.info(
            "Assembled %d path(s) and %d component schema(s)", len(paths), len(schemas)
        )
        return document

    def operation(self, route: RouteEntry) -> Dict[str, Any]:
        operation: Dict[str, Any] = {
            "summary": route.summary or f"{route.method.value} {route.handler_name}",
            "operationId": route.handler_name,
        }
        if route.description:
            operation["description"] = route.description
        if route.module:
            operation["tags"] = ["::".join(route.module)]
        parameters = self.parameters(route)
        if parameters:
            operation["parameters"] = parameters
        if route.request_schema is not None:
            operation["requestBody"] = {
                "required": True,
                "content": {
                    route.request_content_type: {"schema": route.request_schema.to_openapi()}
                },
            }
        operation["responses"] = {
            "200": {
                "description": SUCCESS_DESCRIPTION,
                "content": {"application/json": {"schema": route.response_schema.to_openapi()}},
            }
        }
        return operation

    def parameters(self, route: RouteEntry) -> List[Dict[str, Any]]:
        """Extractor-derived parameters followed by path parameters not already covered."""
        parameters: List[Dict[str, Any]] = []
        seen: Set[Tuple[str, str]] = set()
        scalar_path: List[SchemaNode] = []
        for source in route.parameter_sources:
            expanded = self._expand(route, source)
            if expanded is None:
                if source.location == "path":
                    scalar_path.append(source.schema)
                continue
            for parameter in expanded:
                key = (parameter["name"], parameter["in"])
                if key not in seen:
                    seen.add(key)
                    parameters.append(parameter)

        names = path_parameter_names(route.full_path)
        for name in names:
            if (name, "path") in seen:
                continue
            schema: SchemaNode = StringSchema()
            if len(names) == 1 and len(scalar_path) == 1:
                schema = strip_nullable(scalar_path[0])
            parameters.append(
                {"name": name, "in": "path", "required": True, "schema": schema.to_openapi()}
            )
            seen.add((name, "path"))
        return parameters

    def _expand(self, route: RouteEntry, source: ParameterSource) -> Optional[List[Dict[str, Any]]]:
        """One parameter per field when the extractor wraps a known model.

        Returns None for scalar extractors, which only type path parameters.
        """
        target = strip_nullable(source.schema)
        if isinstance(target, ReferenceSchema):
            model = self.catalog.get(target.schema_name)
            if model is None:
                self.diagnostics.warn(
                    f"{route.method.value} {route.full_path}",
                    f"Cannot expand {source.location} parameters of unknown model '{target.schema_name}'",
                )
                return []
            return [
                {
                    "name": name,
                    "in": source.location,
                    "required": source.location == "path" or not isinstance(node, NullableSchema),
                    "schema": strip_nullable(node).to_openapi(),
                }
                for name, node in model.schema.properties.items()
            ]
        if isinstance(target, (ObjectSchema, MapSchema)):
            # Free-form query maps describe no fixed parameter names.
            self.logger.debug(
                "Skipping free-form %s extractor on %s", source.location, route.full_path
            )
            return []
        if isinstance(target, ArraySchema) and source.location == "query":
            return []
        return None

    def _check_references(
        self, paths: Dict[str, Dict[str, Any]], schemas: Dict[str, Dict[str, Any]]
    ) -> None:
        reported: Set[str] = set()
        for ref in _iter_refs(paths, schemas):
            name = ref[len(REF_PREFIX):] if ref.startswith(REF_PREFIX) else ref
            if name in schemas or name in reported:
                continue
            reported.add(name)
            self.diagnostics.warn(
                "components",
                f"Schema '{name}' is referenced but not defined; add its declaring file to the model files",
            )


def _iter_refs(*values: Any) -> Iterator[str]:
    for value in values:
        if isinstance(value, dict):
            ref = value.get("$ref")
            if isinstance(ref, str):
                yield ref
            yield from _iter_refs(*value.values())
        elif isinstance(value, list):
            yield from _iter_refs(*value)


__all__ = [
    "DocumentAssembler",
    "OPENAPI_VERSION",
    "SUCCESS_DESCRIPTION",
    "path_parameter_names",
]
