"""Schema node variants and their OpenAPI wire shape."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

REF_PREFIX = "#/components/schemas/"


@dataclass(frozen=True)
class StringSchema:
    format: Optional[str] = None
    example: Optional[str] = None

    def to_openapi(self) -> Dict[str, Any]:
        return _scalar("string", self.format, self.example)


@dataclass(frozen=True)
class IntegerSchema:
    format: Optional[str] = None

    def to_openapi(self) -> Dict[str, Any]:
        return _scalar("integer", self.format)


@dataclass(frozen=True)
class NumberSchema:
    format: Optional[str] = None

    def to_openapi(self) -> Dict[str, Any]:
        return _scalar("number", self.format)


@dataclass(frozen=True)
class BooleanSchema:
    def to_openapi(self) -> Dict[str, Any]:
        return {"type": "boolean"}


@dataclass(frozen=True)
class ArraySchema:
    items: "SchemaNode"

    def to_openapi(self) -> Dict[str, Any]:
        return {"type": "array", "items": self.items.to_openapi()}


@dataclass(frozen=True)
class MapSchema:
    value_schema: "SchemaNode"

    def to_openapi(self) -> Dict[str, Any]:
        return {"type": "object", "additionalProperties": self.value_schema.to_openapi()}


@dataclass(frozen=True)
class ObjectSchema:
    """Object with named properties held as ordered ``(name, schema)`` pairs."""

    fields: Tuple[Tuple[str, "SchemaNode"], ...] = ()

    @classmethod
    def of(cls, properties: Mapping[str, "SchemaNode"]) -> "ObjectSchema":
        return cls(fields=tuple(properties.items()))

    @property
    def properties(self) -> Dict[str, "SchemaNode"]:
        return dict(self.fields)

    def to_openapi(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": "object"}
        if self.properties:
            payload["properties"] = {
                name: schema.to_openapi() for name, schema in self.properties.items()
            }
        return payload


@dataclass(frozen=True)
class NullableSchema:
    inner: "SchemaNode"

    def to_openapi(self) -> Dict[str, Any]:
        payload = dict(self.inner.to_openapi())
        payload["nullable"] = True
        return payload


@dataclass(frozen=True)
class ReferenceSchema:
    schema_name: str

    @property
    def ref(self) -> str:
        return f"{REF_PREFIX}{self.schema_name}"

    def to_openapi(self) -> Dict[str, Any]:
        return {"$ref": self.ref}


SchemaNode = Union[
    StringSchema,
    IntegerSchema,
    NumberSchema,
    BooleanSchema,
    ArraySchema,
    MapSchema,
    ObjectSchema,
    NullableSchema,
    ReferenceSchema,
]


def nullable(schema: SchemaNode) -> NullableSchema:
    """Mark a schema nullable; already-nullable schemas are returned unchanged."""
    if isinstance(schema, NullableSchema):
        return schema
    return NullableSchema(inner=schema)


def strip_nullable(schema: SchemaNode) -> SchemaNode:
    return schema.inner if isinstance(schema, NullableSchema) else schema


def iter_references(schema: SchemaNode) -> Iterator[ReferenceSchema]:
    """Yield every reference reachable from ``schema``, depth first."""
    if isinstance(schema, ReferenceSchema):
        yield schema
    elif isinstance(schema, ArraySchema):
        yield from iter_references(schema.items)
    elif isinstance(schema, MapSchema):
        yield from iter_references(schema.value_schema)
    elif isinstance(schema, NullableSchema):
        yield from iter_references(schema.inner)
    elif isinstance(schema, ObjectSchema):
        for _, child in schema.fields:
            yield from iter_references(child)


def _scalar(kind: str, fmt: Optional[str], example: Optional[str] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"type": kind}
    if fmt:
        payload["format"] = fmt
    if example:
        payload["example"] = example
    return payload


__all__ = [
    "ArraySchema",
    "BooleanSchema",
    "IntegerSchema",
    "MapSchema",
    "NullableSchema",
    "NumberSchema",
    "ObjectSchema",
    "REF_PREFIX",
    "ReferenceSchema",
    "SchemaNode",
    "StringSchema",
    "iter_references",
    "nullable",
    "strip_nullable",
]
