"""Type mapping engine: type descriptors to schema nodes."""

from __future__ import annotations

from typing import Dict, Optional

from ..models import Diagnostics
from .nodes import (
    ArraySchema,
    BooleanSchema,
    IntegerSchema,
    MapSchema,
    NumberSchema,
    ObjectSchema,
    ReferenceSchema,
    SchemaNode,
    StringSchema,
    nullable,
)
from .types import (
    Generic,
    Named,
    Primitive,
    TypeDescriptor,
    TypeSyntaxError,
    bare_name,
    parse_type,
)

UUID_EXAMPLE = "550e8400-e29b-41d4-a716-446655440000"
DATE_TIME_EXAMPLE = "2024-01-01T00:00:00Z"

_PRIMITIVES: Dict[str, SchemaNode] = {
    "String": StringSchema(),
    "str": StringSchema(),
    "char": StringSchema(),
    "bool": BooleanSchema(),
    "i8": IntegerSchema(format="int32"),
    "i16": IntegerSchema(format="int32"),
    "i32": IntegerSchema(format="int32"),
    "u8": IntegerSchema(format="int32"),
    "u16": IntegerSchema(format="int32"),
    "u32": IntegerSchema(format="int32"),
    "i64": IntegerSchema(format="int64"),
    "u64": IntegerSchema(format="int64"),
    "i128": IntegerSchema(format="int64"),
    "u128": IntegerSchema(format="int64"),
    "isize": IntegerSchema(format="int64"),
    "usize": IntegerSchema(format="int64"),
    "f32": NumberSchema(format="float"),
    "f64": NumberSchema(format="double"),
}

# Matched on the last path segment, so `uuid::Uuid` and `Uuid` agree.
_WELL_KNOWN: Dict[str, SchemaNode] = {
    "Uuid": StringSchema(format="uuid", example=UUID_EXAMPLE),
    "DateTime": StringSchema(format="date-time", example=DATE_TIME_EXAMPLE),
    "NaiveDateTime": StringSchema(format="date-time", example=DATE_TIME_EXAMPLE),
    "OffsetDateTime": StringSchema(format="date-time", example=DATE_TIME_EXAMPLE),
    "PrimitiveDateTime": StringSchema(format="date-time", example=DATE_TIME_EXAMPLE),
    "NaiveDate": StringSchema(format="date"),
    "Date": StringSchema(format="date"),
    "Duration": StringSchema(format="duration"),
    "Decimal": StringSchema(format="decimal"),
    "Value": ObjectSchema(),
}

ARRAY_LIKE = frozenset({"Vec", "VecDeque", "HashSet", "BTreeSet", "IndexSet", "LinkedList"})
OPTIONAL_LIKE = frozenset({"Option"})
MAP_LIKE = frozenset({"HashMap", "BTreeMap", "IndexMap"})
TRANSPARENT = frozenset({"Box", "Arc", "Rc", "Cow"})


class TypeMapper:
    """Converts type descriptors into schema nodes.

    Resolution is total: malformed input becomes an empty object schema and a
    diagnostic. Names the mapper does not know become references, whether or
    not a component with that name ends up in the document.
    """

    def __init__(self, diagnostics: Optional[Diagnostics] = None) -> None:
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    def resolve_text(self, type_text: str, *, context: str = "type") -> SchemaNode:
        try:
            descriptor = parse_type(type_text)
        except TypeSyntaxError as exc:
            self.diagnostics.warn(
                context, f"Unknown type '{type_text}', defaulting to object ({exc})"
            )
            return ObjectSchema()
        return self.resolve(descriptor, context=context)

    def resolve(self, descriptor: TypeDescriptor, *, context: str = "type") -> SchemaNode:
        if isinstance(descriptor, Primitive):
            known = _PRIMITIVES.get(descriptor.kind)
            if known is None:
                self.diagnostics.warn(
                    context, f"Unknown primitive '{descriptor.kind}', defaulting to object"
                )
                return ObjectSchema()
            return known
        if isinstance(descriptor, Named):
            return self._resolve_named(descriptor.name)
        if isinstance(descriptor, Generic):
            return self._resolve_generic(descriptor, context)
        self.diagnostics.warn(context, f"Unsupported type descriptor {descriptor!r}")
        return ObjectSchema()

    def _resolve_named(self, name: str) -> SchemaNode:
        bare = bare_name(name)
        known = _WELL_KNOWN.get(bare)
        if known is not None:
            return known
        return ReferenceSchema(schema_name=bare)

    def _resolve_generic(self, descriptor: Generic, context: str) -> SchemaNode:
        base = descriptor.bare
        args = descriptor.args
        if not args and base in ARRAY_LIKE | OPTIONAL_LIKE | TRANSPARENT:
            self.diagnostics.warn(
                context,
                f"Generic type '{descriptor.base}' has no type argument, defaulting to object",
            )
            return ObjectSchema()
        if base in ARRAY_LIKE:
            return ArraySchema(items=self.resolve(args[0], context=context))
        if base in OPTIONAL_LIKE:
            return nullable(self.resolve(args[0], context=context))
        if base in MAP_LIKE:
            if len(args) != 2:
                self.diagnostics.warn(
                    context, f"Map type '{descriptor.base}' expects key and value types"
                )
                return MapSchema(value_schema=ObjectSchema())
            return MapSchema(value_schema=self.resolve(args[1], context=context))
        if base in TRANSPARENT:
            return self.resolve(args[-1], context=context)
        # `DateTime<Utc>` and friends keep their well-known format.
        return self._resolve_named(descriptor.base)


__all__ = [
    "ARRAY_LIKE",
    "DATE_TIME_EXAMPLE",
    "MAP_LIKE",
    "OPTIONAL_LIKE",
    "TRANSPARENT",
    "TypeMapper",
    "UUID_EXAMPLE",
]
