"""Type descriptors, schema nodes and the type mapping engine."""

from .mapper import TypeMapper
from .nodes import SchemaNode
from .types import TypeDescriptor, parse_type

__all__ = ["SchemaNode", "TypeDescriptor", "TypeMapper", "parse_type"]
