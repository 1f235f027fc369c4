"""Classification of router composition expressions.

Every expression the resolver meets is mapped onto one of a closed set of
shapes. Shapes the resolver does not understand become :class:`Unhandled`,
which the resolver reports and skips.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from tree_sitter import Node

from ..syntax.declarations import path_segments
from ..syntax.source import SourceFile

_COMMENTS = {"line_comment", "block_comment"}
_TRANSPARENT_WRAPPERS = {"parenthesized_expression", "try_expression"}
_ROUTER_CONSTRUCTORS = {"new", "default"}
_METHOD_ROUTER_PASSTHROUGH = {"layer", "route_layer", "with_state"}


@dataclass(frozen=True)
class RouteCall:
    node: Node
    receiver: Node
    path_arg: Node
    method_router: Node


@dataclass(frozen=True)
class NestCall:
    node: Node
    receiver: Node
    prefix_arg: Node
    target: Node


@dataclass(frozen=True)
class MergeCall:
    node: Node
    receiver: Node
    target: Node


@dataclass(frozen=True)
class ChainCall:
    """A router-preserving method such as ``.layer(...)`` or ``.with_state(...)``."""

    node: Node
    receiver: Node
    method: str


@dataclass(frozen=True)
class RouterRoot:
    """``Router::new()`` or ``Router::default()``: the start of a chain."""

    node: Node


@dataclass(frozen=True)
class FunctionCall:
    """A call to (or a reference of) a function that builds a router."""

    node: Node
    segments: Tuple[str, ...]

    @property
    def module_segments(self) -> Tuple[str, ...]:
        return self.segments[:-1]

    @property
    def function_name(self) -> str:
        return self.segments[-1]


@dataclass(frozen=True)
class LocalName:
    """A bare identifier: a ``let`` binding or a same-file function reference."""

    node: Node
    name: str


@dataclass(frozen=True)
class Unhandled:
    node: Node
    reason: str


CompositionCall = Union[
    RouteCall,
    NestCall,
    MergeCall,
    ChainCall,
    RouterRoot,
    FunctionCall,
    LocalName,
    Unhandled,
]

# Calls that extend a receiver router.
ChainLink = Union[RouteCall, NestCall, MergeCall, ChainCall]


@dataclass(frozen=True)
class MethodBinding:
    """One ``method(handler)`` pair from a method router such as ``get(a).post(b)``."""

    token: str
    handler: Tuple[str, ...]
    node: Node


def unwrap(node: Node) -> Node:
    while node.type in _TRANSPARENT_WRAPPERS:
        inner = next((c for c in node.named_children if c.type not in _COMMENTS), None)
        if inner is None:
            break
        node = inner
    return node


def arguments(call: Node) -> List[Node]:
    args = call.child_by_field_name("arguments")
    if args is None:
        return []
    return [child for child in args.named_children if child.type not in _COMMENTS]


def classify(source: SourceFile, node: Node) -> CompositionCall:
    node = unwrap(node)
    if node.type == "call_expression":
        return _classify_call(source, node)
    if node.type == "identifier":
        return LocalName(node=node, name=source.text(node))
    if node.type == "scoped_identifier":
        return FunctionCall(node=node, segments=path_segments(source, node))
    return Unhandled(node=node, reason=f"unsupported {node.type.replace('_', ' ')}")


def _classify_call(source: SourceFile, node: Node) -> CompositionCall:
    function = node.child_by_field_name("function")
    if function is not None and function.type == "generic_function":
        function = function.child_by_field_name("function")
    if function is None:
        return Unhandled(node=node, reason="call without a callee")

    if function.type == "field_expression":
        receiver = function.child_by_field_name("value")
        method = source.text(function.child_by_field_name("field"))
        args = arguments(node)
        if receiver is None:
            return Unhandled(node=node, reason=f".{method}() without a receiver")
        if method == "route":
            if len(args) != 2:
                return Unhandled(node=node, reason=".route() expects a path and a method router")
            return RouteCall(node=node, receiver=receiver, path_arg=args[0], method_router=args[1])
        if method == "nest":
            if len(args) != 2:
                return Unhandled(node=node, reason=".nest() expects a prefix and a router")
            return NestCall(node=node, receiver=receiver, prefix_arg=args[0], target=args[1])
        if method == "merge":
            if len(args) != 1:
                return Unhandled(node=node, reason=".merge() expects a single router")
            return MergeCall(node=node, receiver=receiver, target=args[0])
        return ChainCall(node=node, receiver=receiver, method=method)

    if function.type in {"identifier", "scoped_identifier"}:
        segments = path_segments(source, function)
        if (
            len(segments) >= 2
            and segments[-2] == "Router"
            and segments[-1] in _ROUTER_CONSTRUCTORS
        ):
            return RouterRoot(node=node)
        if not segments:
            return Unhandled(node=node, reason="call to an unnamed function")
        return FunctionCall(node=node, segments=segments)

    return Unhandled(node=node, reason=f"call through {function.type.replace('_', ' ')}")


def method_bindings(source: SourceFile, node: Node) -> Optional[List[MethodBinding]]:
    """Read ``get(handler)`` or ``get(a).post(b)``; None when the shape is not a method router.

    A binding whose argument is not a path (a closure, say) has an empty handler.
    """
    node = unwrap(node)
    if node.type != "call_expression":
        return None
    function = node.child_by_field_name("function")
    if function is None:
        return None
    args = arguments(node)

    if function.type == "field_expression":
        receiver = function.child_by_field_name("value")
        token = source.text(function.child_by_field_name("field"))
        earlier = method_bindings(source, receiver) if receiver is not None else None
        if earlier is None:
            return None
        if token in _METHOD_ROUTER_PASSTHROUGH:
            return earlier
        return earlier + [MethodBinding(token=token, handler=_handler_path(source, args), node=node)]

    if function.type in {"identifier", "scoped_identifier"}:
        segments = path_segments(source, function)
        if not segments:
            return None
        return [MethodBinding(token=segments[-1], handler=_handler_path(source, args), node=node)]

    return None


def _handler_path(source: SourceFile, args: List[Node]) -> Tuple[str, ...]:
    if len(args) != 1:
        return ()
    arg = unwrap(args[0])
    if arg.type not in {"identifier", "scoped_identifier"}:
        return ()
    return path_segments(source, arg)


__all__ = [
    "ChainCall",
    "ChainLink",
    "CompositionCall",
    "FunctionCall",
    "LocalName",
    "MergeCall",
    "MethodBinding",
    "NestCall",
    "RouteCall",
    "RouterRoot",
    "Unhandled",
    "arguments",
    "classify",
    "method_bindings",
    "unwrap",
]
