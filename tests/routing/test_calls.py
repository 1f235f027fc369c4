"""Tests for composition call classification."""

from __future__ import annotations

import textwrap

from axumdoc.routing.calls import (
    ChainCall,
    FunctionCall,
    LocalName,
    MergeCall,
    NestCall,
    RouteCall,
    RouterRoot,
    Unhandled,
    classify,
    method_bindings,
)
from axumdoc.syntax.source import SourceFile, SourceLoader


def _expression(loader: SourceLoader, expression: str) -> tuple[SourceFile, object]:
    text = textwrap.dedent(
        f"""
        fn build() -> Router {{
            {expression}
        }}
        """
    )
    source = loader.parse_text(text, "src/main.rs")
    body = source.root.named_children[0].child_by_field_name("body")
    return source, body.named_children[-1]


def test_route_call_exposes_receiver_and_arguments(loader: SourceLoader) -> None:
    source, node = _expression(loader, 'Router::new().route("/users", get(list_users))')

    call = classify(source, node)

    assert isinstance(call, RouteCall)
    assert isinstance(classify(source, call.receiver), RouterRoot)
    assert source.text(call.path_arg) == '"/users"'


def test_nest_merge_and_chain(loader: SourceLoader) -> None:
    source, node = _expression(
        loader, 'Router::new().nest("/api", api::router()).merge(admin).layer(TraceLayer::new())'
    )

    layer = classify(source, node)
    assert isinstance(layer, ChainCall) and layer.method == "layer"
    merge = classify(source, layer.receiver)
    assert isinstance(merge, MergeCall)
    assert isinstance(classify(source, merge.target), LocalName)
    nest = classify(source, merge.receiver)
    assert isinstance(nest, NestCall)
    target = classify(source, nest.target)
    assert isinstance(target, FunctionCall)
    assert target.module_segments == ("api",)
    assert target.function_name == "router"


def test_path_reference_and_default_constructor(loader: SourceLoader) -> None:
    source, node = _expression(loader, "crate::routes::build")
    assert classify(source, node) == FunctionCall(node=node, segments=("crate", "routes", "build"))

    source, node = _expression(loader, "axum::Router::default()")
    assert isinstance(classify(source, node), RouterRoot)


def test_unrecognized_shapes_are_unhandled(loader: SourceLoader) -> None:
    source, node = _expression(loader, "if flag { a() } else { b() }")
    call = classify(source, node)
    assert isinstance(call, Unhandled)

    source, node = _expression(loader, 'Router::new().route("/only-path")')
    assert isinstance(classify(source, node), Unhandled)


def test_method_bindings_chain_and_qualified(loader: SourceLoader) -> None:
    source, node = _expression(
        loader, "get(list_users).post(handlers::create_user).layer(auth)"
    )

    bindings = method_bindings(source, node)

    assert [(b.token, b.handler) for b in bindings] == [
        ("get", ("list_users",)),
        ("post", ("handlers", "create_user")),
    ]

    source, node = _expression(loader, "axum::routing::delete(remove)")
    assert [(b.token, b.handler) for b in method_bindings(source, node)] == [("delete", ("remove",))]


def test_method_binding_with_closure_has_no_handler(loader: SourceLoader) -> None:
    source, node = _expression(loader, "get(|| async { \"ok\" })")

    (binding,) = method_bindings(source, node)

    assert binding.token == "get"
    assert binding.handler == ()


def test_method_bindings_reject_non_calls(loader: SourceLoader) -> None:
    source, node = _expression(loader, "handler_service")

    assert method_bindings(source, node) is None
