"""Route topology resolution.

Starting from the entry function, router composition expressions are walked
depth first, receivers before the call that extends them, so routes come out
in source order. Nesting extends the prefix stack, module references move the
location stack, and both are restored on return because contexts are values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set, Tuple

from tree_sitter import Node

from ..handlers import HandlerSignatureReader, response_schema
from ..logging import get_logger
from ..models import (
    Diagnostics,
    HandlerSignature,
    HttpMethod,
    ModuleContext,
    ParameterSource,
    RouteEntry,
)
from ..schema.mapper import TypeMapper
from ..schema.nodes import ObjectSchema
from ..syntax.declarations import (
    find_function,
    find_function_anywhere,
    find_inline_module,
    item_name,
    iter_items,
    string_value,
)
from ..syntax.source import SourceError, SourceFile, SourceLoader
from .calls import (
    ChainCall,
    ChainLink,
    CompositionCall,
    FunctionCall,
    LocalName,
    MergeCall,
    NestCall,
    RouteCall,
    RouterRoot,
    Unhandled,
    classify,
    method_bindings,
    unwrap,
)
from .modules import ROUTER_FILE_PATTERNS, ModuleLocator

ENTRY_FUNCTION_CANDIDATES: Tuple[str, ...] = (
    "app",
    "router",
    "create_router",
    "build_router",
    "routes",
    "main",
)

_ROUTER_MARKERS = ("Router::new", "Router::default", ".route(", ".nest(", ".merge(")
_ROUTER_BINDING_NAMES = {"app", "router", "routes", "api"}
_COMMENTS = {"line_comment", "block_comment"}
_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class EntryError(RuntimeError):
    """The entry file or entry function cannot be used; nothing can be generated."""


class MissingEntryError(EntryError):
    """The base directory or the entry file does not exist."""


@dataclass
class Resolution:
    entry: SourceFile
    entry_function: str
    routes: List[RouteEntry] = field(default_factory=list)
    visited: Set[Tuple[Path, str]] = field(default_factory=set)


@dataclass(frozen=True)
class _Scope:
    """The function being walked plus the item scope it was declared in."""

    source: SourceFile
    items: Node
    trail: Tuple[str, ...]
    function: Node

    def qualified(self, name: str) -> str:
        return "::".join(self.trail + (name,))


class RouteResolver:
    """Walks router composition from an entry function into a flat route list."""

    def __init__(
        self,
        loader: SourceLoader,
        locator: ModuleLocator,
        mapper: TypeMapper,
        handlers: HandlerSignatureReader,
        diagnostics: Diagnostics,
    ) -> None:
        self.loader = loader
        self.locator = locator
        self.mapper = mapper
        self.handlers = handlers
        self.diagnostics = diagnostics
        self.logger = get_logger("routing")
        self._run: Optional[Resolution] = None

    def resolve(self, entry_file: Path, entry_function: Optional[str] = None) -> Resolution:
        if not Path(entry_file).is_file():
            raise MissingEntryError(f"Handler file does not exist: {entry_file}")
        try:
            source = self.loader.load(entry_file)
        except SourceError as exc:
            raise EntryError(f"Cannot read entry file {exc.path}: {exc.reason}") from exc
        if source.has_errors:
            raise EntryError(f"Entry file {source.relative} contains syntax errors")

        function, trail = self._entry_function(source, entry_function)
        scope = _Scope(
            source=source,
            items=self._items_for(source, trail),
            trail=trail,
            function=function,
        )
        name = item_name(source, function)
        run = Resolution(entry=source, entry_function=scope.qualified(name))
        run.visited.add((source.path, scope.qualified(name)))
        self._run = run
        context = ModuleContext(location=self.locator.location_of(source.path) + trail)
        self.logger.info("Resolving routes from %s::%s", source.relative, run.entry_function)
        try:
            self._walk_function(scope, context)
        finally:
            self._run = None
        self.logger.info("Resolved %d route(s)", len(run.routes))
        return run

    # Entry selection ---------------------------------------------------

    def _entry_function(
        self, source: SourceFile, requested: Optional[str]
    ) -> Tuple[Node, Tuple[str, ...]]:
        if requested:
            found = find_function_anywhere(source, requested)
            if found is None:
                raise EntryError(f"Entry function '{requested}' not found in {source.relative}")
            return found
        for candidate in ENTRY_FUNCTION_CANDIDATES:
            function = find_function(source, source.root, candidate)
            if function is not None and self._router_expression(source, function) is not None:
                return function, ()
        for function in iter_items(source.root, "function_item"):
            text = source.text(function.child_by_field_name("body"))
            if "Router::new" in text or "Router::default" in text:
                return function, ()
        raise EntryError(f"No router-building function found in {source.relative}")

    def _items_for(self, source: SourceFile, trail: Tuple[str, ...]) -> Node:
        items = source.root
        for segment in trail:
            body = find_inline_module(source, items, segment)
            if body is None:
                break
            items = body
        return items

    # Function bodies ---------------------------------------------------

    def _router_expression(self, source: SourceFile, function: Node) -> Optional[Node]:
        """The expression a function returns as its router, if one can be found."""
        body = function.child_by_field_name("body")
        if body is None:
            return None
        statements = [child for child in body.named_children if child.type not in _COMMENTS]
        tail = self._tail_expression(source, statements)
        return_type = source.text(function.child_by_field_name("return_type"))
        if tail is not None and ("Router" in return_type or _builds_router(source, tail)):
            return tail
        fallback: Optional[Node] = None
        for statement in statements:
            if statement.type != "let_declaration":
                continue
            value = statement.child_by_field_name("value")
            if value is None:
                continue
            pattern = source.text(statement.child_by_field_name("pattern"))
            if _builds_router(source, value) or pattern in _ROUTER_BINDING_NAMES:
                fallback = value
        return fallback

    def _tail_expression(self, source: SourceFile, statements: List[Node]) -> Optional[Node]:
        if not statements:
            return None
        last = statements[-1]
        if last.type == "expression_statement":
            inner = next((c for c in last.named_children if c.type not in _COMMENTS), None)
            if inner is None:
                return None
            if inner.type == "return_expression":
                return _return_value(inner)
            if source.text(last).rstrip().endswith(";"):
                return None
            return inner
        if last.type == "return_expression":
            return _return_value(last)
        if last.type in {"let_declaration", "function_item", "use_declaration"}:
            return None
        return last

    def _walk_function(self, scope: _Scope, context: ModuleContext) -> None:
        expression = self._router_expression(scope.source, scope.function)
        name = item_name(scope.source, scope.function)
        if expression is None:
            self.diagnostics.warn(
                scope.source.where(scope.function),
                f"Function '{name}' does not return a recognisable router; skipped",
            )
            return
        self._walk(scope, expression, context)

    # Composition -------------------------------------------------------

    def _walk(self, scope: _Scope, node: Node, context: ModuleContext) -> None:
        # Receivers are unrolled first, then links are applied innermost first.
        links: List[ChainLink] = []
        call = classify(scope.source, node)
        while isinstance(call, (RouteCall, NestCall, MergeCall, ChainCall)):
            links.append(call)
            call = classify(scope.source, call.receiver)
        self._origin(scope, call, context)
        for link in reversed(links):
            self._link(scope, link, context)

    def _link(self, scope: _Scope, call: ChainLink, context: ModuleContext) -> None:
        if isinstance(call, RouteCall):
            self._route(scope, call, context)
        elif isinstance(call, NestCall):
            prefix = string_value(scope.source, unwrap(call.prefix_arg))
            if prefix is None:
                self.diagnostics.warn(
                    scope.source.where(call.node),
                    f"Non-literal nest prefix `{scope.source.text(call.prefix_arg)}`; nested routes skipped",
                )
                return
            self._walk(scope, call.target, context.nested(prefix))
        elif isinstance(call, MergeCall):
            self._walk(scope, call.target, context)
        else:
            self.logger.debug("Passing through .%s() at %s", call.method, scope.source.where(call.node))

    def _origin(self, scope: _Scope, call: CompositionCall, context: ModuleContext) -> None:
        """Handle the expression a chain starts from."""
        if isinstance(call, RouterRoot):
            return
        if isinstance(call, FunctionCall):
            self._follow(scope, call.segments, call.node, context)
        elif isinstance(call, LocalName):
            binding = self._let_binding(scope, call.name, call.node)
            if binding is not None:
                self._walk(scope, binding, context)
            else:
                self._follow(scope, (call.name,), call.node, context)
        elif isinstance(call, Unhandled):
            self.diagnostics.warn(
                scope.source.where(call.node),
                f"Unrecognized router expression ({call.reason}); skipped",
            )

    def _let_binding(self, scope: _Scope, name: str, use: Node) -> Optional[Node]:
        """Value of the latest ``let name = ...`` that precedes ``use`` in the function."""
        body = scope.function.child_by_field_name("body")
        if body is None:
            return None
        found: Optional[Node] = None
        for statement in iter_items(body, "let_declaration"):
            if statement.end_byte > use.start_byte:
                break
            pattern = statement.child_by_field_name("pattern")
            if pattern is not None and scope.source.text(pattern) == name:
                found = statement.child_by_field_name("value")
        return found

    def _follow(
        self,
        scope: _Scope,
        segments: Tuple[str, ...],
        node: Node,
        context: ModuleContext,
    ) -> None:
        """Continue into the function a module path such as ``user::router`` names."""
        name = segments[-1]
        module = list(segments[:-1])
        source = scope.source
        items, trail, location = scope.items, scope.trail, context.location

        if module and module[0] == "self":
            module.pop(0)
        while module:
            body = find_inline_module(source, items, module[0])
            if body is None:
                break
            items = body
            trail = trail + (module[0],)
            location = location + (module[0],)
            module.pop(0)

        if module:
            lookup = self.locator.locate(location, module, ROUTER_FILE_PATTERNS)
            if lookup.match is None:
                tried = ", ".join(self.loader.relative(path) for path in lookup.tried)
                self.diagnostics.warn(
                    source.where(node),
                    f"Module file not found for '{'::'.join(segments[:-1])}' (tried: {tried or 'nothing'})",
                )
                return
            try:
                source = self.loader.load(lookup.match.path)
            except SourceError as exc:
                self.diagnostics.warn(source.where(node), f"Could not read {exc.path}: {exc.reason}")
                return
            if source.has_errors:
                self.diagnostics.warn(source.relative, "File contains syntax errors; routes skipped")
                return
            items, trail, location = source.root, (), lookup.match.location

        function = find_function(source, items, name)
        if function is None:
            self.diagnostics.warn(
                scope.source.where(node),
                f"Router function '{'::'.join(segments)}' not found in {source.relative}",
            )
            return
        target = _Scope(source=source, items=items, trail=trail, function=function)
        key = (source.path, target.qualified(name))
        visited = self._run.visited
        if key in visited:
            self.diagnostics.warn(
                scope.source.where(node),
                f"Cyclic router reference to {source.relative}::{target.qualified(name)}; skipped",
            )
            return
        visited.add(key)
        self.logger.debug("Entering %s::%s", source.relative, target.qualified(name))
        self._walk_function(target, context.relocated(location))

    # Routes ------------------------------------------------------------

    def _route(self, scope: _Scope, call: RouteCall, context: ModuleContext) -> None:
        source = scope.source
        path = string_value(source, unwrap(call.path_arg))
        if path is None:
            self.diagnostics.warn(
                source.where(call.node),
                f"Non-literal route path `{source.text(call.path_arg)}`; route skipped",
            )
            return
        full_path = context.full_path(path)
        bindings = method_bindings(source, call.method_router)
        if bindings is None:
            self.diagnostics.warn(
                source.where(call.node),
                f"Unsupported method router `{source.text(call.method_router)}` for {full_path}; route skipped",
            )
            return
        for binding in bindings:
            method = HttpMethod.from_token(binding.token)
            if method is None:
                self.diagnostics.warn(
                    source.where(binding.node),
                    f"Unrecognized HTTP method '{binding.token}' for {full_path}, defaulting to GET",
                )
                method = HttpMethod.GET
            if not binding.handler:
                self.diagnostics.warn(
                    source.where(binding.node),
                    f"Handler for {method.value} {full_path} is not a named function; route skipped",
                )
                continue
            signature = self.handlers.read(
                binding.handler, source, context.location, entry=self._run.entry
            )
            entry = self._entry(source, context, full_path, method, binding.handler, signature)
            self._run.routes.append(entry)
            self.logger.debug("Route %s %s -> %s", method.value, full_path, entry.handler_name)

    def _entry(
        self,
        source: SourceFile,
        context: ModuleContext,
        full_path: str,
        method: HttpMethod,
        handler: Tuple[str, ...],
        signature: Optional[HandlerSignature],
    ) -> RouteEntry:
        if signature is None:
            return RouteEntry(
                full_path=full_path,
                method=method,
                handler_name=handler[-1],
                response_schema=ObjectSchema(),
                module=context.location,
                source_file=source.relative,
            )
        where = f"{method.value} {full_path}"
        request_schema = None
        content_type = "application/json"
        parameters: List[ParameterSource] = []
        for extractor in signature.extractors:
            if extractor.descriptor is None:
                continue
            schema = self.mapper.resolve(extractor.descriptor, context=where)
            if extractor.kind == "Json":
                request_schema, content_type = schema, "application/json"
            elif extractor.kind == "Form":
                request_schema, content_type = schema, _FORM_CONTENT_TYPE
            elif extractor.kind == "Query":
                parameters.append(ParameterSource(location="query", schema=schema))
            elif extractor.kind == "Path":
                parameters.append(ParameterSource(location="path", schema=schema))
        return RouteEntry(
            full_path=full_path,
            method=method,
            handler_name=signature.name or handler[-1],
            response_schema=response_schema(signature.return_type, self.mapper, context=where),
            summary=signature.summary,
            description=signature.description,
            request_schema=request_schema,
            request_content_type=content_type,
            parameter_sources=tuple(parameters),
            module=context.location,
            source_file=signature.file,
        )


def _builds_router(source: SourceFile, node: Node) -> bool:
    text = source.text(node)
    return any(marker in text for marker in _ROUTER_MARKERS)


def _return_value(node: Node) -> Optional[Node]:
    return next((c for c in node.named_children if c.type not in _COMMENTS), None)


__all__ = [
    "ENTRY_FUNCTION_CANDIDATES",
    "EntryError",
    "MissingEntryError",
    "Resolution",
    "RouteResolver",
]
