"""Handler signature reading: extractors, return types and doc comments."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple, Union

from tree_sitter import Node

from .logging import get_logger
from .models import Diagnostics, Extractor, HandlerSignature
from .routing.modules import HANDLER_FILE_PATTERNS, ModuleLocator
from .schema.mapper import TypeMapper
from .schema.nodes import ObjectSchema, SchemaNode, StringSchema
from .schema.types import (
    Generic,
    Named,
    TypeDescriptor,
    TypeSyntaxError,
    bare_name,
    collapse_whitespace,
    format_type,
    parse_type,
)
from .syntax.declarations import doc_lines, find_function_anywhere, split_doc, use_bindings
from .syntax.source import SourceError, SourceFile, SourceLoader

EXTRACTOR_KINDS = ("Json", "Query", "Path", "Form")

# Module files in the order Rust itself looks for them.
_MODULE_FILE_PATTERNS: Tuple[str, ...] = ("{module}.rs", "{module}/mod.rs")

_BODY_WRAPPERS = {"Json"}
_FALLIBLE = {"Result"}
_TEXT_RESPONSES = {"Html"}
_OPAQUE_RESPONSES = {"StatusCode", "Response", "Redirect", "impl"}


class HandlerSignatureReader:
    """Locates handler functions and reads what their signatures declare.

    Lookup order for a handler referenced as ``a::b::name`` from a router file:
    the module path itself, the router file, handler files of the router's
    module, the file a ``use`` declaration points at, and finally the entry file.
    """

    def __init__(
        self,
        loader: SourceLoader,
        locator: ModuleLocator,
        diagnostics: Optional[Diagnostics] = None,
    ) -> None:
        self.loader = loader
        self.locator = locator
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.logger = get_logger("handlers")

    def read(
        self,
        handler: Sequence[str],
        site: SourceFile,
        location: Sequence[str],
        entry: Optional[SourceFile] = None,
    ) -> Optional[HandlerSignature]:
        name = handler[-1]
        searched: List[str] = []
        for source in self._candidate_files(tuple(handler), site, tuple(location), entry):
            searched.append(source.relative)
            found = find_function_anywhere(source, name)
            if found is not None:
                self.logger.debug("Handler %s found in %s", name, source.relative)
                return self.signature(source, found[0])
        self.diagnostics.warn(
            site.relative,
            f"Handler '{'::'.join(handler)}' not found (searched: {', '.join(searched) or 'nothing'})",
        )
        return None

    def signature(self, source: SourceFile, function: Node) -> HandlerSignature:
        aliases = use_bindings(source)
        extractors: List[Extractor] = []
        parameters = function.child_by_field_name("parameters")
        if parameters is not None:
            for parameter in parameters.named_children:
                if parameter.type != "parameter":
                    continue
                extractor = self._extractor(source, parameter, aliases)
                if extractor is not None:
                    extractors.append(extractor)
        return_node = function.child_by_field_name("return_type")
        summary, description = split_doc(doc_lines(source, function))
        return HandlerSignature(
            name=source.text(function.child_by_field_name("name")),
            file=source.relative,
            extractors=tuple(extractors),
            return_type=source.text(return_node) if return_node is not None else None,
            summary=summary,
            description=description,
        )

    def _extractor(
        self, source: SourceFile, parameter: Node, aliases: Dict[str, Tuple[str, ...]]
    ) -> Optional[Extractor]:
        type_text = source.text(parameter.child_by_field_name("type"))
        if not type_text:
            return None
        try:
            descriptor = parse_type(type_text)
        except TypeSyntaxError:
            self.logger.debug("Skipping parameter type %r", type_text)
            return None
        if not isinstance(descriptor, Generic) or not descriptor.args:
            return None
        kind = _canonical_name(descriptor.base, aliases)
        if kind not in EXTRACTOR_KINDS:
            return None
        inner = descriptor.args[0]
        return Extractor(kind=kind, type_text=format_type(inner), descriptor=inner)

    def _candidate_files(
        self,
        handler: Tuple[str, ...],
        site: SourceFile,
        location: Tuple[str, ...],
        entry: Optional[SourceFile],
    ) -> Iterator[SourceFile]:
        seen: Set[Path] = set()

        def load(path: Path) -> Optional[SourceFile]:
            path = path.resolve()
            if path in seen:
                return None
            seen.add(path)
            try:
                return self.loader.load(path)
            except SourceError as exc:
                self.diagnostics.warn(self.loader.relative(path), f"Could not read file: {exc.reason}")
                return None

        def probe(base: Tuple[str, ...], module: Tuple[str, ...]) -> Iterator[SourceFile]:
            for patterns in (_MODULE_FILE_PATTERNS, HANDLER_FILE_PATTERNS):
                for match in self.locator.existing(base, module, patterns):
                    source = load(match.path)
                    if source is not None:
                        yield source

        module = handler[:-1]
        if module:
            yield from probe(location, module)
        if site.path not in seen:
            seen.add(site.path)
            yield site
        for match in self.locator.existing(location[:-1], location[-1:], HANDLER_FILE_PATTERNS):
            source = load(match.path)
            if source is not None:
                yield source
        target = use_bindings(site).get(handler[0] if module else handler[-1])
        if target is not None:
            imported = target[:-1] if not module else target + module[1:]
            if imported:
                yield from probe(location, imported)
        if entry is not None and entry.path not in seen:
            seen.add(entry.path)
            yield entry


def response_schema(
    return_type: Optional[str], mapper: TypeMapper, *, context: str = "response"
) -> SchemaNode:
    """Schema of the response body a handler's return type produces."""
    if return_type is None or collapse_whitespace(return_type) in {"", "()"}:
        return ObjectSchema()
    try:
        descriptor = parse_type(return_type)
    except TypeSyntaxError:
        text = return_type.strip()
        if text.startswith("impl"):
            return ObjectSchema()
        if text.startswith("(") and text.endswith(")"):
            # `(StatusCode, Json<T>)`: the body is the last element.
            parts = _split_top_level(text[1:-1])
            if len(parts) >= 2:
                return response_schema(parts[-1], mapper, context=context)
        head, _, rest = text.partition("<")
        if bare_name(head.strip()) in _FALLIBLE and rest.endswith(">"):
            # `Result<Json<T>, (StatusCode, String)>`: only the success type matters.
            parts = _split_top_level(rest[:-1])
            if parts:
                return response_schema(parts[0], mapper, context=context)
        return mapper.resolve_text(return_type, context=context)
    body = response_body(descriptor)
    if body is None:
        return ObjectSchema()
    if isinstance(body, StringSchema):
        return body
    return mapper.resolve(body, context=context)


def response_body(descriptor: TypeDescriptor) -> Union[TypeDescriptor, StringSchema, None]:
    """Unwrap ``Result<Json<T>, E>`` and similar down to ``T``.

    Returns a schema for plain-text responses, None when no body type is known.
    """
    while True:
        if isinstance(descriptor, Generic):
            base = descriptor.bare
            if base in _BODY_WRAPPERS or base in _FALLIBLE:
                descriptor = descriptor.args[0]
                continue
            if base in _TEXT_RESPONSES:
                return StringSchema()
            if base in _OPAQUE_RESPONSES:
                return None
            return descriptor
        if isinstance(descriptor, Named):
            if descriptor.bare in _TEXT_RESPONSES:
                return StringSchema()
            if descriptor.bare in _OPAQUE_RESPONSES:
                return None
        return descriptor


def _split_top_level(text: str) -> List[str]:
    parts: List[str] = []
    depth = 0
    current: List[str] = []
    for char in text:
        if char in "<([":
            depth += 1
        elif char in ">)]":
            depth -= 1
        if char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    parts.append("".join(current).strip())
    return [part for part in parts if part]


def _canonical_name(base: str, aliases: Dict[str, Tuple[str, ...]]) -> str:
    if "::" not in base and base in aliases:
        return aliases[base][-1]
    return bare_name(base)


__all__ = [
    "EXTRACTOR_KINDS",
    "HandlerSignatureReader",
    "response_body",
    "response_schema",
]
