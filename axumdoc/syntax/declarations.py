"""Declaration lookups over parsed Rust files.

These helpers answer the questions the resolver and the readers ask of a
syntax tree: where is function ``f``, which inline ``mod`` blocks exist, what
doc text precedes an item, which names does a ``use`` declaration bring in.
"""

from __future__ import annotations

import re
from typing import Dict, Iterator, List, Optional, Tuple

from tree_sitter import Node

from ..models import FieldDecl, ModelDecl
from .source import SourceFile

_DOC_ATTRIBUTE = re.compile(r'#\s*\[\s*doc\s*=\s*"((?:[^"\\]|\\.)*)"\s*\]', re.DOTALL)
_RAW_STRING = re.compile(r'^r(#*)"(.*)"\1$', re.DOTALL)
_GENERIC_ARGS = re.compile(r"<[^<>]*>")
_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
    "\\": "\\",
    '"': '"',
    "'": "'",
}

_LEADING_TRIVIA = {"line_comment", "block_comment", "attribute_item"}
_ITEM_CONTAINERS = {
    "source_file",
    "mod_item",
    "declaration_list",
    "function_item",
    "impl_item",
    "trait_item",
    "block",
}


def iter_items(scope: Node, kind: str) -> Iterator[Node]:
    """Yield direct children of ``scope`` (a file or a ``mod`` body) of the given kind."""
    for child in scope.named_children:
        if child.type == kind:
            yield child


def item_name(source: SourceFile, item: Node) -> str:
    return source.text(item.child_by_field_name("name"))


def find_function(source: SourceFile, scope: Node, name: str) -> Optional[Node]:
    for item in iter_items(scope, "function_item"):
        if item_name(source, item) == name:
            return item
    return None


def find_inline_module(source: SourceFile, scope: Node, name: str) -> Optional[Node]:
    """Return the body of ``mod name { ... }`` declared in ``scope``, if any."""
    for item in iter_items(scope, "mod_item"):
        if item_name(source, item) != name:
            continue
        body = item.child_by_field_name("body")
        if body is not None:
            return body
    return None


def find_function_anywhere(
    source: SourceFile, name: str
) -> Optional[Tuple[Node, Tuple[str, ...]]]:
    """Search the file and its inline modules; returns the item and its module path."""
    return _search_function(source, source.root, name, ())


def _search_function(
    source: SourceFile, scope: Node, name: str, trail: Tuple[str, ...]
) -> Optional[Tuple[Node, Tuple[str, ...]]]:
    found = find_function(source, scope, name)
    if found is not None:
        return found, trail
    for item in iter_items(scope, "mod_item"):
        body = item.child_by_field_name("body")
        if body is None:
            continue
        nested = _search_function(source, body, name, trail + (item_name(source, item),))
        if nested is not None:
            return nested
    return None


def doc_lines(source: SourceFile, item: Node) -> List[str]:
    """Collect outer doc comment lines preceding an item, trimmed and in order."""
    collected: List[List[str]] = []
    sibling = item.prev_sibling
    while sibling is not None and sibling.type in _LEADING_TRIVIA:
        text = source.text(sibling)
        if sibling.type == "line_comment":
            if text.startswith("///") and not text.startswith("////"):
                collected.append([text[3:].strip()])
        elif sibling.type == "block_comment":
            if text.startswith("/**") and not text.startswith("/***"):
                body = text[3:-2] if text.endswith("*/") else text[3:]
                collected.append([line.strip().lstrip("*").strip() for line in body.splitlines()])
        else:
            match = _DOC_ATTRIBUTE.search(text)
            if match:
                collected.append([_unescape(match.group(1)).strip()])
        sibling = sibling.prev_sibling
    lines: List[str] = []
    for chunk in reversed(collected):
        lines.extend(chunk)
    return lines


def split_doc(lines: List[str]) -> Tuple[Optional[str], Optional[str]]:
    """Split doc lines into a summary and a description, dropping blank lines."""
    non_blank = [line for line in lines if line]
    if not non_blank:
        return None, None
    summary = non_blank[0]
    description = "\n".join(non_blank[1:]) or None
    return summary, description


def string_value(source: SourceFile, node: Optional[Node]) -> Optional[str]:
    """Return the value of a string literal node, or None for anything else."""
    if node is None:
        return None
    if node.type == "string_literal":
        parts: List[str] = []
        saw_content = False
        for child in node.named_children:
            if child.type == "string_content":
                parts.append(source.text(child))
                saw_content = True
            elif child.type == "escape_sequence":
                parts.append(_unescape(source.text(child)))
                saw_content = True
        if saw_content:
            return "".join(parts)
        text = source.text(node)
        return _unescape(text[1:-1]) if len(text) >= 2 else ""
    if node.type == "raw_string_literal":
        match = _RAW_STRING.match(source.text(node))
        return match.group(2) if match else None
    return None


def path_segments(source: SourceFile, node: Optional[Node]) -> Tuple[str, ...]:
    """Split a path expression such as ``crate::modules::router`` into segments."""
    if node is None:
        return ()
    text = source.text(node)
    previous = None
    while previous != text:
        previous = text
        text = _GENERIC_ARGS.sub("", text)
    return tuple(part.strip() for part in text.split("::") if part.strip())


def use_bindings(source: SourceFile) -> Dict[str, Tuple[str, ...]]:
    """Map each name a ``use`` declaration binds to the path it stands for.

    ``use axum::extract::Path as AxumPath;`` binds ``AxumPath`` to
    ``("axum", "extract", "Path")``. Glob imports bind nothing.
    """
    bindings: Dict[str, Tuple[str, ...]] = {}
    for node in _walk_items(source.root):
        if node.type != "use_declaration":
            continue
        argument = node.child_by_field_name("argument")
        if argument is None:
            continue
        for local, target in _flatten_use(source, argument, ()):
            bindings[local] = target
    return bindings


def _flatten_use(
    source: SourceFile, node: Node, prefix: Tuple[str, ...]
) -> Iterator[Tuple[str, Tuple[str, ...]]]:
    kind = node.type
    if kind in {"identifier", "scoped_identifier", "self", "super", "crate"}:
        segments = prefix + path_segments(source, node)
        if segments and segments[-1] == "self":
            segments = segments[:-1]
        if segments:
            yield segments[-1], segments
    elif kind == "use_as_clause":
        segments = prefix + path_segments(source, node.child_by_field_name("path"))
        alias = source.text(node.child_by_field_name("alias"))
        if alias and alias != "_":
            yield alias, segments
    elif kind == "scoped_use_list":
        inner_prefix = prefix + path_segments(source, node.child_by_field_name("path"))
        use_list = node.child_by_field_name("list")
        if use_list is not None:
            yield from _flatten_use(source, use_list, inner_prefix)
    elif kind == "use_list":
        for child in node.named_children:
            yield from _flatten_use(source, child, prefix)


def read_structs(source: SourceFile) -> List[ModelDecl]:
    """Read struct declarations, including those inside inline modules."""
    models: List[ModelDecl] = []
    for node in _walk_items(source.root):
        if node.type != "struct_item":
            continue
        name = item_name(source, node)
        if not name:
            continue
        model = ModelDecl(name=name, file=source.relative)
        body = node.child_by_field_name("body")
        if body is not None and body.type == "field_declaration_list":
            for field_node in iter_items(body, "field_declaration"):
                model.fields.append(
                    FieldDecl(
                        name=source.text(field_node.child_by_field_name("name")),
                        type_text=source.text(field_node.child_by_field_name("type")),
                    )
                )
        elif body is not None and body.type == "ordered_field_declaration_list":
            for index, type_node in enumerate(body.children_by_field_name("type")):
                model.fields.append(FieldDecl(name=f"_{index}", type_text=source.text(type_node)))
        models.append(model)
    return models


def _walk_items(node: Node) -> Iterator[Node]:
    """Pre-order walk without recursion that descends through item containers only.

    Expressions are yielded but never entered, so a long router chain costs one step.
    """
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        if current.type in _ITEM_CONTAINERS:
            stack.extend(reversed(current.named_children))


def _unescape(text: str) -> str:
    result: List[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char == "\\" and index + 1 < len(text):
            replacement = _ESCAPES.get(text[index + 1])
            if replacement is not None:
                result.append(replacement)
                index += 2
                continue
        result.append(char)
        index += 1
    return "".join(result)


__all__ = [
    "doc_lines",
    "find_function",
    "find_function_anywhere",
    "find_inline_module",
    "item_name",
    "iter_items",
    "path_segments",
    "read_structs",
    "split_doc",
    "string_value",
    "use_bindings",
]
