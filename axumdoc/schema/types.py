"""Structural type descriptors parsed from Rust type text."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

PRIMITIVE_KINDS = frozenset(
    {
        "String",
        "str",
        "char",
        "bool",
        "i8",
        "i16",
        "i32",
        "i64",
        "i128",
        "isize",
        "u8",
        "u16",
        "u32",
        "u64",
        "u128",
        "usize",
        "f32",
        "f64",
    }
)

_PATH = re.compile(r"(?:::)?[A-Za-z_][A-Za-z0-9_]*(?:\s*::\s*[A-Za-z_][A-Za-z0-9_]*)*")
_LIFETIME = re.compile(r"'[A-Za-z_][A-Za-z0-9_]*")
_MUT = re.compile(r"mut\s+")
_WHITESPACE = re.compile(r"\s+")


class TypeSyntaxError(ValueError):
    """Raised when type text cannot be read as a supported type expression."""


@dataclass(frozen=True)
class Primitive:
    kind: str


@dataclass(frozen=True)
class Named:
    name: str

    @property
    def bare(self) -> str:
        return bare_name(self.name)


@dataclass(frozen=True)
class Generic:
    base: str
    args: Tuple["TypeDescriptor", ...]

    @property
    def bare(self) -> str:
        return bare_name(self.base)


TypeDescriptor = Union[Primitive, Named, Generic]


def bare_name(path: str) -> str:
    """Return the last ``::`` segment of a path."""
    return path.rsplit("::", 1)[-1]


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def parse_type(text: str) -> TypeDescriptor:
    """Parse type text such as ``Option<Vec<&'a str>>`` into a descriptor.

    Reference markers, ``mut`` and lifetimes are stripped; lifetime arguments
    are dropped from generic argument lists. Tuples, function types and
    ``impl``/``dyn`` traits are rejected with :class:`TypeSyntaxError`.
    """
    cleaned = collapse_whitespace(text or "")
    if not cleaned:
        raise TypeSyntaxError("empty type")
    parser = _TypeParser(cleaned)
    return parser.parse()


def format_type(descriptor: TypeDescriptor) -> str:
    """Render a descriptor back to compact type text."""
    if isinstance(descriptor, Primitive):
        return descriptor.kind
    if isinstance(descriptor, Named):
        return descriptor.name
    inner = ", ".join(format_type(arg) for arg in descriptor.args)
    return f"{descriptor.base}<{inner}>"


class _TypeParser:
    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0

    def parse(self) -> TypeDescriptor:
        result = self._type()
        self._skip_ws()
        if result is None:
            raise TypeSyntaxError(f"lifetime is not a type: {self._text!r}")
        if self._pos != len(self._text):
            raise TypeSyntaxError(
                f"unexpected {self._text[self._pos:]!r} in {self._text!r}"
            )
        return result

    def _type(self) -> Optional[TypeDescriptor]:
        """Parse one type; returns None for a bare lifetime argument."""
        while True:
            self._skip_ws()
            if self._peek("&"):
                self._pos += 1
                continue
            lifetime = _LIFETIME.match(self._text, self._pos)
            if lifetime:
                self._pos = lifetime.end()
                self._skip_ws()
                if self._peek(",") or self._peek(">") or self._pos == len(self._text):
                    return None
                continue
            mut = _MUT.match(self._text, self._pos)
            if mut:
                self._pos = mut.end()
                continue
            break

        if self._peek("["):
            return self._slice()
        if self._peek("("):
            raise TypeSyntaxError(f"tuple types are not supported: {self._text!r}")

        match = _PATH.match(self._text, self._pos)
        if not match:
            raise TypeSyntaxError(f"expected a type at {self._text[self._pos:]!r}")
        self._pos = match.end()
        path = match.group(0).replace(" ", "").lstrip(":")
        if path in {"impl", "dyn", "fn"}:
            raise TypeSyntaxError(f"{path} types are not supported: {self._text!r}")

        self._skip_ws()
        if not self._peek("<"):
            return _leaf(path)
        self._pos += 1
        args = []
        while True:
            arg = self._type()
            if arg is not None:
                args.append(arg)
            self._skip_ws()
            if self._peek(","):
                self._pos += 1
                self._skip_ws()
                if self._peek(">"):
                    self._pos += 1
                    break
                continue
            if self._peek(">"):
                self._pos += 1
                break
            raise TypeSyntaxError(f"unbalanced generic arguments in {self._text!r}")
        if not args:
            return _leaf(path)
        return Generic(base=path, args=tuple(args))

    def _slice(self) -> TypeDescriptor:
        self._pos += 1
        inner = self._type()
        if inner is None:
            raise TypeSyntaxError(f"lifetime is not an element type: {self._text!r}")
        self._skip_ws()
        if self._peek(";"):
            end = self._text.find("]", self._pos)
            if end < 0:
                raise TypeSyntaxError(f"unterminated array type in {self._text!r}")
            self._pos = end
        if not self._peek("]"):
            raise TypeSyntaxError(f"unterminated slice type in {self._text!r}")
        self._pos += 1
        return Generic(base="Vec", args=(inner,))

    def _peek(self, token: str) -> bool:
        return self._text.startswith(token, self._pos)

    def _skip_ws(self) -> None:
        while self._pos < len(self._text) and self._text[self._pos] == " ":
            self._pos += 1


def _leaf(path: str) -> TypeDescriptor:
    last = bare_name(path)
    if last in PRIMITIVE_KINDS:
        return Primitive(kind=last)
    return Named(name=path)


__all__ = [
    "Generic",
    "Named",
    "PRIMITIVE_KINDS",
    "Primitive",
    "TypeDescriptor",
    "TypeSyntaxError",
    "bare_name",
    "collapse_whitespace",
    "format_type",
    "parse_type",
]
