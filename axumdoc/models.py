"""Core data models shared across axumdoc components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterator, List, Optional, Tuple

from .logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .schema.nodes import SchemaNode
    from .schema.types import TypeDescriptor


class HttpMethod(str, Enum):
    """HTTP verbs understood by the method-router helpers (`get(...)`, `post(...)`)."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"

    @classmethod
    def from_token(cls, token: str) -> Optional["HttpMethod"]:
        """Map a routing helper name such as ``get`` to a method, or None."""
        try:
            return cls(token.strip().upper())
        except ValueError:
            return None


@dataclass(frozen=True)
class Diagnostic:
    """Non-fatal warning about a skipped or degraded resolution step."""

    context: str
    message: str

    def __str__(self) -> str:
        return f"{self.context}: {self.message}" if self.context else self.message


class Diagnostics:
    """Append-only record of diagnostics for one run, mirrored to the log."""

    def __init__(self) -> None:
        self._entries: List[Diagnostic] = []
        self._logger = get_logger("diagnostics")

    def warn(self, context: str, message: str) -> Diagnostic:
        entry = Diagnostic(context=context, message=message)
        self._entries.append(entry)
        self._logger.warning(message, extra={"context": context})
        return entry

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def messages(self) -> List[str]:
        return [str(entry) for entry in self._entries]


@dataclass(frozen=True)
class ModuleContext:
    """Traversal position: path prefixes in scope and the module location.

    Values are immutable; entering a nest or module boundary produces a new
    context, so returning from a branch restores both stacks exactly.
    """

    prefixes: Tuple[str, ...] = ()
    location: Tuple[str, ...] = ()

    def nested(self, prefix: str) -> "ModuleContext":
        return ModuleContext(prefixes=self.prefixes + (prefix,), location=self.location)

    def relocated(self, location: Tuple[str, ...]) -> "ModuleContext":
        return ModuleContext(prefixes=self.prefixes, location=tuple(location))

    def full_path(self, path: str) -> str:
        # Raw concatenation: repeated prefixes and doubled separators are kept as written.
        return "".join(self.prefixes) + path


@dataclass(frozen=True)
class Extractor:
    """A recognised handler parameter such as ``Json<LoginForm>``."""

    kind: str
    type_text: str
    descriptor: Optional["TypeDescriptor"]


@dataclass(frozen=True)
class HandlerSignature:
    """What the handler signature reader learned about one handler function."""

    name: str
    file: str
    extractors: Tuple[Extractor, ...] = ()
    return_type: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class ParameterSource:
    """Schema of a `Query` or `Path` extractor, expanded into parameters on assembly."""

    location: str
    schema: "SchemaNode"


@dataclass(frozen=True)
class RouteEntry:
    """One resolved ``.route(...)`` registration with its fully composed path."""

    full_path: str
    method: HttpMethod
    handler_name: str
    response_schema: "SchemaNode"
    summary: Optional[str] = None
    description: Optional[str] = None
    request_schema: Optional["SchemaNode"] = None
    request_content_type: str = "application/json"
    parameter_sources: Tuple[ParameterSource, ...] = ()
    module: Tuple[str, ...] = ()
    source_file: Optional[str] = None


@dataclass
class FieldDecl:
    """Field of a model struct; tuple fields are named ``_0``, ``_1``, ..."""

    name: str
    type_text: str


@dataclass
class ModelDecl:
    """A struct declaration that becomes a component schema."""

    name: str
    file: str
    fields: List[FieldDecl] = field(default_factory=list)


__all__ = [
    "Diagnostic",
    "Diagnostics",
    "Extractor",
    "FieldDecl",
    "HandlerSignature",
    "HttpMethod",
    "ModelDecl",
    "ModuleContext",
    "ParameterSource",
    "RouteEntry",
]
