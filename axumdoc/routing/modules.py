"""Module file resolution for cross-file router and handler references."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Set, Tuple

# Probe order for a module that is expected to expose a router function.
ROUTER_FILE_PATTERNS: Tuple[str, ...] = (
    "{module}/handlers.rs",
    "{module}/mod.rs",
    "{module}.rs",
)

# Probe order for the file holding a module's handler functions.
HANDLER_FILE_PATTERNS: Tuple[str, ...] = (
    "{module}_handler.rs",
    "{module}/handlers.rs",
    "{module}/handler.rs",
    "{module}.rs",
    "{module}/mod.rs",
)

_CRATE_ROOT_FILES: Tuple[str, ...] = ("main.rs", "lib.rs")
_MODULE_DEFINITION_FILES = {"mod.rs", "main.rs", "lib.rs"}


@dataclass(frozen=True)
class ModuleMatch:
    """A located module file and the location stack of the module it defines."""

    path: Path
    location: Tuple[str, ...]


@dataclass(frozen=True)
class ModuleLookup:
    match: Optional[ModuleMatch]
    tried: Tuple[Path, ...]


class ModuleLocator:
    """Maps module paths, relative to a location stack, onto files under the source root.

    A reference is first resolved as a child of the current location (nested
    module) and, failing that, as a child of the parent location (sibling
    module).
    """

    def __init__(self, base_dir: Path, source_root: str = "src") -> None:
        self.base_dir = Path(base_dir)
        self.source_root = self.base_dir / source_root

    def location_of(self, file_path: Path) -> Tuple[str, ...]:
        """``src/modules/user/mod.rs`` -> ``("modules", "user")``."""
        path = Path(file_path)
        for anchor in (self.source_root, self.base_dir):
            try:
                relative = path.resolve().relative_to(anchor.resolve())
                break
            except ValueError:
                continue
        else:
            relative = Path(path.name)
        segments: List[str] = []
        for part in relative.parts:
            if part in _MODULE_DEFINITION_FILES:
                continue
            name = part[:-3] if part.endswith(".rs") else part
            if name:
                segments.append(name)
        return tuple(segments)

    @staticmethod
    def compose(location: Sequence[str], segments: Sequence[str]) -> Optional[Tuple[str, ...]]:
        """Apply ``crate``/``super``/``self`` and plain segments to a location stack."""
        result = list(location)
        for segment in segments:
            if segment == "crate":
                result = []
            elif segment == "super":
                if not result:
                    return None
                result.pop()
            elif segment == "self":
                continue
            else:
                result.append(segment)
        return tuple(result)

    def candidates(self, module: Sequence[str], patterns: Sequence[str]) -> List[Path]:
        if not module:
            return [self.source_root / name for name in _CRATE_ROOT_FILES]
        joined = "/".join(module)
        return [self.source_root / pattern.format(module=joined) for pattern in patterns]

    def locate(
        self,
        location: Sequence[str],
        segments: Sequence[str],
        patterns: Sequence[str] = ROUTER_FILE_PATTERNS,
    ) -> ModuleLookup:
        """Return the first existing candidate file together with every path probed."""
        tried: List[Path] = []
        for module in self._interpretations(location, segments):
            for candidate in self.candidates(module, patterns):
                tried.append(candidate)
                if candidate.is_file():
                    return ModuleLookup(
                        match=ModuleMatch(path=candidate, location=module),
                        tried=tuple(tried),
                    )
        return ModuleLookup(match=None, tried=tuple(tried))

    def existing(
        self,
        location: Sequence[str],
        segments: Sequence[str],
        patterns: Sequence[str],
    ) -> Iterator[ModuleMatch]:
        """Yield every existing candidate file in probe order."""
        seen: Set[Path] = set()
        for module in self._interpretations(location, segments):
            for candidate in self.candidates(module, patterns):
                if candidate in seen or not candidate.is_file():
                    continue
                seen.add(candidate)
                yield ModuleMatch(path=candidate, location=module)

    def _interpretations(
        self, location: Sequence[str], segments: Sequence[str]
    ) -> List[Tuple[str, ...]]:
        modules: List[Tuple[str, ...]] = []
        nested = self.compose(location, segments)
        if nested is not None:
            modules.append(nested)
        anchored = bool(segments) and segments[0] in {"crate", "super", "self"}
        if location and not anchored:
            sibling = self.compose(location[:-1], segments)
            if sibling is not None and sibling not in modules:
                modules.append(sibling)
        return modules


__all__ = [
    "HANDLER_FILE_PATTERNS",
    "ModuleLocator",
    "ModuleLookup",
    "ModuleMatch",
    "ROUTER_FILE_PATTERNS",
]
