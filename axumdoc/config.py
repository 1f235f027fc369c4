"""Configuration loading for axumdoc (.axumdoc.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".axumdoc.yml"

DEFAULT_ENTRY_FILE = "src/main.rs"
DEFAULT_MODEL_FILES = ("src/form.rs", "src/response.rs", "src/types.rs")
DEFAULT_OUTPUT = "openapi.json"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class EntryConfig:
    """Where the router is built."""

    file: str = DEFAULT_ENTRY_FILE
    function: Optional[str] = None
    source_root: str = "src"


@dataclass
class InfoConfig:
    """The ``info`` block of the generated document."""

    title: str = "Generated API"
    version: str = "1.0.0"
    description: Optional[str] = "Auto-generated OpenAPI specification from Axum routes"

    def to_openapi(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {"title": self.title, "version": self.version}
        if self.description:
            info["description"] = self.description
        return info


@dataclass
class AxumDocConfig:
    """Represents the settings defined in .axumdoc.yml."""

    root: Path
    entry: EntryConfig = field(default_factory=EntryConfig)
    model_files: List[str] = field(default_factory=lambda: list(DEFAULT_MODEL_FILES))
    output: str = DEFAULT_OUTPUT
    info: InfoConfig = field(default_factory=InfoConfig)

    def entry_path(self) -> Path:
        return self.root / self.entry.file

    def model_paths(self) -> List[Path]:
        return [self.root / name for name in self.model_files]

    def output_path(self) -> Path:
        return self.root / self.output


def load_config(config_path: Path) -> AxumDocConfig:
    """Load configuration from disk; a missing file yields the defaults."""
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent.resolve()

    if not config_file.exists():
        return AxumDocConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    entry = EntryConfig()
    entry_data = _as_dict(data.get("entry"))
    if entry_data:
        entry.file = _as_str(entry_data.get("file")) or entry.file
        entry.function = _as_str(entry_data.get("function"))
        entry.source_root = _as_str(entry_data.get("source_root")) or entry.source_root

    model_files = list(DEFAULT_MODEL_FILES)
    models_value = data.get("models")
    if isinstance(models_value, dict):
        models_value = models_value.get("files")
    if models_value is not None:
        model_files = _as_str_list(models_value)

    info = InfoConfig()
    info_data = _as_dict(data.get("info"))
    if info_data:
        info.title = _as_str(info_data.get("title")) or info.title
        info.version = _as_str(info_data.get("version")) or info.version
        if "description" in info_data:
            info.description = _as_str(info_data.get("description"))

    return AxumDocConfig(
        root=root,
        entry=entry,
        model_files=model_files,
        output=_as_str(data.get("output")) or DEFAULT_OUTPUT,
        info=info,
    )


def split_model_files(value: str) -> List[str]:
    """``"a.rs, b.rs,"`` -> ``["a.rs", "b.rs"]``."""
    return [part.strip() for part in value.split(",") if part.strip()]


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return split_model_files(value)
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "AxumDocConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "DEFAULT_ENTRY_FILE",
    "DEFAULT_MODEL_FILES",
    "DEFAULT_OUTPUT",
    "EntryConfig",
    "InfoConfig",
    "load_config",
    "split_model_files",
]
