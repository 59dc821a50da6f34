"""Configuration loading for clonepack (.clonepack.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .constants import (
    ARTIFACT_ID,
    ARTIFACT_TITLE,
    CONFIG_FILENAME,
    DEFAULT_IGNORE_PATTERNS,
    DEFAULT_TEXT_EXTENSIONS,
    KIB,
    MAX_FILE_SIZE,
    MAX_TOTAL_SIZE,
)


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class LimitsConfig:
    """Size ceilings in bytes."""

    max_file_size: int = MAX_FILE_SIZE
    max_total_size: int = MAX_TOTAL_SIZE


@dataclass
class ArtifactConfig:
    """Attributes written on the artifact wrapper."""

    id: str = ARTIFACT_ID
    title: str = ARTIFACT_TITLE


@dataclass
class PackConfig:
    """Represents the packing policy, defaults merged with .clonepack.yml."""

    root: Optional[Path] = None
    exclude_paths: List[str] = field(default_factory=list)
    text_extensions: List[str] = field(default_factory=list)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    artifact: ArtifactConfig = field(default_factory=ArtifactConfig)
    classify_workers: int = 1

    @property
    def ignore_patterns(self) -> List[str]:
        return [*DEFAULT_IGNORE_PATTERNS, *self.exclude_paths]

    @property
    def allowed_extensions(self) -> List[str]:
        extra = [ext for ext in self.text_extensions if ext not in DEFAULT_TEXT_EXTENSIONS]
        return sorted(DEFAULT_TEXT_EXTENSIONS) + extra


def load_config(config_path: Path) -> PackConfig:
    """Load configuration from disk; a missing file yields the defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return PackConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    limits = LimitsConfig()
    limits_data = _as_dict(data.get("limits"))
    if limits_data:
        max_file_kib = _as_int(limits_data.get("max_file_kib"))
        max_total_kib = _as_int(limits_data.get("max_total_kib"))
        if max_file_kib is not None:
            limits.max_file_size = _positive(max_file_kib, "limits.max_file_kib") * KIB
        if max_total_kib is not None:
            limits.max_total_size = _positive(max_total_kib, "limits.max_total_kib") * KIB

    artifact = ArtifactConfig()
    artifact_data = _as_dict(data.get("artifact"))
    if artifact_data:
        artifact.id = _as_str(artifact_data.get("id")) or artifact.id
        artifact.title = _as_str(artifact_data.get("title")) or artifact.title

    workers = _as_int(data.get("classify_workers"))

    return PackConfig(
        root=root,
        exclude_paths=_as_str_list(data.get("exclude_paths")),
        text_extensions=[ext.strip().lstrip(".").lower() for ext in _as_str_list(data.get("text_extensions"))],
        limits=limits,
        artifact=artifact,
        classify_workers=_positive(workers, "classify_workers") if workers is not None else 1,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _positive(value: int, key: str) -> int:
    if value <= 0:
        raise ConfigError(f"{key} must be a positive integer, got {value}")
    return value


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = ["ArtifactConfig", "ConfigError", "LimitsConfig", "PackConfig", "load_config"]
