from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

import yaml


DEFAULT_MANIFEST_NAME = "manifest.json"
DEFAULT_EXTENSIONS: Tuple[str, ...] = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg")
DEFAULT_DEBOUNCE_MS = 300


def load_yaml(path: str | Path) -> Dict[str, Any]:
    """Load YAML config into a dict. An empty file yields an empty dict."""
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@dataclass
class AppConfig:
    raw: Dict[str, Any]

    @classmethod
    def from_files(cls, *paths: str | Path) -> "AppConfig":
        merged: Dict[str, Any] = {}
        for path in paths:
            merged = deep_merge(merged, load_yaml(path))
        return cls(raw=merged)


def normalize_extensions(extensions: Iterable[str]) -> Tuple[str, ...]:
    if isinstance(extensions, str):
        raise ValueError(f"extensions must be a list, got the string {extensions!r}")
    normalized = []
    for ext in extensions:
        ext = str(ext).strip().lower()
        if not ext:
            continue
        if not ext.startswith("."):
            ext = "." + ext
        if ext not in normalized:
            normalized.append(ext)
    return tuple(normalized)


@dataclass(frozen=True)
class ManifestSettings:
    media_dir: Path
    manifest_name: str = DEFAULT_MANIFEST_NAME
    extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    atomic_write: bool = True

    def __post_init__(self) -> None:
        if not self.manifest_name or "/" in self.manifest_name or "\\" in self.manifest_name:
            raise ValueError(f"manifest_name must be a bare filename, got {self.manifest_name!r}")
        if not self.extensions:
            raise ValueError("extensions allow-list must not be empty")
        if self.debounce_ms <= 0:
            raise ValueError(f"debounce_ms must be positive, got {self.debounce_ms}")

    @property
    def manifest_path(self) -> Path:
        return self.media_dir / self.manifest_name

    @property
    def debounce_s(self) -> float:
        return self.debounce_ms / 1000.0

    @classmethod
    def from_config(
        cls,
        cfg: AppConfig,
        default_media_dir: str | Path,
        media_dir: Optional[str | Path] = None,
    ) -> "ManifestSettings":
        """Build settings from the ``manifest`` section; ``media_dir`` overrides the config."""
        section = cfg.raw.get("manifest", {}) or {}
        resolved_dir = media_dir if media_dir is not None else section.get("media_dir") or default_media_dir
        return cls(
            media_dir=Path(resolved_dir),
            manifest_name=str(section.get("manifest_name", DEFAULT_MANIFEST_NAME)),
            extensions=normalize_extensions(section.get("extensions", DEFAULT_EXTENSIONS)),
            debounce_ms=int(section.get("debounce_ms", DEFAULT_DEBOUNCE_MS)),
            atomic_write=bool(section.get("atomic_write", True)),
        )
