"""Utilities for loading project configuration files."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from .models import DEFAULT_TITLES


PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"


class StorageConfig(BaseModel):
    backend: str = "file"
    data_file: str = Field(alias="data-file", default="data/loopnotes_data.json")
    kv_directory: str = Field(alias="kv-directory", default="data/kv")
    kv_key: str = Field(alias="kv-key", default="loopnotes_data")
    clamp_on_load: bool = Field(alias="clamp-on-load", default=False)


class ExportConfig(BaseModel):
    directory: str = "outputs/exports"


class DefaultsConfig(BaseModel):
    titles: list[str] = Field(default_factory=lambda: list(DEFAULT_TITLES))


class AppConfig(BaseModel):
    storage: StorageConfig = Field(default_factory=StorageConfig)
    exports: ExportConfig = Field(default_factory=ExportConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)


def resolve_path(value: str | Path, root: Path | None = None) -> Path:
    """Resolve `value` against the project root unless it is absolute."""
    path = Path(value).expanduser()
    if path.is_absolute():
        return path
    return ((root or PROJECT_ROOT) / path).resolve()


def _load_yaml(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def load_app_config(path: Path | None = None) -> AppConfig:
    """Return application config from `app.config.yaml`."""
    target = path or DATA_DIR / "app.config.yaml"
    if path is None and not target.exists():
        return AppConfig()
    data = _load_yaml(target)
    if not isinstance(data, dict):
        raise ValueError(f"{target.name} must contain a mapping.")
    return AppConfig.model_validate(data)
