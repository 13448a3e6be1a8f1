"""
config.py

Settings loader for wifidata.

Features:
- YAML/TOML settings file, detected by suffix (YAML first when ambiguous)
- ``WIFIDATA_*`` environment overrides applied on top of the file
- ~ and $ENV expansion in path-like values; relative source paths resolve
  against the settings file's directory
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
import os
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

__all__ = [
    "ENV_PREFIX",
    "Settings",
    "load_settings",
]

ENV_PREFIX = "WIFIDATA_"


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///wifidata.sqlite"
    source_path: Optional[str] = None
    source_url_env: str = "WIFIDATA_SOURCE_URL"
    default_page_size: int = 20
    max_page_size: int = 500
    progress_every: int = 5000
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8080

    def __post_init__(self):
        if self.default_page_size < 1:
            raise ValueError("default_page_size must be >= 1")
        if self.max_page_size < self.default_page_size:
            raise ValueError("max_page_size must be >= default_page_size")
        if self.progress_every < 1:
            raise ValueError("progress_every must be >= 1")


# ------------------------------
# Loading utilities (YAML/TOML)
# ------------------------------


def _load_yaml(text: str) -> dict:
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError("YAML root must be a mapping (dict).")
    return data


def _load_toml(text: str) -> dict:
    import tomllib

    data = tomllib.loads(text)
    if not isinstance(data, dict):
        raise ValueError("TOML root must be a mapping (dict).")
    return data


def _detect_and_load(path: Path) -> dict:
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix in (".yaml", ".yml"):
        return _load_yaml(text)
    if suffix == ".toml":
        return _load_toml(text)
    # Last resort: try YAML first, then TOML
    try:
        return _load_yaml(text)
    except Exception:
        return _load_toml(text)


# ------------------------------
# Helpers
# ------------------------------


def _expand_path(value: str) -> str:
    """Expand ~ and $ENV in a path-like string, but leave URLs untouched."""
    if isinstance(value, str) and ("://" not in value):
        return os.path.expandvars(os.path.expanduser(value))
    return value


def _coerce(name: str, value: Any) -> Any:
    target = {f.name: f.type for f in fields(Settings)}[name]
    if value is None:
        return None
    if target == "int":
        return int(value)
    return str(value)


def _apply(settings: Settings, raw: Mapping[str, Any], origin: str) -> Settings:
    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Unknown settings in {origin}: {', '.join(unknown)}")
    try:
        updates = {k: _coerce(k, v) for k, v in raw.items()}
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid setting value in {origin}: {exc}") from exc
    return replace(settings, **updates)


def _env_overrides(env: Mapping[str, str]) -> dict[str, str]:
    names = {f.name for f in fields(Settings)}
    out: dict[str, str] = {}
    for name in names:
        key = ENV_PREFIX + name.upper()
        if key in env and env[key] != "":
            out[name] = env[key]
    return out


def load_settings(
    path: str | Path | None = None, env: Mapping[str, str] | None = None
) -> Settings:
    """Build :class:`Settings` from defaults, an optional file and the environment."""

    env = os.environ if env is None else env
    settings = Settings()

    if path is not None:
        cfg_path = Path(_expand_path(str(path)))
        raw = _detect_and_load(cfg_path)
        settings = _apply(settings, raw, str(cfg_path))
        if settings.source_path:
            source = Path(_expand_path(settings.source_path))
            if not source.is_absolute() and "://" not in settings.source_path:
                source = cfg_path.resolve().parent / source
            settings = replace(settings, source_path=str(source))

    overrides = _env_overrides(env)
    if overrides:
        settings = _apply(settings, overrides, "environment")
        if "source_path" in overrides:
            settings = replace(settings, source_path=_expand_path(settings.source_path))
    return settings
