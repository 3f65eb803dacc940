"""Build configuration loading (JSON/YAML)."""

from __future__ import annotations
from dataclasses import fields
from enum import Enum
from pathlib import Path
from typing import Any
import json

import yaml

from ..packing.errors import E_CONFIG_FIELD, E_CONFIG_VALUE, config_error
from .models import BuildConfig, BuildPlatform, BuildType, CompressionLevel

__all__ = ["load_build_config", "build_config_from_dict"]

_ENUM_FIELDS: dict[str, type[Enum]] = {
    "platform": BuildPlatform,
    "build_type": BuildType,
    "compression": CompressionLevel,
}
_PATH_FIELDS = {"project_path", "output_path", "encryption_key_path"}
_BOOL_FIELDS = {
    "pack_assets",
    "encrypt_assets",
    "deterministic_build",
    "sign_packs",
}
_INT_FIELDS = {"build_number", "fixed_build_timestamp", "jobs", "max_file_size"}


def load_build_config(path: str | Path) -> BuildConfig:
    p = Path(path)
    if not p.exists():
        raise config_error(
            E_CONFIG_FIELD, f"Config file not found: {p}", {"path": str(p)}
        )
    try:
        text = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise config_error(
            E_CONFIG_VALUE, f"Cannot read {p.name}: {e}", {"path": str(p)}
        ) from e
    try:
        if p.suffix.lower() in {".yaml", ".yml"}:
            data: Any = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise config_error(
            E_CONFIG_VALUE, f"Cannot parse {p.name}: {e}", {"path": str(p)}
        ) from e
    if not isinstance(data, dict):
        raise config_error(
            E_CONFIG_VALUE, "Root of build config must be an object"
        )
    return build_config_from_dict(data, base_dir=p.parent)


def _enum_value(enum_type: type[Enum], key: str, raw: Any) -> Enum:
    if isinstance(raw, enum_type):
        return raw
    if isinstance(raw, str):
        lowered = raw.lower()
        for member in enum_type:
            if member.value == lowered or member.name.lower() == lowered:
                return member
    allowed = ", ".join(m.value for m in enum_type)
    raise config_error(
        E_CONFIG_VALUE,
        f"Invalid {key}: {raw!r} (expected one of {allowed})",
        {"field": key},
    )


def build_config_from_dict(
    data: dict[str, Any], *, base_dir: Path | None = None
) -> BuildConfig:
    known = {f.name for f in fields(BuildConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise config_error(
            E_CONFIG_FIELD,
            f"Unknown config keys: {', '.join(unknown)}",
            {"keys": unknown},
        )
    kwargs: dict[str, Any] = {}
    for key, raw in data.items():
        if key in _ENUM_FIELDS:
            kwargs[key] = _enum_value(_ENUM_FIELDS[key], key, raw)
        elif key in _PATH_FIELDS:
            if raw is None and key == "encryption_key_path":
                kwargs[key] = None
                continue
            if not isinstance(raw, (str, Path)):
                raise config_error(
                    E_CONFIG_VALUE, f"{key} must be a path", {"field": key}
                )
            path = Path(raw)
            if base_dir is not None and not path.is_absolute():
                path = base_dir / path
            kwargs[key] = path
        elif key in _BOOL_FIELDS:
            if not isinstance(raw, bool):
                raise config_error(
                    E_CONFIG_VALUE, f"{key} must be a boolean", {"field": key}
                )
            kwargs[key] = raw
        elif key in _INT_FIELDS:
            if isinstance(raw, bool) or not isinstance(raw, int):
                raise config_error(
                    E_CONFIG_VALUE, f"{key} must be an integer", {"field": key}
                )
            kwargs[key] = raw
        else:
            kwargs[key] = str(raw)
    config = BuildConfig(**kwargs)
    config.validate()
    return config
