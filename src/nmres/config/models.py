"""Build configuration model."""

from __future__ import annotations
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
import re

from ..packing.compression import CompressionLevel
from ..packing.constants import DEFAULT_MAX_FILE_SIZE, MAX_TIMESTAMP
from ..packing.errors import E_CONFIG_FIELD, E_CONFIG_VALUE, config_error

__all__ = [
    "BuildPlatform",
    "BuildType",
    "CompressionLevel",
    "BuildConfig",
]

_SEMVER = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?$"
)


class BuildPlatform(Enum):
    WINDOWS = "windows"
    LINUX = "linux"
    MACOS = "macos"
    WEB = "web"
    ANDROID = "android"
    IOS = "ios"


class BuildType(Enum):
    DEBUG = "debug"
    RELEASE = "release"


@dataclass(frozen=True, slots=True)
class BuildConfig:
    version: str = "1.0.0"
    build_number: int = 1
    platform: BuildPlatform = BuildPlatform.WINDOWS
    build_type: BuildType = BuildType.RELEASE
    pack_assets: bool = True
    encrypt_assets: bool = False
    compression: CompressionLevel = CompressionLevel.BALANCED
    deterministic_build: bool = True
    # Seconds since epoch; 0 means "use the wall clock".
    fixed_build_timestamp: int = 0
    sign_packs: bool = False
    project_path: Path = field(default_factory=Path)
    output_path: Path = field(default_factory=lambda: Path("build"))
    encryption_key_path: Optional[Path] = None
    # Worker threads for the per-file pipeline; output order never depends on it.
    jobs: int = 1
    max_file_size: int = DEFAULT_MAX_FILE_SIZE

    def validate(self) -> None:
        if not isinstance(self.version, str) or not _SEMVER.match(self.version):
            raise config_error(
                E_CONFIG_VALUE,
                f"Invalid semantic version: {self.version!r}",
                {"field": "version"},
            )
        if self.build_number < 0:
            raise config_error(
                E_CONFIG_VALUE,
                "build_number must be non-negative",
                {"field": "build_number"},
            )
        if not 0 <= self.fixed_build_timestamp <= MAX_TIMESTAMP:
            raise config_error(
                E_CONFIG_VALUE,
                "fixed_build_timestamp out of range",
                {"field": "fixed_build_timestamp"},
            )
        if self.jobs < 1:
            raise config_error(
                E_CONFIG_VALUE, "jobs must be >= 1", {"field": "jobs"}
            )
        if self.max_file_size <= 0:
            raise config_error(
                E_CONFIG_VALUE,
                "max_file_size must be positive",
                {"field": "max_file_size"},
            )
        if self.encrypt_assets and self.encryption_key_path is None:
            raise config_error(
                E_CONFIG_FIELD,
                "encrypt_assets requires encryption_key_path",
                {"field": "encryption_key_path"},
            )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, Path):
                value = str(value)
            out[f.name] = value
        return out
