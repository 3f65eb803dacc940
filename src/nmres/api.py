"""High-level API for nmres.

Thin functions over :class:`~nmres.build_system.BuildSystem` and the archive
inspector. The CLI calls only into this module.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from .build_system import BuildResult, BuildSystem, PackResult, Signer
from .config import BuildConfig, CompressionLevel, load_build_config
from .logging import get_logger
from .packing.inspector import (
    extract_pack as _extract_pack_impl,
    inspect_pack as _inspect_pack_impl,
    validate_pack as _validate_pack_impl,
    verify_entries,
)
from .project import validate_project as _validate_project_impl
from .reporting import get_reporter, task
from .utils.io import generate_encryption_key, load_encryption_key_from_file

__all__ = [
    "PackRequest",
    "build_project",
    "pack_files",
    "validate_project",
    "inspect_pack",
    "validate_pack",
    "verify_pack",
    "extract_pack",
    "generate_key",
    "BuildResult",
    "PackResult",
]


@dataclass(slots=True)
class PackRequest:
    project_path: Path
    output_path: Path
    files: Sequence[str | Path] = ()
    compression: CompressionLevel = CompressionLevel.NONE
    # Path to a 32-byte key file; enables encryption when set.
    key_path: Path | None = None
    fixed_timestamp: int = 0
    build_number: int = 0
    jobs: int = 1


def build_project(
    config: BuildConfig | str | Path, *, signer: Signer | None = None
) -> BuildResult:
    if not isinstance(config, BuildConfig):
        config = load_build_config(config)
    return BuildSystem(config, signer=signer).build()


def pack_files(options: PackRequest) -> PackResult:
    config = BuildConfig(
        project_path=options.project_path,
        output_path=options.output_path.parent,
        compression=options.compression,
        encrypt_assets=options.key_path is not None,
        encryption_key_path=options.key_path,
        fixed_build_timestamp=options.fixed_timestamp,
        build_number=options.build_number,
        jobs=options.jobs,
    )
    system = BuildSystem(config)
    return system.build_pack(
        options.output_path,
        list(options.files),
        encrypt=options.key_path is not None,
        compress=options.compression is not CompressionLevel.NONE,
    )


def validate_project(path: str | Path) -> List[str]:
    problems = _validate_project_impl(path)
    get_reporter().status(
        f"Validate summary: project={Path(path).name} problems={len(problems)}"
    )
    return problems


def inspect_pack(path: str | Path) -> dict:
    return _inspect_pack_impl(path)


def validate_pack(path: str | Path) -> list[str]:
    return _validate_pack_impl(_inspect_pack_impl(path))


def verify_pack(path: str | Path, key_path: str | Path | None = None) -> list[str]:
    """Structural checks plus per-entry content verification."""
    key = load_encryption_key_from_file(key_path) if key_path else None
    with task("verify", f"Verify {Path(path).name}"):
        issues = validate_pack(path)
        if not issues:
            issues = verify_entries(path, key)
    get_reporter().status(
        f"Verify summary: file={Path(path).name} issues={len(issues)}"
    )
    return issues


def extract_pack(
    path: str | Path, dest: str | Path, key_path: str | Path | None = None
) -> List[Path]:
    key = load_encryption_key_from_file(key_path) if key_path else None
    written = _extract_pack_impl(path, dest, key)
    get_reporter().status(
        f"Extract summary: file={Path(path).name} files={len(written)}"
    )
    return written


def generate_key(path: str | Path, *, force: bool = False) -> Path:
    generate_encryption_key(path, force=force)
    get_logger().info("Wrote encryption key %s", path)
    return Path(path)
