"""Build orchestrator.

:class:`BuildSystem` owns one :class:`BuildConfig` and drives a build through
``UNCONFIGURED -> CONFIGURED -> VALIDATING -> PACKING -> WRITTEN``. Any
failure moves it to ``FAILED`` with the originating error kept in
``last_error`` and re-raised to the caller.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from .build_utils import get_executable_extension, get_platform_name
from .config import BuildConfig, BuildType, CompressionLevel
from .logging import get_logger, section, step
from .manifest import write_packs_index
from .packing.constants import (
    BUILD_INFO_FILE,
    PACK_EXTENSION,
    PACKS_INDEX_FILE,
    REQUIRED_PROJECT_DIRS,
)
from .packing.crypto import check_key
from .packing.errors import (
    BuildIOError,
    ConfigurationError,
    ValidationError,
    E_CONFIG_FIELD,
    E_NOT_CONFIGURED,
    E_PROJECT_INVALID,
    E_SIGN,
)
from .packing.packers import ResourceEntry
from .packing.planner import PackOptions, build_pack_plan, collect_inputs
from .packing.writer import write_pack
from .project import discover_resources, validate_project
from .reporting import get_reporter, task
from .utils.io import (
    load_encryption_key_from_file,
    safe_read_file,
    write_bytes_atomic,
)
from .utils.paths import normalize_vfs_path, sanitize_output_path

__all__ = [
    "BuildState",
    "PackResult",
    "BuildResult",
    "Signer",
    "BuildSystem",
]

# Receives the SHA-256 of a pack body and returns an opaque signature.
Signer = Callable[[bytes], bytes]

PACKS_DIR = "packs"
SIGNATURE_SUFFIX = ".sig"


class BuildState(Enum):
    UNCONFIGURED = auto()
    CONFIGURED = auto()
    VALIDATING = auto()
    PACKING = auto()
    WRITTEN = auto()
    FAILED = auto()


@dataclass(frozen=True, slots=True)
class PackResult:
    output_file: Path
    resource_count: int
    bytes_written: int
    crc32: int
    sha256: bytes
    pack_flags: int
    timestamp: int
    entries: tuple[ResourceEntry, ...] = ()
    signature_file: Optional[Path] = None

    def to_dict(self) -> dict:
        return {
            "file": self.output_file.name,
            "size": self.bytes_written,
            "resource_count": self.resource_count,
            "crc32": f"{self.crc32:08x}",
            "sha256": self.sha256.hex(),
            "flags": self.pack_flags,
            "signature": self.signature_file.name if self.signature_file else None,
        }


@dataclass(slots=True)
class BuildResult:
    output_dir: Path
    timestamp: int
    build_number: int
    packs: List[PackResult] = field(default_factory=list)
    copied_files: List[Path] = field(default_factory=list)
    packs_index_file: Optional[Path] = None
    build_info_file: Optional[Path] = None


class BuildSystem:
    def __init__(
        self,
        config: BuildConfig | None = None,
        *,
        signer: Signer | None = None,
    ) -> None:
        self._config: BuildConfig | None = None
        self._key: bytes | None = None
        self.signer = signer
        self.state = BuildState.UNCONFIGURED
        self.last_error: Exception | None = None
        if config is not None:
            self.configure(config)

    @property
    def config(self) -> BuildConfig:
        if self._config is None:
            raise ConfigurationError(
                E_NOT_CONFIGURED, "BuildSystem has not been configured"
            )
        return self._config

    def configure(self, config: BuildConfig) -> None:
        config.validate()
        self._config = config
        self._key = None
        self.last_error = None
        self.state = BuildState.CONFIGURED

    def set_encryption_key(self, key: bytes) -> None:
        """Use ``key`` instead of ``encryption_key_path`` until the next configure."""
        self._key = check_key(key)

    def get_build_timestamp(self) -> int:
        cfg = self.config
        if cfg.deterministic_build and cfg.fixed_build_timestamp:
            return cfg.fixed_build_timestamp
        return int(time.time())

    def validate_project(self, project_path: str | Path | None = None) -> List[str]:
        root = Path(project_path) if project_path is not None else self.config.project_path
        previous = self.state
        self.state = BuildState.VALIDATING
        try:
            problems = validate_project(root)
        finally:
            self.state = previous
        for p in problems:
            get_logger().warning(p)
        return problems

    def _encryption_key(self) -> bytes:
        if self._key is not None:
            return self._key
        path = self.config.encryption_key_path
        if path is None:
            raise ConfigurationError(
                E_CONFIG_FIELD,
                "Encryption requested but no key is configured",
                {"field": "encryption_key_path"},
            )
        # not cached; configure() may name another file
        return load_encryption_key_from_file(path)

    def _pack_options(self, encrypt: bool, compress: bool) -> PackOptions:
        cfg = self.config
        return PackOptions(
            compression=cfg.compression if compress else CompressionLevel.NONE,
            encrypt=encrypt,
            key=self._encryption_key() if encrypt else None,
            deterministic=cfg.deterministic_build,
            verify_compression=cfg.build_type is BuildType.DEBUG,
            max_file_size=cfg.max_file_size,
            jobs=cfg.jobs,
        )

    def _fail(self, err: Exception) -> None:
        self.state = BuildState.FAILED
        self.last_error = err
        get_logger().error("Build failed: %s", err)

    def _write_signature(self, path: Path, digest: bytes) -> None:
        try:
            signature = self.signer(digest)
        except Exception as e:
            raise BuildIOError(
                E_SIGN,
                f"Signer failed for {path.name}: {e}",
                {"path": str(path)},
            ) from e
        write_bytes_atomic(path, signature)

    def _pack(
        self,
        output_path: Path,
        file_list: Iterable[str | Path],
        options: PackOptions,
        timestamp: int,
    ) -> PackResult:
        cfg = self.config
        sign = cfg.sign_packs
        if sign and self.signer is None:
            raise ConfigurationError(
                E_CONFIG_FIELD, "sign_packs is set but no signer was provided"
            )
        inputs = collect_inputs(cfg.project_path, output_path.parent, file_list)
        plan = build_pack_plan(inputs, options)
        written = write_pack(
            plan,
            output_path,
            timestamp=timestamp,
            build_number=cfg.build_number,
            signed=sign,
        )
        signature_file = None
        if sign:
            signature_file = output_path.with_name(output_path.name + SIGNATURE_SUFFIX)
            try:
                self._write_signature(signature_file, written.body_sha256)
            except BaseException:
                # no signed pack without its .sig
                output_path.unlink(missing_ok=True)
                raise
        get_reporter().status(
            "Pack summary: file="
            + f"{output_path.name} resources={written.resource_count} "
            + f"bytes={written.bytes_written} crc32={written.body_crc32:08x} "
            + f"flags={written.pack_flags}"
        )
        return PackResult(
            output_file=output_path,
            resource_count=written.resource_count,
            bytes_written=written.bytes_written,
            crc32=written.body_crc32,
            sha256=written.body_sha256,
            pack_flags=written.pack_flags,
            timestamp=written.timestamp,
            entries=tuple(plan.entries),
            signature_file=signature_file,
        )

    def build_pack(
        self,
        output_path: str | Path,
        file_list: Sequence[str | Path],
        encrypt: bool = False,
        compress: bool = False,
    ) -> PackResult:
        """Pack ``file_list`` (paths relative to the project root) into one archive.

        A traversal attempt in any entry aborts the whole pack before any
        source is read. An empty list produces a valid, empty archive.
        """
        try:
            options = self._pack_options(encrypt, compress)
            self.state = BuildState.PACKING
            result = self._pack(
                Path(output_path), file_list, options, self.get_build_timestamp()
            )
        except Exception as e:
            self._fail(e)
            raise
        self.state = BuildState.WRITTEN
        return result

    def _copy_loose(self, files: Sequence[Path], output_dir: Path) -> List[Path]:
        cfg = self.config
        copied: List[Path] = []
        with task("copy.loose", "Copy resources", total=len(files)) as rep:
            for rel in files:
                target = sanitize_output_path(
                    output_dir, normalize_vfs_path(rel.as_posix())
                )
                data = safe_read_file(cfg.project_path / rel, cfg.max_file_size)
                write_bytes_atomic(target, data)
                copied.append(target)
                rep.advance("copy.loose", current_item=rel.as_posix())
        return copied

    def _write_build_info(self, output_dir: Path, timestamp: int) -> Path:
        cfg = self.config
        info = {
            "version": cfg.version,
            "build_number": cfg.build_number,
            "platform": get_platform_name(cfg.platform),
            "build_type": cfg.build_type.value,
            "timestamp": timestamp,
            "executable": f"game{get_executable_extension(cfg.platform)}",
            "packed": cfg.pack_assets,
            "encrypted": cfg.pack_assets and cfg.encrypt_assets,
            "compression": cfg.compression.value,
        }
        path = output_dir / BUILD_INFO_FILE
        write_bytes_atomic(
            path, (json.dumps(info, indent=2, sort_keys=True) + "\n").encode("utf-8")
        )
        return path

    def build(self) -> BuildResult:
        """Validate the project and produce the full output tree."""
        cfg = self.config
        rep = get_reporter()
        output_dir = Path(cfg.output_path)
        try:
            with section(f"Build {cfg.version}+{cfg.build_number}"):
                problems = self.validate_project()
                if problems:
                    raise ValidationError(
                        E_PROJECT_INVALID,
                        f"Project validation failed with {len(problems)} problem(s)",
                        {"problems": problems},
                    )
                timestamp = self.get_build_timestamp()
                result = BuildResult(
                    output_dir=output_dir,
                    timestamp=timestamp,
                    build_number=cfg.build_number,
                )
                if cfg.pack_assets:
                    options = self._pack_options(
                        cfg.encrypt_assets,
                        cfg.compression is not CompressionLevel.NONE,
                    )
                    self.state = BuildState.PACKING
                    packs_dir = output_dir / PACKS_DIR
                    for root in REQUIRED_PROJECT_DIRS:
                        files = discover_resources(cfg.project_path, (root,))
                        step(f"{root}: {len(files)} file(s)")
                        result.packs.append(
                            self._pack(
                                packs_dir / f"{root}{PACK_EXTENSION}",
                                files,
                                options,
                                timestamp,
                            )
                        )
                    result.packs_index_file = write_packs_index(
                        packs_dir / PACKS_INDEX_FILE,
                        result.packs,
                        cfg,
                        timestamp,
                    )
                else:
                    self.state = BuildState.PACKING
                    files = discover_resources(cfg.project_path)
                    result.copied_files = self._copy_loose(files, output_dir)
                result.build_info_file = self._write_build_info(output_dir, timestamp)
        except Exception as e:
            self._fail(e)
            raise
        self.state = BuildState.WRITTEN
        rep.status(
            "Build summary: version="
            + f"{cfg.version} build={cfg.build_number} platform={cfg.platform.value} "
            + f"packs={len(result.packs)} files={len(result.copied_files)} "
            + f"timestamp={timestamp}"
        )
        return result
