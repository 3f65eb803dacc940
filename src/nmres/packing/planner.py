"""Pack planning: run the per-file pipeline and lay out index + payload.

Two phases:

1. :func:`collect_inputs` resolves every requested file against the project
   root, derives its virtual path and sanitizes the destination against the
   output directory. Nothing is read yet, so a traversal attempt aborts the
   build before any I/O on the offending entry or its siblings.
2. :func:`build_pack_plan` reads, compresses, encrypts and hashes each input
   (optionally on a thread pool), then orders entries by virtual path and
   assigns payload offsets. The ordering never depends on completion order.
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Sequence

from ..hashing import calculate_crc32, calculate_sha256
from ..logging import get_logger
from ..reporting import TaskStatus, failure_code, get_reporter
from ..utils.io import safe_read_file
from ..utils.paths import normalize_vfs_path, resolve_source_path, sanitize_output_path
from .compression import CompressionLevel, compress_data, verify_round_trip
from .constants import (
    DEFAULT_MAX_FILE_SIZE,
    ENTRY_FLAG_COMPRESSED,
    ENTRY_FLAG_ENCRYPTED,
    HEADER_SIZE,
    MAX_RESOURCE_COUNT,
    PACK_FLAG_COMPRESSED,
    PACK_FLAG_ENCRYPTED,
)
from .crypto import check_key, derive_nonce, encrypt_payload
from .errors import (
    DuplicateResourceError,
    E_CONFIG_FIELD,
    E_DUP_VIRTUAL_PATH,
    E_TOO_MANY_RESOURCES,
    ConfigurationError,
    ValidationError,
)
from .packers import ResourceEntry, index_entry_size
from .resource_types import (
    ResourceType,
    get_resource_type_from_extension,
    should_compress,
)

__all__ = [
    "PackOptions",
    "PackInput",
    "PreparedResource",
    "PackPlan",
    "collect_inputs",
    "prepare_resource",
    "build_pack_plan",
]


@dataclass(frozen=True, slots=True)
class PackOptions:
    compression: CompressionLevel = CompressionLevel.NONE
    encrypt: bool = False
    key: bytes | None = None
    deterministic: bool = True
    verify_compression: bool = False
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    jobs: int = 1


@dataclass(frozen=True, slots=True)
class PackInput:
    source: Path
    virtual_path: str
    resource_type: ResourceType
    # Where the resource would land if unpacked below the output directory.
    destination: Path


@dataclass(slots=True)
class PreparedResource:
    virtual_path: str
    resource_type: ResourceType
    size: int
    compressed_size: int
    flags: int
    crc32: int
    sha256: bytes
    payload: bytes


@dataclass(slots=True)
class PackPlan:
    entries: List[ResourceEntry]
    payloads: List[bytes]
    index_size: int
    payload_size: int
    pack_flags: int = 0
    skipped_compression: List[str] = field(default_factory=list)

    @property
    def resource_count(self) -> int:
        return len(self.entries)

    @property
    def payload_offset(self) -> int:
        return HEADER_SIZE + self.index_size


def collect_inputs(
    project_root: Path, output_dir: Path, files: Iterable[str | Path]
) -> List[PackInput]:
    inputs: List[PackInput] = []
    seen: dict[str, Path] = {}
    for entry in files:
        source, rel = resolve_source_path(project_root, entry)
        resource_type = get_resource_type_from_extension(rel)
        virtual_path = normalize_vfs_path(rel)
        destination = sanitize_output_path(output_dir, virtual_path)
        if virtual_path in seen:
            raise DuplicateResourceError(
                E_DUP_VIRTUAL_PATH,
                f"Duplicate virtual path '{virtual_path}'",
                {"first": str(seen[virtual_path]), "second": str(source)},
            )
        seen[virtual_path] = source
        inputs.append(PackInput(source, virtual_path, resource_type, destination))
    if len(inputs) > MAX_RESOURCE_COUNT:
        raise ValidationError(
            E_TOO_MANY_RESOURCES,
            f"Too many resources: {len(inputs)}",
            {"limit": MAX_RESOURCE_COUNT},
        )
    return inputs


def prepare_resource(item: PackInput, options: PackOptions) -> PreparedResource:
    data = safe_read_file(item.source, options.max_file_size)
    digest = calculate_sha256(data)
    flags = 0
    payload = data
    if options.compression is not CompressionLevel.NONE and should_compress(
        item.resource_type
    ):
        payload = compress_data(data, options.compression)
        if options.verify_compression:
            verify_round_trip(data, payload, options.compression)
        flags |= ENTRY_FLAG_COMPRESSED
    compressed_size = len(payload)
    if options.encrypt:
        if options.key is None:
            raise ConfigurationError(
                E_CONFIG_FIELD, "Encryption requested without a key"
            )
        nonce = (
            derive_nonce(options.key, item.virtual_path, digest)
            if options.deterministic
            else None
        )
        payload = encrypt_payload(
            options.key, payload, item.virtual_path, nonce=nonce
        )
        flags |= ENTRY_FLAG_ENCRYPTED
    return PreparedResource(
        virtual_path=item.virtual_path,
        resource_type=item.resource_type,
        size=len(data),
        compressed_size=compressed_size,
        flags=flags,
        crc32=calculate_crc32(payload),
        sha256=digest,
        payload=payload,
    )


def _prepare_all(
    inputs: Sequence[PackInput], options: PackOptions
) -> List[PreparedResource]:
    rep = get_reporter()
    rep.start_task("pack.prepare", "Process resources", total=len(inputs))
    prepared: List[PreparedResource] = []
    try:
        if options.jobs > 1 and len(inputs) > 1:
            with ThreadPoolExecutor(max_workers=options.jobs) as pool:
                for res in pool.map(lambda i: prepare_resource(i, options), inputs):
                    prepared.append(res)
                    rep.advance("pack.prepare", current_item=res.virtual_path)
        else:
            for item in inputs:
                prepared.append(prepare_resource(item, options))
                rep.advance("pack.prepare", current_item=item.virtual_path)
    except Exception as e:
        rep.end_task("pack.prepare", TaskStatus.FAILED, error=failure_code(e))
        raise
    rep.end_task(
        "pack.prepare",
        files=len(prepared),
        bytes=sum(p.size for p in prepared),
        stored=sum(len(p.payload) for p in prepared),
    )
    return prepared


def build_pack_plan(
    inputs: Sequence[PackInput], options: PackOptions
) -> PackPlan:
    logger = get_logger()
    if options.encrypt:
        check_key(options.key or b"")
    prepared = _prepare_all(inputs, options)
    prepared.sort(key=lambda p: p.virtual_path)

    entries: List[ResourceEntry] = []
    payloads: List[bytes] = []
    skipped: List[str] = []
    offset = 0
    for p in prepared:
        entries.append(
            ResourceEntry(
                virtual_path=p.virtual_path,
                resource_type=p.resource_type,
                size=p.size,
                compressed_size=p.compressed_size,
                stored_size=len(p.payload),
                flags=p.flags,
                crc32=p.crc32,
                sha256=p.sha256,
                offset=offset,
            )
        )
        payloads.append(p.payload)
        offset += len(p.payload)
        if (
            options.compression is not CompressionLevel.NONE
            and not p.flags & ENTRY_FLAG_COMPRESSED
        ):
            skipped.append(p.virtual_path)
        logger.debug(
            "entry %s type=%s size=%d stored=%d flags=0x%02x",
            p.virtual_path,
            p.resource_type.name,
            p.size,
            len(p.payload),
            p.flags,
        )

    pack_flags = 0
    if options.compression is not CompressionLevel.NONE:
        pack_flags |= PACK_FLAG_COMPRESSED
    if options.encrypt:
        pack_flags |= PACK_FLAG_ENCRYPTED
    return PackPlan(
        entries=entries,
        payloads=payloads,
        index_size=sum(index_entry_size(e.virtual_path) for e in entries),
        payload_size=offset,
        pack_flags=pack_flags,
        skipped_compression=skipped,
    )
