"""Archive inspection, verification and extraction.

Public functions:
- read_pack(path) -> PackContents
- inspect_pack(path) -> dict
- validate_pack(info) -> list[str]
- verify_entries(path, key=None) -> list[str]
- read_resource(path, virtual_path, key=None) -> bytes
- extract_pack(path, dest, key=None) -> list[Path]
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional
import struct

from ..hashing import calculate_crc32, calculate_sha256
from ..logging import get_logger
from ..reporting import get_reporter
from ..utils.io import write_bytes_atomic
from ..utils.paths import normalize_vfs_path, sanitize_output_path
from .compression import CompressionLevel, decompress_data
from .constants import (
    MAGIC,
    FOOTER_MAGIC,
    FOOTER_FORMAT,
    FOOTER_SIZE,
    FOOTER_DIGEST_SIZE,
    HEADER_FORMAT,
    HEADER_SIZE,
    ENTRY_FLAG_COMPRESSED,
    ENTRY_FLAG_ENCRYPTED,
)
from .crypto import decrypt_payload
from .errors import (
    ArchiveFormatError,
    ConfigurationError,
    IntegrityError,
    E_BAD_MAGIC,
    E_CONFIG_FIELD,
    E_CRC_MISMATCH,
    E_HASH_MISMATCH,
    E_NOT_FOUND,
    E_TRUNCATED,
)
from .packers import ResourceEntry, unpack_index_entry

__all__ = [
    "PackContents",
    "parse_header",
    "parse_footer",
    "read_pack",
    "inspect_pack",
    "validate_pack",
    "verify_entries",
    "read_resource",
    "extract_pack",
]


@dataclass(slots=True)
class PackContents:
    data: bytes
    header: Dict[str, Any]
    footer: Dict[str, Any]
    entries: List[ResourceEntry]
    payload_offset: int

    def find(self, virtual_path: str) -> ResourceEntry:
        key = normalize_vfs_path(virtual_path)
        for e in self.entries:
            if e.virtual_path == key:
                return e
        raise IntegrityError(
            E_NOT_FOUND, f"Resource not in pack: '{key}'", {"path": key}
        )

    def stored_bytes(self, entry: ResourceEntry) -> bytes:
        start = self.payload_offset + entry.offset
        return self.data[start : start + entry.stored_size]


def parse_header(data: bytes) -> Dict[str, Any]:
    if len(data) < HEADER_SIZE:
        raise ArchiveFormatError(
            E_TRUNCATED, f"File too small for header: {len(data)} bytes"
        )
    magic, major, minor, count = struct.unpack_from(HEADER_FORMAT, data, 0)
    return {
        "magic_ok": magic == MAGIC,
        "version": (major, minor),
        "resource_count": count,
    }


def parse_footer(data: bytes) -> Dict[str, Any]:
    if len(data) < HEADER_SIZE + FOOTER_SIZE:
        raise ArchiveFormatError(
            E_TRUNCATED, f"File too small for footer: {len(data)} bytes"
        )
    footer_offset = len(data) - FOOTER_SIZE
    magic, crc, timestamp, build_number, flags, digest = struct.unpack_from(
        FOOTER_FORMAT, data, footer_offset
    )
    body = data[:footer_offset]
    crc_calc = calculate_crc32(body)
    digest_calc = calculate_sha256(body)[:FOOTER_DIGEST_SIZE]
    return {
        "offset": footer_offset,
        "magic_ok": magic == FOOTER_MAGIC,
        "crc32": crc,
        "crc_calculated": crc_calc,
        "crc_match": crc == crc_calc,
        "digest": digest.hex(),
        "digest_match": digest == digest_calc,
        "timestamp": timestamp,
        "build_number": build_number,
        "flags": flags,
    }


def read_pack(path: str | Path, *, strict: bool = True) -> PackContents:
    """Parse a pack. ``strict=False`` reports bad magic instead of raising."""
    data = Path(path).read_bytes()
    header = parse_header(data)
    footer = parse_footer(data)
    if strict and not header["magic_ok"]:
        raise ArchiveFormatError(E_BAD_MAGIC, "Header magic mismatch")
    if strict and not footer["magic_ok"]:
        raise ArchiveFormatError(E_BAD_MAGIC, "Footer magic mismatch")
    entries: List[ResourceEntry] = []
    cursor = HEADER_SIZE
    index_region = data[: footer["offset"]]
    count = header["resource_count"] if header["magic_ok"] else 0
    for _ in range(count):
        entry, cursor = unpack_index_entry(index_region, cursor)
        entries.append(entry)
    return PackContents(
        data=data,
        header=header,
        footer=footer,
        entries=entries,
        payload_offset=cursor,
    )


def inspect_pack(path: str | Path) -> Dict[str, Any]:
    pack = read_pack(path, strict=False)
    return {
        "file_size": len(pack.data),
        "header": pack.header,
        "footer": pack.footer,
        "payload_offset": pack.payload_offset,
        "payload_size": pack.footer["offset"] - pack.payload_offset,
        "entries": [
            {
                "path": e.virtual_path,
                "type": e.resource_type.name.lower(),
                "size": e.size,
                "compressed_size": e.compressed_size,
                "stored_size": e.stored_size,
                "offset": e.offset,
                "flags": e.flags,
                "crc32": e.crc32,
                "crc_match": calculate_crc32(pack.stored_bytes(e)) == e.crc32,
                "sha256": e.sha256.hex(),
            }
            for e in pack.entries
        ],
    }


def validate_pack(info: Dict[str, Any]) -> List[str]:
    issues: List[str] = []
    if not info["header"]["magic_ok"]:
        issues.append("Header magic mismatch")
    footer = info["footer"]
    if not footer["magic_ok"]:
        issues.append("Footer magic mismatch")
    if not footer["crc_match"]:
        issues.append("CRC mismatch")
    if not footer["digest_match"]:
        issues.append("Digest mismatch")
    entries = info.get("entries", [])
    if len(entries) != info["header"]["resource_count"]:
        issues.append("Index size/count mismatch")
    expected_offset = 0
    previous = None
    for e in entries:
        if e["offset"] != expected_offset:
            issues.append(f"Entry {e['path']} offset {e['offset']} != {expected_offset}")
        expected_offset = e["offset"] + e["stored_size"]
        if previous is not None and e["path"] <= previous:
            issues.append(f"Index not sorted at {e['path']}")
        previous = e["path"]
        if not e["crc_match"]:
            issues.append(f"Entry CRC mismatch: {e['path']}")
    if expected_offset != info["payload_size"]:
        issues.append("Payload size mismatch")
    return issues


def _decode(pack: PackContents, entry: ResourceEntry, key: Optional[bytes]) -> bytes:
    blob = pack.stored_bytes(entry)
    if len(blob) != entry.stored_size:
        raise ArchiveFormatError(
            E_TRUNCATED, f"Payload truncated for '{entry.virtual_path}'"
        )
    if calculate_crc32(blob) != entry.crc32:
        raise IntegrityError(
            E_CRC_MISMATCH,
            f"CRC mismatch for '{entry.virtual_path}'",
            {"path": entry.virtual_path},
        )
    if entry.flags & ENTRY_FLAG_ENCRYPTED:
        if key is None:
            raise ConfigurationError(
                E_CONFIG_FIELD,
                f"'{entry.virtual_path}' is encrypted; a key is required",
            )
        blob = decrypt_payload(key, blob, entry.virtual_path)
    if entry.flags & ENTRY_FLAG_COMPRESSED:
        # zlib streams are self describing; any non-NONE level decodes them.
        blob = decompress_data(blob, CompressionLevel.BALANCED, max_size=entry.size)
    if len(blob) != entry.size or calculate_sha256(blob) != entry.sha256:
        raise IntegrityError(
            E_HASH_MISMATCH,
            f"Content hash mismatch for '{entry.virtual_path}'",
            {"path": entry.virtual_path},
        )
    return blob


def verify_entries(path: str | Path, key: Optional[bytes] = None) -> List[str]:
    """Decode every entry and check its SHA-256.

    Encrypted entries are skipped when no key is given; every other failure
    becomes an issue string instead of an exception.
    """
    pack = read_pack(path)
    issues: List[str] = []
    for entry in pack.entries:
        if entry.flags & ENTRY_FLAG_ENCRYPTED and key is None:
            continue
        try:
            _decode(pack, entry, key)
        except IntegrityError as e:
            issues.append(e.message)
    return issues


def read_resource(
    path: str | Path, virtual_path: str, key: Optional[bytes] = None
) -> bytes:
    pack = read_pack(path)
    return _decode(pack, pack.find(virtual_path), key)


def extract_pack(
    path: str | Path, dest: str | Path, key: Optional[bytes] = None
) -> List[Path]:
    """Decode every entry and write it below ``dest``.

    Destinations go through :func:`sanitize_output_path`, so a crafted index
    cannot write outside ``dest``.
    """
    logger = get_logger()
    rep = get_reporter()
    pack = read_pack(path)
    dest_dir = Path(dest)
    targets = [
        (entry, sanitize_output_path(dest_dir, entry.virtual_path))
        for entry in pack.entries
    ]
    written: List[Path] = []
    rep.start_task("extract", "Extract resources", total=len(targets))
    for entry, target in targets:
        data = _decode(pack, entry, key)
        write_bytes_atomic(target, data)
        written.append(target)
        rep.advance("extract", current_item=entry.virtual_path)
    rep.end_task("extract", files=len(written), bytes=sum(e.size for e in pack.entries))
    logger.info("Extracted %d resources to %s", len(written), dest_dir)
    return written
