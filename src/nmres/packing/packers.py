"""Pure binary packing functions for .nmres archives.

All functions are side-effect free and validate sizes.
"""

from __future__ import annotations

from dataclasses import dataclass
import struct

from .constants import (
    MAGIC,
    FOOTER_MAGIC,
    FORMAT_VERSION_MAJOR,
    FORMAT_VERSION_MINOR,
    HEADER_FORMAT,
    HEADER_SIZE,
    FOOTER_FORMAT,
    FOOTER_SIZE,
    FOOTER_DIGEST_SIZE,
    ENTRY_PATH_LEN_FORMAT,
    ENTRY_FIXED_FORMAT,
    ENTRY_FIXED_SIZE,
    MAX_RESOURCE_COUNT,
    MAX_TIMESTAMP,
    MAX_VIRTUAL_PATH_BYTES,
    SHA256_SIZE,
)
from .errors import ArchiveFormatError, E_TRUNCATED
from .resource_types import ResourceType

__all__ = [
    "ResourceEntry",
    "pack_header",
    "pack_index_entry",
    "pack_index",
    "pack_footer",
    "index_entry_size",
    "unpack_index_entry",
]


@dataclass(frozen=True, slots=True)
class ResourceEntry:
    virtual_path: str
    resource_type: ResourceType
    size: int
    compressed_size: int
    stored_size: int
    flags: int
    crc32: int
    sha256: bytes
    offset: int


def pack_header(
    resource_count: int,
    major: int = FORMAT_VERSION_MAJOR,
    minor: int = FORMAT_VERSION_MINOR,
) -> bytes:
    if not 0 <= resource_count <= MAX_RESOURCE_COUNT:
        raise ValueError(f"Resource count out of range: {resource_count}")
    out = struct.pack(HEADER_FORMAT, MAGIC, major, minor, resource_count)
    if len(out) != HEADER_SIZE:  # pragma: no cover
        raise RuntimeError("Header size mismatch")
    return out


def index_entry_size(virtual_path: str) -> int:
    return 2 + len(virtual_path.encode("utf-8")) + ENTRY_FIXED_SIZE


def pack_index_entry(entry: ResourceEntry) -> bytes:
    path_bytes = entry.virtual_path.encode("utf-8")
    if len(path_bytes) > MAX_VIRTUAL_PATH_BYTES:
        raise ValueError(f"Virtual path too long: {entry.virtual_path[:64]}...")
    if len(entry.sha256) != SHA256_SIZE:
        raise ValueError("sha256 digest must be 32 bytes")
    out = (
        struct.pack(ENTRY_PATH_LEN_FORMAT, len(path_bytes))
        + path_bytes
        + struct.pack(
            ENTRY_FIXED_FORMAT,
            int(entry.resource_type),
            entry.flags,
            entry.size,
            entry.compressed_size,
            entry.stored_size,
            entry.offset,
            entry.crc32,
            entry.sha256,
        )
    )
    if len(out) != index_entry_size(entry.virtual_path):  # pragma: no cover
        raise RuntimeError("Index entry size mismatch")
    return out


def pack_index(entries: list[ResourceEntry]) -> bytes:
    return b"".join(pack_index_entry(e) for e in entries)


def unpack_index_entry(data: bytes, offset: int) -> tuple[ResourceEntry, int]:
    """Decode one entry at ``offset``; returns (entry, next_offset)."""
    if offset + 2 > len(data):
        raise ArchiveFormatError(E_TRUNCATED, "Truncated index entry header")
    (path_len,) = struct.unpack_from(ENTRY_PATH_LEN_FORMAT, data, offset)
    start = offset + 2
    end = start + path_len + ENTRY_FIXED_SIZE
    if end > len(data):
        raise ArchiveFormatError(
            E_TRUNCATED, f"Truncated index entry at offset {offset}"
        )
    try:
        virtual_path = data[start : start + path_len].decode("utf-8")
    except UnicodeDecodeError as e:
        raise ArchiveFormatError(
            E_TRUNCATED, f"Corrupt virtual path at offset {offset}"
        ) from e
    rtype, flags, size, csize, ssize, off, crc, digest = struct.unpack_from(
        ENTRY_FIXED_FORMAT, data, start + path_len
    )
    try:
        resource_type = ResourceType(rtype)
    except ValueError:
        resource_type = ResourceType.UNKNOWN
    entry = ResourceEntry(
        virtual_path=virtual_path,
        resource_type=resource_type,
        size=size,
        compressed_size=csize,
        stored_size=ssize,
        flags=flags,
        crc32=crc,
        sha256=digest,
        offset=off,
    )
    return entry, end


def pack_footer(
    *,
    crc32: int,
    timestamp: int,
    build_number: int,
    flags: int,
    digest: bytes,
) -> bytes:
    """Footer: magic, CRC32 + SHA-256 prefix of everything before it, build metadata."""
    if not 0 <= timestamp <= MAX_TIMESTAMP:
        raise ValueError(f"Timestamp out of range: {timestamp}")
    out = struct.pack(
        FOOTER_FORMAT,
        FOOTER_MAGIC,
        crc32 & 0xFFFFFFFF,
        timestamp,
        build_number & 0xFFFFFFFF,
        flags,
        digest[:FOOTER_DIGEST_SIZE],
    )
    if len(out) != FOOTER_SIZE:  # pragma: no cover
        raise RuntimeError("Footer size mismatch")
    return out
