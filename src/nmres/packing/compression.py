"""Compression stage.

``CompressionLevel.NONE`` is an exact identity transform. Other levels use
zlib; the stored stream is a standard zlib stream so any level decodes with
:func:`decompress_data`.
"""

from __future__ import annotations
from enum import Enum
import zlib

from .errors import CompressionError, E_COMPRESSION

__all__ = [
    "CompressionLevel",
    "compress_data",
    "decompress_data",
    "verify_round_trip",
]


class CompressionLevel(Enum):
    NONE = "none"
    FAST = "fast"
    BALANCED = "balanced"
    MAX = "max"

    @property
    def zlib_level(self) -> int:
        return _ZLIB_LEVELS[self]


_ZLIB_LEVELS = {
    CompressionLevel.NONE: 0,
    CompressionLevel.FAST: 1,
    CompressionLevel.BALANCED: 6,
    CompressionLevel.MAX: 9,
}


def compress_data(data: bytes, level: CompressionLevel) -> bytes:
    if level is CompressionLevel.NONE:
        return bytes(data)
    try:
        return zlib.compress(data, level.zlib_level)
    except (zlib.error, MemoryError) as e:
        raise CompressionError(
            E_COMPRESSION,
            f"Compression failed at level {level.value}: {e}",
            {"level": level.value, "size": len(data)},
        ) from e


def decompress_data(
    data: bytes, level: CompressionLevel, max_size: int | None = None
) -> bytes:
    """Inflate ``data``; with ``max_size`` output beyond that bound is an error."""
    if level is CompressionLevel.NONE:
        return bytes(data)
    try:
        if max_size is None:
            return zlib.decompress(data)
        d = zlib.decompressobj()
        # max_length=0 means unbounded, hence the +1
        out = d.decompress(data, max_size + 1)
    except zlib.error as e:
        raise CompressionError(
            E_COMPRESSION,
            f"Decompression failed: {e}",
            {"level": level.value, "size": len(data)},
        ) from e
    if len(out) > max_size or d.unconsumed_tail:
        raise CompressionError(
            E_COMPRESSION,
            f"Decompressed data exceeds {max_size} bytes",
            {"level": level.value, "limit": max_size},
        )
    if not d.eof:
        raise CompressionError(
            E_COMPRESSION,
            "Decompression failed: incomplete or truncated stream",
            {"level": level.value, "size": len(data)},
        )
    return out


def verify_round_trip(
    original: bytes, compressed: bytes, level: CompressionLevel
) -> None:
    if decompress_data(compressed, level) != original:
        raise CompressionError(
            E_COMPRESSION,
            "Compression round-trip mismatch",
            {"level": level.value, "size": len(original)},
        )
