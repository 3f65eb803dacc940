"""Hashing primitives.

CRC32 is the quick corruption check stored per entry and in the footer;
SHA-256 is the content digest used for integrity and as the input handed to
an external pack signer.
"""

from __future__ import annotations

import hashlib
import zlib

__all__ = ["calculate_crc32", "calculate_sha256", "Sha256Stream"]


def calculate_crc32(data: bytes, value: int = 0) -> int:
    """Reflected CRC-32 (polynomial 0xEDB88320).

    ``value`` continues a running checksum so large inputs can be fed in
    chunks. The CRC of empty input is 0.
    """
    return zlib.crc32(data, value) & 0xFFFFFFFF


def calculate_sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


class Sha256Stream:
    """Incremental SHA-256 + CRC32 over bytes written through :meth:`update`."""

    def __init__(self) -> None:
        self._sha = hashlib.sha256()
        self.crc32 = 0
        self.size = 0

    def update(self, data: bytes) -> None:
        self._sha.update(data)
        self.crc32 = calculate_crc32(data, self.crc32)
        self.size += len(data)

    def digest(self) -> bytes:
        return self._sha.digest()

    def digest_with(self, tail: bytes) -> bytes:
        """Digest of everything seen so far plus ``tail``; the stream is unchanged."""
        sha = self._sha.copy()
        sha.update(tail)
        return sha.digest()
