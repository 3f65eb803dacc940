"""IO helpers: bounded source reads, key files and atomic output files."""

from __future__ import annotations
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator
import os
import secrets
import tempfile

from ..packing.constants import DEFAULT_MAX_FILE_SIZE, ENCRYPTION_KEY_SIZE
from ..packing.errors import (
    BuildIOError,
    EncryptionKeyError,
    E_FILE_TOO_LARGE,
    E_KEY_LENGTH,
    E_KEY_MISSING,
    E_READ_IO,
    E_WRITE_IO,
)

__all__ = [
    "safe_read_file",
    "load_encryption_key_from_file",
    "generate_encryption_key",
    "atomic_output",
    "write_bytes_atomic",
]


def safe_read_file(path: Path, max_size: int = DEFAULT_MAX_FILE_SIZE) -> bytes:
    if not path.is_file():
        raise BuildIOError(
            E_READ_IO, f"File not found: {path}", {"path": str(path)}
        )
    size = path.stat().st_size
    if size > max_size:
        raise BuildIOError(
            E_FILE_TOO_LARGE,
            f"File too large: {size}>{max_size}",
            {"path": str(path)},
        )
    try:
        return path.read_bytes()
    except OSError as e:
        raise BuildIOError(
            E_READ_IO, f"Cannot read {path}: {e}", {"path": str(path)}
        ) from e


def load_encryption_key_from_file(path: str | Path) -> bytes:
    """Load a raw AES-256 key. The file must hold exactly 32 bytes."""
    p = Path(path)
    if not p.is_file():
        raise EncryptionKeyError(
            E_KEY_MISSING, f"Key file not found: {p}", {"path": str(p)}
        )
    try:
        key = p.read_bytes()
    except OSError as e:
        raise EncryptionKeyError(
            E_KEY_MISSING, f"Cannot read key file {p}: {e}", {"path": str(p)}
        ) from e
    if len(key) != ENCRYPTION_KEY_SIZE:
        raise EncryptionKeyError(
            E_KEY_LENGTH,
            f"Invalid key length {len(key)} (expected {ENCRYPTION_KEY_SIZE})",
            {"path": str(p), "length": len(key)},
        )
    return key


def generate_encryption_key(path: str | Path, *, force: bool = False) -> bytes:
    p = Path(path)
    if p.exists() and not force:
        raise BuildIOError(
            E_WRITE_IO, f"Refusing to overwrite key file {p}", {"path": str(p)}
        )
    key = secrets.token_bytes(ENCRYPTION_KEY_SIZE)
    write_bytes_atomic(p, key)
    return key


@contextmanager
def atomic_output(path: Path) -> Iterator[BinaryIO]:
    """Yield a temporary sibling of ``path``; rename over it on success.

    On any exception the temporary file is removed and ``path`` is left
    untouched, so a half-written file never appears under the final name.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
    )
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def write_bytes_atomic(path: Path, data: bytes) -> None:
    try:
        with atomic_output(path) as f:
            f.write(data)
    except OSError as e:
        raise BuildIOError(
            E_WRITE_IO, f"Cannot write {path}: {e}", {"path": str(path)}
        ) from e
