"""AES-256-GCM encryption stage.

Stored layout of an encrypted payload: ``nonce(12) || ciphertext || tag(16)``.
The entry's virtual path is bound as associated data, so a payload moved to
another entry fails authentication.

Deterministic builds derive the nonce from the key, the virtual path and the
content digest so identical input yields identical archives; other builds
use a random nonce.
"""

from __future__ import annotations
import hashlib
import hmac
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .constants import AUTH_TAG_SIZE, ENCRYPTION_KEY_SIZE, NONCE_SIZE
from .errors import E_ENCRYPTION, E_KEY_LENGTH, EncryptionKeyError, IntegrityError

__all__ = [
    "ENCRYPTION_OVERHEAD",
    "check_key",
    "derive_nonce",
    "encrypt_payload",
    "decrypt_payload",
]

ENCRYPTION_OVERHEAD = NONCE_SIZE + AUTH_TAG_SIZE


def check_key(key: bytes) -> bytes:
    if not isinstance(key, (bytes, bytearray)) or len(key) != ENCRYPTION_KEY_SIZE:
        size = len(key) if isinstance(key, (bytes, bytearray)) else None
        raise EncryptionKeyError(
            E_KEY_LENGTH,
            f"Encryption key must be {ENCRYPTION_KEY_SIZE} bytes",
            {"length": size},
        )
    return bytes(key)


def derive_nonce(key: bytes, virtual_path: str, content_sha256: bytes) -> bytes:
    mac = hmac.new(key, b"nmres-nonce\x00", hashlib.sha256)
    mac.update(virtual_path.encode("utf-8"))
    mac.update(b"\x00")
    mac.update(content_sha256)
    return mac.digest()[:NONCE_SIZE]


def encrypt_payload(
    key: bytes,
    data: bytes,
    virtual_path: str,
    *,
    nonce: bytes | None = None,
) -> bytes:
    key = check_key(key)
    if nonce is None:
        nonce = secrets.token_bytes(NONCE_SIZE)
    aad = virtual_path.encode("utf-8")
    return nonce + AESGCM(key).encrypt(nonce, data, aad)


def decrypt_payload(key: bytes, blob: bytes, virtual_path: str) -> bytes:
    key = check_key(key)
    if len(blob) < ENCRYPTION_OVERHEAD:
        raise IntegrityError(
            E_ENCRYPTION,
            f"Encrypted payload too short for '{virtual_path}'",
            {"size": len(blob)},
        )
    nonce, ciphertext = blob[:NONCE_SIZE], blob[NONCE_SIZE:]
    try:
        return AESGCM(key).decrypt(
            nonce, ciphertext, virtual_path.encode("utf-8")
        )
    except InvalidTag as e:
        raise IntegrityError(
            E_ENCRYPTION,
            f"Authentication failed for '{virtual_path}' (wrong key or corrupt data)",
            {"path": virtual_path},
        ) from e
