from pathlib import Path

import pytest

from nmres.packing.crypto import (
    ENCRYPTION_OVERHEAD,
    derive_nonce,
    decrypt_payload,
    encrypt_payload,
)
from nmres.packing.errors import (
    BuildIOError,
    E_KEY_LENGTH,
    E_KEY_MISSING,
    EncryptionKeyError,
    ErrorCategory,
    IntegrityError,
)
from nmres.utils.io import generate_encryption_key, load_encryption_key_from_file

KEY = bytes(range(32))


def test_load_key_exact_length(key_file: Path):
    assert load_encryption_key_from_file(key_file) == KEY


@pytest.mark.parametrize("size", [0, 16, 31, 33, 64])
def test_load_key_wrong_length(tmp_path: Path, size):
    p = tmp_path / "bad.key"
    p.write_bytes(b"k" * size)
    with pytest.raises(EncryptionKeyError) as exc:
        load_encryption_key_from_file(p)
    assert exc.value.code == E_KEY_LENGTH
    assert exc.value.category is ErrorCategory.INTEGRITY


def test_load_key_missing(tmp_path: Path):
    with pytest.raises(EncryptionKeyError) as exc:
        load_encryption_key_from_file(tmp_path / "nope.key")
    assert exc.value.code == E_KEY_MISSING


def test_generate_key(tmp_path: Path):
    p = tmp_path / "keys" / "new.key"
    key = generate_encryption_key(p)
    assert len(key) == 32
    assert load_encryption_key_from_file(p) == key
    with pytest.raises(BuildIOError):
        generate_encryption_key(p)
    assert generate_encryption_key(p, force=True) != key


def test_encrypt_round_trip_and_overhead():
    blob = encrypt_payload(KEY, b"secret line", "scripts/main.nms")
    assert len(blob) == len(b"secret line") + ENCRYPTION_OVERHEAD
    assert decrypt_payload(KEY, blob, "scripts/main.nms") == b"secret line"


def test_encrypted_payload_is_bound_to_path():
    blob = encrypt_payload(KEY, b"data", "a.txt")
    with pytest.raises(IntegrityError):
        decrypt_payload(KEY, blob, "b.txt")


def test_wrong_key_fails():
    blob = encrypt_payload(KEY, b"data", "a.txt")
    with pytest.raises(IntegrityError):
        decrypt_payload(bytes(32), blob, "a.txt")


def test_derived_nonce_is_stable():
    digest = b"\x01" * 32
    n1 = derive_nonce(KEY, "a.txt", digest)
    assert n1 == derive_nonce(KEY, "a.txt", digest)
    assert len(n1) == 12
    assert n1 != derive_nonce(KEY, "b.txt", digest)
    blob1 = encrypt_payload(KEY, b"x", "a.txt", nonce=n1)
    blob2 = encrypt_payload(KEY, b"x", "a.txt", nonce=n1)
    assert blob1 == blob2


def test_short_key_rejected():
    with pytest.raises(EncryptionKeyError):
        encrypt_payload(b"short", b"x", "a.txt")
