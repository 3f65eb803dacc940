from pathlib import Path
import zlib

import pytest

from nmres.build_system import BuildSystem
from nmres.config import BuildConfig, CompressionLevel
from nmres.packing.errors import (
    ArchiveFormatError,
    CompressionError,
    ConfigurationError,
    IntegrityError,
    PathTraversalError,
)
from nmres.packing.inspector import (
    extract_pack,
    inspect_pack,
    read_pack,
    read_resource,
    validate_pack,
    verify_entries,
)
from nmres.packing.packers import ResourceEntry, pack_footer, pack_header, pack_index
from nmres.packing.resource_types import ResourceType
from nmres.hashing import calculate_crc32, calculate_sha256

KEY = bytes(range(32))
FILES = [
    "scripts/main.nms",
    "assets/images/bg.png",
    "assets/data/info.json",
    "assets/audio/click.wav",
]


def _build(project: Path, out: Path, *, encrypt=False, key_file=None) -> Path:
    cfg = BuildConfig(
        project_path=project,
        fixed_build_timestamp=1704067200,
        compression=CompressionLevel.MAX,
        encrypt_assets=encrypt,
        encryption_key_path=key_file,
    )
    BuildSystem(cfg).build_pack(out, FILES, encrypt=encrypt, compress=True)
    return out


def test_inspect_healthy_pack(tmp_path: Path, project: Path):
    out = _build(project, tmp_path / "p.nmres")
    info = inspect_pack(out)
    assert info["header"]["magic_ok"]
    assert info["header"]["version"] == (1, 0)
    assert info["header"]["resource_count"] == 4
    assert info["footer"]["crc_match"] and info["footer"]["digest_match"]
    assert validate_pack(info) == []
    types = {e["path"]: e["type"] for e in info["entries"]}
    assert types == {
        "assets/audio/click.wav": "audio",
        "assets/data/info.json": "data",
        "assets/images/bg.png": "texture",
        "scripts/main.nms": "script",
    }
    assert verify_entries(out) == []


def test_read_back_plain_and_compressed(tmp_path: Path, project: Path):
    out = _build(project, tmp_path / "p.nmres")
    for rel in FILES:
        assert read_resource(out, rel) == (project / rel).read_bytes()
    # lookup is by normalized virtual path
    assert read_resource(out, "Assets\\Data\\INFO.json") == (
        project / "assets/data/info.json"
    ).read_bytes()
    with pytest.raises(IntegrityError):
        read_resource(out, "assets/nope.txt")


def test_encrypted_round_trip(tmp_path: Path, project: Path, key_file: Path):
    out = _build(project, tmp_path / "enc.nmres", encrypt=True, key_file=key_file)
    info = inspect_pack(out)
    assert info["footer"]["flags"] & 2
    assert all(e["flags"] & 2 for e in info["entries"])
    for rel in FILES:
        assert read_resource(out, rel, KEY) == (project / rel).read_bytes()
    with pytest.raises(ConfigurationError):
        read_resource(out, "scripts/main.nms")
    with pytest.raises(IntegrityError):
        read_resource(out, "scripts/main.nms", bytes(32))
    # without a key, encrypted entries are skipped rather than reported
    assert verify_entries(out) == []
    assert verify_entries(out, KEY) == []


def test_extract(tmp_path: Path, project: Path):
    out = _build(project, tmp_path / "p.nmres")
    dest = tmp_path / "extracted"
    written = extract_pack(out, dest)
    assert len(written) == 4
    for rel in FILES:
        assert (dest / rel).read_bytes() == (project / rel).read_bytes()


def test_corruption_detected(tmp_path: Path, project: Path):
    out = _build(project, tmp_path / "p.nmres")
    info = inspect_pack(out)
    data = bytearray(out.read_bytes())
    data[info["payload_offset"]] ^= 0xFF
    out.write_bytes(bytes(data))
    issues = validate_pack(inspect_pack(out))
    assert "CRC mismatch" in issues
    assert any(i.startswith("Entry CRC mismatch") for i in issues)
    first = info["entries"][0]["path"]
    with pytest.raises(IntegrityError):
        read_resource(out, first)


def test_bad_magic(tmp_path: Path, project: Path):
    out = _build(project, tmp_path / "p.nmres")
    data = out.read_bytes()
    out.write_bytes(b"XXXX" + data[4:])
    assert "Header magic mismatch" in validate_pack(inspect_pack(out))
    with pytest.raises(ArchiveFormatError):
        read_pack(out)
    out.write_bytes(data[:-32] + b"ZZZZ" + data[-28:])
    assert "Footer magic mismatch" in validate_pack(inspect_pack(out))


def test_truncated_file(tmp_path: Path):
    p = tmp_path / "tiny.nmres"
    p.write_bytes(b"NMRS")
    with pytest.raises(ArchiveFormatError):
        inspect_pack(p)


def _craft_pack(
    path: Path,
    virtual_path: str,
    content: bytes,
    *,
    stored: bytes | None = None,
    flags: int = 0,
) -> None:
    stored = content if stored is None else stored
    entry = ResourceEntry(
        virtual_path=virtual_path,
        resource_type=ResourceType.DATA,
        size=len(content),
        compressed_size=len(stored),
        stored_size=len(stored),
        flags=flags,
        crc32=calculate_crc32(stored),
        sha256=calculate_sha256(content),
        offset=0,
    )
    body = pack_header(1) + pack_index([entry]) + stored
    path.write_bytes(
        body
        + pack_footer(
            crc32=calculate_crc32(body),
            timestamp=0,
            build_number=0,
            flags=0,
            digest=calculate_sha256(body),
        )
    )


def test_extract_refuses_crafted_traversal(tmp_path: Path):
    evil = tmp_path / "evil.nmres"
    _craft_pack(evil, "../escape.txt", b"owned")
    assert validate_pack(inspect_pack(evil)) == []
    dest = tmp_path / "dest"
    with pytest.raises(PathTraversalError):
        extract_pack(evil, dest)
    assert not (tmp_path / "escape.txt").exists()


def test_inflate_is_capped_at_declared_size(tmp_path: Path):
    bomb = tmp_path / "bomb.nmres"
    _craft_pack(
        bomb,
        "data/small.bin",
        b"0123456789",
        stored=zlib.compress(b"\0" * (4 * 1024 * 1024), 9),
        flags=1,
    )
    # index and CRC are consistent; only the payload lies about its size
    assert validate_pack(inspect_pack(bomb)) == []
    with pytest.raises(CompressionError):
        read_resource(bomb, "data/small.bin")
    assert verify_entries(bomb) != []


def test_many_entries_index(tmp_path: Path):
    files = {f"assets/data/item{i:04d}.json": b"{}" * (i % 7) for i in range(400)}
    big = {"assets/music/theme.ogg": b"\x01" * (1024 * 1024)}
    root = tmp_path / "proj"
    for rel, data in {**files, **big}.items():
        (root / rel).parent.mkdir(parents=True, exist_ok=True)
        (root / rel).write_bytes(data)
    out = tmp_path / "many.nmres"
    BuildSystem(BuildConfig(project_path=root, fixed_build_timestamp=1)).build_pack(
        out, sorted({**files, **big})
    )
    pack = read_pack(out)
    assert len(pack.entries) == 401
    assert pack.entries[-1].virtual_path == "assets/music/theme.ogg"
    assert read_resource(out, "assets/data/item0399.json") == files[
        "assets/data/item0399.json"
    ]
