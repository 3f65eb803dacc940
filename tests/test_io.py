from pathlib import Path

import pytest

from nmres.packing.errors import BuildIOError, E_FILE_TOO_LARGE, E_READ_IO, ErrorCategory
from nmres.utils.io import atomic_output, safe_read_file, write_bytes_atomic


def test_atomic_output_replaces_on_success(tmp_path: Path):
    target = tmp_path / "sub" / "file.bin"
    with atomic_output(target) as f:
        f.write(b"abc")
        assert not target.exists()
    assert target.read_bytes() == b"abc"
    assert [p.name for p in target.parent.iterdir()] == ["file.bin"]


def test_atomic_output_cleans_up_on_error(tmp_path: Path):
    target = tmp_path / "file.bin"
    target.write_bytes(b"old")
    with pytest.raises(KeyError):
        with atomic_output(target) as f:
            f.write(b"NMRS partial")
            raise KeyError("interrupted")
    assert target.read_bytes() == b"old"
    assert [p.name for p in tmp_path.iterdir()] == ["file.bin"]


def test_write_bytes_atomic_creates_parents(tmp_path: Path):
    target = tmp_path / "a" / "b" / "c.txt"
    write_bytes_atomic(target, b"x")
    assert target.read_bytes() == b"x"


def test_safe_read_file(tmp_path: Path):
    p = tmp_path / "f.txt"
    p.write_bytes(b"12345")
    assert safe_read_file(p) == b"12345"
    with pytest.raises(BuildIOError) as exc:
        safe_read_file(p, max_size=4)
    assert exc.value.code == E_FILE_TOO_LARGE
    with pytest.raises(BuildIOError) as exc:
        safe_read_file(tmp_path / "missing.txt")
    assert exc.value.code == E_READ_IO
    assert exc.value.category is ErrorCategory.IO
    assert exc.value.to_dict()["category"] == "io"
