import zlib

import pytest

from nmres.packing.compression import (
    CompressionLevel,
    compress_data,
    decompress_data,
    verify_round_trip,
)
from nmres.packing.errors import CompressionError, ErrorCategory

SAMPLE = b"The quick brown fox jumps over the lazy dog. " * 64


def test_none_is_identity():
    assert compress_data(SAMPLE, CompressionLevel.NONE) == SAMPLE
    assert compress_data(b"", CompressionLevel.NONE) == b""


@pytest.mark.parametrize("level", list(CompressionLevel))
def test_round_trip(level):
    packed = compress_data(SAMPLE, level)
    assert decompress_data(packed, level) == SAMPLE


def test_levels_shrink_repetitive_data():
    for level in (CompressionLevel.FAST, CompressionLevel.BALANCED, CompressionLevel.MAX):
        assert len(compress_data(SAMPLE, level)) < len(SAMPLE)


def test_corrupt_stream_raises():
    with pytest.raises(CompressionError) as exc:
        decompress_data(b"definitely not zlib", CompressionLevel.BALANCED)
    assert exc.value.category is ErrorCategory.INTEGRITY


def test_verify_round_trip_detects_mismatch():
    packed = compress_data(SAMPLE, CompressionLevel.FAST)
    verify_round_trip(SAMPLE, packed, CompressionLevel.FAST)
    with pytest.raises(CompressionError):
        verify_round_trip(SAMPLE + b"!", packed, CompressionLevel.FAST)


def test_backend_failure_is_an_error(monkeypatch):
    def broken(data, level=-1):
        raise zlib.error("backend unavailable")

    monkeypatch.setattr(zlib, "compress", broken)
    with pytest.raises(CompressionError) as exc:
        compress_data(SAMPLE, CompressionLevel.FAST)
    assert "backend unavailable" in exc.value.message
    # NONE never touches the backend
    assert compress_data(SAMPLE, CompressionLevel.NONE) == SAMPLE


def test_decompress_respects_max_size():
    packed = compress_data(SAMPLE, CompressionLevel.MAX)
    assert decompress_data(packed, CompressionLevel.MAX, max_size=len(SAMPLE)) == SAMPLE
    with pytest.raises(CompressionError) as exc:
        decompress_data(packed, CompressionLevel.MAX, max_size=len(SAMPLE) - 1)
    assert exc.value.context["limit"] == len(SAMPLE) - 1


def test_decompress_truncated_stream_with_limit():
    packed = compress_data(SAMPLE, CompressionLevel.BALANCED)
    with pytest.raises(CompressionError):
        decompress_data(packed[:-6], CompressionLevel.BALANCED, max_size=len(SAMPLE))
