"""Binary writer emitting a .nmres archive from a :class:`PackPlan`.

Layout: header, index, payload, footer. The archive is streamed into a
temporary sibling while CRC32 / SHA-256 run over every byte; the footer is
appended last and the file is renamed into place only after it has been
fully written. A failed build therefore never leaves a file with a valid
footer under the output name.
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path

from ..hashing import Sha256Stream
from ..logging import get_logger, section
from ..reporting import get_reporter
from ..utils.io import atomic_output
from .constants import FOOTER_SIZE, PACK_FLAG_SIGNED
from .errors import BuildIOError, E_WRITE_IO
from .packers import pack_footer, pack_header, pack_index
from .planner import PackPlan

__all__ = ["PackWriteResult", "write_pack"]


@dataclass(frozen=True, slots=True)
class PackWriteResult:
    output_file: Path
    bytes_written: int
    resource_count: int
    # CRC32 / SHA-256 of everything before the footer (what the footer records).
    body_crc32: int
    body_sha256: bytes
    # SHA-256 of the complete file, footer included.
    file_sha256: bytes
    pack_flags: int
    timestamp: int


def write_pack(
    plan: PackPlan,
    output_path: Path,
    *,
    timestamp: int,
    build_number: int = 0,
    signed: bool = False,
) -> PackWriteResult:
    logger = get_logger()
    rep = get_reporter()
    flags = plan.pack_flags | (PACK_FLAG_SIGNED if signed else 0)
    body = Sha256Stream()

    with section(f"Write pack {output_path.name}"):
        try:
            with atomic_output(output_path) as f:

                def emit(chunk: bytes) -> None:
                    f.write(chunk)
                    body.update(chunk)

                emit(pack_header(plan.resource_count))
                emit(pack_index(plan.entries))
                if f.tell() != plan.payload_offset:
                    raise RuntimeError(
                        f"Index ends at {f.tell()}, plan expects {plan.payload_offset}"
                    )
                rep.start_task(
                    "write.payload", "Payload", total=len(plan.payloads)
                )
                for entry, blob in zip(plan.entries, plan.payloads):
                    expected = plan.payload_offset + entry.offset
                    if f.tell() != expected:
                        raise RuntimeError(
                            f"Payload for {entry.virtual_path} at {f.tell()}, plan expects {expected}"
                        )
                    emit(blob)
                    rep.advance("write.payload", current_item=entry.virtual_path)
                rep.end_task(
                    "write.payload", entries=plan.resource_count, bytes=plan.payload_size
                )
                body_sha256 = body.digest()
                footer = pack_footer(
                    crc32=body.crc32,
                    timestamp=timestamp,
                    build_number=build_number,
                    flags=flags,
                    digest=body_sha256,
                )
                f.write(footer)
                size = f.tell()
        except OSError as e:
            raise BuildIOError(
                E_WRITE_IO,
                f"Cannot write pack {output_path}: {e}",
                {"path": str(output_path)},
            ) from e

    expected_size = plan.payload_offset + plan.payload_size + FOOTER_SIZE
    if size != expected_size:  # pragma: no cover
        raise RuntimeError(
            f"File size mismatch vs plan: plan={expected_size} actual={size}"
        )
    file_sha256 = body.digest_with(footer)
    logger.info(
        "Wrote pack %s size=%d crc=0x%08x resources=%d",
        output_path.name,
        size,
        body.crc32,
        plan.resource_count,
    )
    return PackWriteResult(
        output_file=output_path,
        bytes_written=size,
        resource_count=plan.resource_count,
        body_crc32=body.crc32,
        body_sha256=body_sha256,
        file_sha256=file_sha256,
        pack_flags=flags,
        timestamp=timestamp,
    )
