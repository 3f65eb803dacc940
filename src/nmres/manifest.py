"""``packs_index.json`` generation.

The index is the runtime's entry point into a packed build: it lists every
pack written by a build together with the data a loader needs to pick and
verify them (size, resource count, CRC32, SHA-256, flags, signature file).
"""

from __future__ import annotations

from pathlib import Path
import json
from typing import TYPE_CHECKING, Any, Sequence

from .build_utils import get_platform_name
from .reporting import get_reporter
from .utils.io import write_bytes_atomic

if TYPE_CHECKING:
    from .build_system import PackResult
    from .config import BuildConfig

__all__ = ["PACKS_INDEX_VERSION", "packs_index_dict", "write_packs_index"]

PACKS_INDEX_VERSION = 1


def packs_index_dict(
    packs: Sequence["PackResult"],
    config: "BuildConfig",
    timestamp: int,
) -> dict[str, Any]:
    return {
        "format_version": PACKS_INDEX_VERSION,
        "build": {
            "version": config.version,
            "build_number": config.build_number,
            "platform": get_platform_name(config.platform),
            "build_type": config.build_type.value,
            "timestamp": timestamp,
            "deterministic": config.deterministic_build,
        },
        "packs": [p.to_dict() for p in packs],
    }


def write_packs_index(
    output_path: Path,
    packs: Sequence["PackResult"],
    config: "BuildConfig",
    timestamp: int,
) -> Path:
    data = packs_index_dict(packs, config, timestamp)
    text = json.dumps(data, indent=2, sort_keys=True) + "\n"
    write_bytes_atomic(output_path, text.encode("utf-8"))
    get_reporter().status(
        "Index summary: file="
        + f"{output_path.name} packs={len(packs)} "
        + f"resources={sum(p.resource_count for p in packs)}"
    )
    return output_path
