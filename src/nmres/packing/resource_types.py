"""Resource classification by file extension.

Classification is advisory: it picks the type tag stored in the index and
the compression policy. Unknown extensions map to ``UNKNOWN``.
"""

from __future__ import annotations
from enum import IntEnum
from pathlib import PurePath

__all__ = [
    "ResourceType",
    "EXTENSION_MAP",
    "get_resource_type_from_extension",
    "should_compress",
]


class ResourceType(IntEnum):
    UNKNOWN = 0
    TEXTURE = 1
    AUDIO = 2
    MUSIC = 3
    FONT = 4
    SCRIPT = 5
    DATA = 6
    SHADER = 7
    VIDEO = 8


EXTENSION_MAP: dict[str, ResourceType] = {
    "png": ResourceType.TEXTURE,
    "jpg": ResourceType.TEXTURE,
    "jpeg": ResourceType.TEXTURE,
    "bmp": ResourceType.TEXTURE,
    "webp": ResourceType.TEXTURE,
    "tga": ResourceType.TEXTURE,
    "gif": ResourceType.TEXTURE,
    "wav": ResourceType.AUDIO,
    "flac": ResourceType.AUDIO,
    "ogg": ResourceType.MUSIC,
    "mp3": ResourceType.MUSIC,
    "opus": ResourceType.MUSIC,
    "ttf": ResourceType.FONT,
    "otf": ResourceType.FONT,
    "nms": ResourceType.SCRIPT,
    "nmscript": ResourceType.SCRIPT,
    "json": ResourceType.DATA,
    "xml": ResourceType.DATA,
    "yaml": ResourceType.DATA,
    "yml": ResourceType.DATA,
    "csv": ResourceType.DATA,
    "txt": ResourceType.DATA,
    "glsl": ResourceType.SHADER,
    "vert": ResourceType.SHADER,
    "frag": ResourceType.SHADER,
    "mp4": ResourceType.VIDEO,
    "webm": ResourceType.VIDEO,
}

# Payloads that are already entropy coded; deflating them again only costs time.
_PRECOMPRESSED = frozenset(
    {ResourceType.TEXTURE, ResourceType.MUSIC, ResourceType.VIDEO}
)


def get_resource_type_from_extension(filename: str) -> ResourceType:
    suffix = PurePath(filename.replace("\\", "/")).suffix
    return EXTENSION_MAP.get(suffix[1:].lower(), ResourceType.UNKNOWN)


def should_compress(resource_type: ResourceType) -> bool:
    return resource_type not in _PRECOMPRESSED
