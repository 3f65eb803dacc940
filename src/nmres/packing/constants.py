"""Binary format constants for .nmres archives."""

from __future__ import annotations

MAGIC = b"NMRS"
FOOTER_MAGIC = b"NMRF"

FORMAT_VERSION_MAJOR = 1
FORMAT_VERSION_MINOR = 0

# magic(4) + major(2) + minor(2) + resource_count(4)
HEADER_SIZE = 12
HEADER_FORMAT = "<4sHHI"

# magic(4) + crc32(4) + timestamp(8) + build_number(4) + flags(4) + digest(8)
FOOTER_SIZE = 32
FOOTER_FORMAT = "<4sIQII8s"
FOOTER_DIGEST_SIZE = 8

# Fixed part of an index entry following the length-prefixed virtual path:
# type(1) + flags(1) + size(8) + compressed_size(8) + stored_size(8)
# + offset(8) + crc32(4) + sha256(32)
ENTRY_PATH_LEN_FORMAT = "<H"
ENTRY_FIXED_FORMAT = "<BBQQQQI32s"
ENTRY_FIXED_SIZE = 70
MAX_VIRTUAL_PATH_BYTES = 0xFFFF

ENTRY_FLAG_COMPRESSED = 0x01
ENTRY_FLAG_ENCRYPTED = 0x02

PACK_FLAG_COMPRESSED = 0x01
PACK_FLAG_ENCRYPTED = 0x02
PACK_FLAG_SIGNED = 0x04

SHA256_SIZE = 32
ENCRYPTION_KEY_SIZE = 32
NONCE_SIZE = 12
AUTH_TAG_SIZE = 16

MAX_RESOURCE_COUNT = 0xFFFFFFFF
MAX_TIMESTAMP = 0xFFFFFFFFFFFFFFFF
DEFAULT_MAX_FILE_SIZE = 512 * 1024 * 1024

PACK_EXTENSION = ".nmres"
PACKS_INDEX_FILE = "packs_index.json"
BUILD_INFO_FILE = "build_info.json"
PROJECT_MANIFEST_FILE = "project.json"
REQUIRED_PROJECT_DIRS = ("scripts", "assets")
