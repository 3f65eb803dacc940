"""Error definitions for nmres.

Every failure raised by a public operation is an :class:`NmresError` carrying
a stable ``code``, a human readable ``message`` and a ``category`` so callers
can route security problems apart from plain I/O failures.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, Optional

E_CONFIG_FIELD = "E_CONFIG_FIELD"
E_CONFIG_VALUE = "E_CONFIG_VALUE"
E_NOT_CONFIGURED = "E_NOT_CONFIGURED"
E_PROJECT_INVALID = "E_PROJECT_INVALID"
E_READ_IO = "E_READ_IO"
E_WRITE_IO = "E_WRITE_IO"
E_FILE_TOO_LARGE = "E_FILE_TOO_LARGE"
E_PATH_TRAVERSAL = "E_PATH_TRAVERSAL"
E_OUTSIDE_PROJECT = "E_OUTSIDE_PROJECT"
E_KEY_MISSING = "E_KEY_MISSING"
E_KEY_LENGTH = "E_KEY_LENGTH"
E_COMPRESSION = "E_COMPRESSION"
E_ENCRYPTION = "E_ENCRYPTION"
E_DUP_VIRTUAL_PATH = "E_DUP_VIRTUAL_PATH"
E_BAD_MAGIC = "E_BAD_MAGIC"
E_TRUNCATED = "E_TRUNCATED"
E_CRC_MISMATCH = "E_CRC_MISMATCH"
E_HASH_MISMATCH = "E_HASH_MISMATCH"
E_NOT_FOUND = "E_NOT_FOUND"
E_SIGN = "E_SIGN"
E_TOO_MANY_RESOURCES = "E_TOO_MANY_RESOURCES"


class ErrorCategory(Enum):
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    IO = "io"
    SECURITY = "security"
    INTEGRITY = "integrity"


@dataclass
class NmresError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    category: ClassVar[ErrorCategory] = ErrorCategory.IO

    def __str__(self) -> str:
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "category": self.category.value,
            "message": self.message,
            "context": self.context or {},
        }


class ConfigurationError(NmresError):
    category = ErrorCategory.CONFIGURATION


class ValidationError(NmresError):
    category = ErrorCategory.VALIDATION


class BuildIOError(NmresError):
    category = ErrorCategory.IO


class PathTraversalError(NmresError):
    category = ErrorCategory.SECURITY


class IntegrityError(NmresError):
    category = ErrorCategory.INTEGRITY


class EncryptionKeyError(IntegrityError):
    pass


class CompressionError(IntegrityError):
    pass


class DuplicateResourceError(IntegrityError):
    pass


class ArchiveFormatError(IntegrityError):
    pass


def config_error(
    code: str, message: str, context: Optional[Dict[str, Any]] = None
) -> ConfigurationError:
    return ConfigurationError(code=code, message=message, context=context)


def traversal_error(base_dir: Any, relative_path: str) -> PathTraversalError:
    return PathTraversalError(
        code=E_PATH_TRAVERSAL,
        message=f"Path traversal detected: '{relative_path}'",
        context={"base_dir": str(base_dir), "path": relative_path},
    )


__all__ = [
    "ErrorCategory",
    "NmresError",
    "ConfigurationError",
    "ValidationError",
    "BuildIOError",
    "PathTraversalError",
    "IntegrityError",
    "EncryptionKeyError",
    "CompressionError",
    "DuplicateResourceError",
    "ArchiveFormatError",
    "config_error",
    "traversal_error",
    "E_CONFIG_FIELD",
    "E_CONFIG_VALUE",
    "E_NOT_CONFIGURED",
    "E_PROJECT_INVALID",
    "E_READ_IO",
    "E_WRITE_IO",
    "E_FILE_TOO_LARGE",
    "E_PATH_TRAVERSAL",
    "E_OUTSIDE_PROJECT",
    "E_KEY_MISSING",
    "E_KEY_LENGTH",
    "E_COMPRESSION",
    "E_ENCRYPTION",
    "E_DUP_VIRTUAL_PATH",
    "E_BAD_MAGIC",
    "E_TRUNCATED",
    "E_CRC_MISMATCH",
    "E_HASH_MISMATCH",
    "E_NOT_FOUND",
    "E_SIGN",
    "E_TOO_MANY_RESOURCES",
]
