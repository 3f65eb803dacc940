"""Path utilities: virtual path normalization and safe output resolution."""

from __future__ import annotations
from pathlib import Path
import re

from ..packing.errors import (
    E_OUTSIDE_PROJECT,
    PathTraversalError,
    traversal_error,
)

__all__ = [
    "normalize_vfs_path",
    "split_path_segments",
    "sanitize_output_path",
    "resolve_source_path",
]

_SEPARATORS = re.compile(r"[\\/]")
_DRIVE = re.compile(r"^[A-Za-z]:")


def normalize_vfs_path(path: str) -> str:
    """Return the archive key for ``path``.

    Backslashes become forward slashes, the whole string is lower-cased and
    leading / trailing slashes are stripped. Idempotent.
    """
    if not path:
        return ""
    normalized = path.replace("\\", "/").lower()
    return normalized.lstrip("/").rstrip("/")


def split_path_segments(path: str) -> list[str]:
    return [seg for seg in _SEPARATORS.split(path) if seg]


def sanitize_output_path(base_dir: str | Path, relative_path: str) -> Path:
    """Resolve ``relative_path`` below ``base_dir`` or raise.

    Any ``..`` segment is rejected outright, even when the path would cancel
    back inside ``base_dir`` (``a/../a/x`` is refused). Absolute paths and
    drive-qualified paths are refused as well. An empty path resolves to
    ``base_dir``.
    """
    base = Path(base_dir).resolve()
    if not relative_path:
        return base
    if relative_path[0] in "/\\" or _DRIVE.match(relative_path):
        raise traversal_error(base, relative_path)
    segments = split_path_segments(relative_path)
    if any(seg == ".." for seg in segments):
        raise traversal_error(base, relative_path)
    resolved = base.joinpath(*segments).resolve() if segments else base
    # Symlinked directories below base can still point elsewhere.
    try:
        resolved.relative_to(base)
    except ValueError:
        raise traversal_error(base, relative_path) from None
    return resolved


def resolve_source_path(
    project_root: str | Path, entry: str | Path
) -> tuple[Path, str]:
    """Resolve a build input against the project root.

    Returns the absolute source path and its project-relative posix form,
    which becomes the virtual path after normalization. Relative entries go
    through :func:`sanitize_output_path`; absolute entries must already lie
    inside the project.
    """
    root = Path(project_root).resolve()
    candidate = Path(entry)
    if candidate.is_absolute():
        resolved = candidate.resolve()
        try:
            rel = resolved.relative_to(root)
        except ValueError:
            raise PathTraversalError(
                code=E_OUTSIDE_PROJECT,
                message=f"Source file outside project root: '{entry}'",
                context={"project_root": str(root), "path": str(entry)},
            ) from None
    else:
        resolved = sanitize_output_path(root, str(entry))
        rel = resolved.relative_to(root)
    return resolved, rel.as_posix()
