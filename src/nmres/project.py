"""Project directory preflight and resource discovery.

Validation never raises for an invalid project: problems are collected and
returned as human readable strings so callers can show all of them at once.
An empty list means the structure is complete.
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, List
import json

from .packing.constants import PROJECT_MANIFEST_FILE, REQUIRED_PROJECT_DIRS
from .packing.errors import BuildIOError, E_READ_IO
from .utils.paths import normalize_vfs_path

__all__ = [
    "validate_project",
    "discover_resources",
    "load_project_manifest",
]


def validate_project(project_path: str | Path) -> List[str]:
    problems: List[str] = []
    root = Path(project_path)
    if not root.is_dir():
        problems.append(f"Project path does not exist: {root}")
        return problems

    manifest = root / PROJECT_MANIFEST_FILE
    if not manifest.is_file():
        problems.append(f"Missing {PROJECT_MANIFEST_FILE} in project root")
    else:
        try:
            data = json.loads(manifest.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            problems.append(f"{PROJECT_MANIFEST_FILE} is not valid JSON: {e}")
        else:
            if not isinstance(data, dict):
                problems.append(f"{PROJECT_MANIFEST_FILE} must contain an object")

    for name in REQUIRED_PROJECT_DIRS:
        if not (root / name).is_dir():
            problems.append(f"Missing required directory: {name}/")
    return problems


def _is_hidden(rel: Path) -> bool:
    return any(part.startswith(".") for part in rel.parts)


def discover_resources(
    project_path: str | Path, roots: tuple[str, ...] = REQUIRED_PROJECT_DIRS
) -> List[Path]:
    """Project-relative paths of every regular file under ``roots``.

    Hidden files and directories are skipped. The result is sorted by
    virtual path so discovery order never leaks into the archive.
    """
    base = Path(project_path)
    found: List[Path] = []
    for name in roots:
        top = base / name
        if not top.is_dir():
            continue
        for p in top.rglob("*"):
            rel = p.relative_to(base)
            if p.is_file() and not _is_hidden(rel):
                found.append(rel)
    found.sort(key=lambda r: (normalize_vfs_path(r.as_posix()), r.as_posix()))
    return found


def load_project_manifest(project_path: str | Path) -> dict[str, Any]:
    p = Path(project_path) / PROJECT_MANIFEST_FILE
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise BuildIOError(
            E_READ_IO, f"Cannot load {PROJECT_MANIFEST_FILE}: {e}", {"path": str(p)}
        ) from e
    return data if isinstance(data, dict) else {}
