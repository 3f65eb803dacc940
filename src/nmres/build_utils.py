"""Small presentation helpers shared by the orchestrator and the CLI."""

from __future__ import annotations

from .config.models import BuildPlatform

__all__ = [
    "get_platform_name",
    "get_executable_extension",
    "format_file_size",
]

_PLATFORM_NAMES = {
    BuildPlatform.WINDOWS: "Windows",
    BuildPlatform.LINUX: "Linux",
    BuildPlatform.MACOS: "macOS",
    BuildPlatform.WEB: "Web",
    BuildPlatform.ANDROID: "Android",
    BuildPlatform.IOS: "iOS",
}

_EXECUTABLE_EXTENSIONS = {
    BuildPlatform.WINDOWS: ".exe",
    BuildPlatform.WEB: ".html",
    BuildPlatform.ANDROID: ".apk",
    BuildPlatform.IOS: ".ipa",
}


def get_platform_name(platform: BuildPlatform) -> str:
    return _PLATFORM_NAMES[platform]


def get_executable_extension(platform: BuildPlatform) -> str:
    return _EXECUTABLE_EXTENSIONS.get(platform, "")


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    value = float(size)
    for unit in ("KB", "MB", "GB"):
        value /= 1024.0
        if value < 1024.0 or unit == "GB":
            return f"{value:.2f} {unit}"
    return f"{value:.2f} GB"  # pragma: no cover
