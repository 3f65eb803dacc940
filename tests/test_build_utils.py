import pytest

from nmres.build_utils import (
    format_file_size,
    get_executable_extension,
    get_platform_name,
)
from nmres.config import BuildPlatform


@pytest.mark.parametrize(
    "platform,name",
    [
        (BuildPlatform.WINDOWS, "Windows"),
        (BuildPlatform.LINUX, "Linux"),
        (BuildPlatform.MACOS, "macOS"),
        (BuildPlatform.WEB, "Web"),
        (BuildPlatform.ANDROID, "Android"),
        (BuildPlatform.IOS, "iOS"),
    ],
)
def test_platform_names(platform, name):
    assert get_platform_name(platform) == name


def test_executable_extensions():
    assert get_executable_extension(BuildPlatform.WINDOWS) == ".exe"
    assert get_executable_extension(BuildPlatform.LINUX) == ""
    assert get_executable_extension(BuildPlatform.MACOS) == ""
    assert get_executable_extension(BuildPlatform.WEB) == ".html"
    assert get_executable_extension(BuildPlatform.ANDROID) == ".apk"
    assert get_executable_extension(BuildPlatform.IOS) == ".ipa"


@pytest.mark.parametrize(
    "size,text",
    [
        (0, "0 B"),
        (512, "512 B"),
        (1023, "1023 B"),
        (1024, "1.00 KB"),
        (1536, "1.50 KB"),
        (1024 * 1024, "1.00 MB"),
        (1024**3, "1.00 GB"),
        (5 * 1024**4, "5120.00 GB"),
    ],
)
def test_format_file_size(size, text):
    assert format_file_size(size) == text
