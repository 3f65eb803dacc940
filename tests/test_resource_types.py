import pytest

from nmres.packing.resource_types import (
    ResourceType,
    get_resource_type_from_extension,
    should_compress,
)


@pytest.mark.parametrize(
    "name,expected",
    [
        ("bg.png", ResourceType.TEXTURE),
        ("photo.JPEG", ResourceType.TEXTURE),
        ("ui/atlas.webp", ResourceType.TEXTURE),
        ("click.wav", ResourceType.AUDIO),
        ("voice.flac", ResourceType.AUDIO),
        ("theme.ogg", ResourceType.MUSIC),
        ("theme.MP3", ResourceType.MUSIC),
        ("font.ttf", ResourceType.FONT),
        ("font.otf", ResourceType.FONT),
        ("main.nms", ResourceType.SCRIPT),
        ("chapter.nmscript", ResourceType.SCRIPT),
        ("config.json", ResourceType.DATA),
        ("strings.yaml", ResourceType.DATA),
        ("table.csv", ResourceType.DATA),
        ("blur.frag", ResourceType.SHADER),
        ("intro.webm", ResourceType.VIDEO),
        ("archive.xyz", ResourceType.UNKNOWN),
        ("README", ResourceType.UNKNOWN),
        ("", ResourceType.UNKNOWN),
    ],
)
def test_classification(name, expected):
    assert get_resource_type_from_extension(name) is expected


def test_classification_uses_last_suffix_with_backslashes():
    assert get_resource_type_from_extension("Assets\\Img\\bg.tar.PNG") is ResourceType.TEXTURE


def test_compression_policy():
    assert not should_compress(ResourceType.TEXTURE)
    assert not should_compress(ResourceType.MUSIC)
    assert not should_compress(ResourceType.VIDEO)
    assert should_compress(ResourceType.SCRIPT)
    assert should_compress(ResourceType.DATA)
    assert should_compress(ResourceType.UNKNOWN)
