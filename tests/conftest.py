import json
from pathlib import Path

import pytest

from nmres.reporting import SilentReporter, set_reporter, set_verbosity

KEY = bytes(range(32))

PROJECT_FILES = {
    "scripts/main.nms": b'label start:\n    say "Hello"\n',
    "scripts/chapter1/intro.nmscript": b"scene intro\n" * 40,
    "assets/images/bg.png": b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 4,
    "assets/data/info.json": json.dumps({"title": "demo", "lines": ["a"] * 50}).encode(),
    "assets/audio/click.wav": b"RIFF" + b"\x00" * 300,
    "assets/.cache/ignored.txt": b"hidden",
}


@pytest.fixture(autouse=True)
def quiet_reporter():
    set_reporter(SilentReporter())
    set_verbosity(0)
    yield
    set_reporter(SilentReporter())
    set_verbosity(0)


def make_project(root: Path, files=PROJECT_FILES) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "project.json").write_text(json.dumps({"name": "demo"}))
    (root / "scripts").mkdir(exist_ok=True)
    (root / "assets").mkdir(exist_ok=True)
    for rel, data in files.items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(data)
    return root


@pytest.fixture
def project(tmp_path: Path) -> Path:
    return make_project(tmp_path / "project")


@pytest.fixture
def key_file(tmp_path: Path) -> Path:
    p = tmp_path / "pack.key"
    p.write_bytes(KEY)
    return p


@pytest.fixture
def project_factory(tmp_path: Path):
    def factory(name: str = "project", files=PROJECT_FILES) -> Path:
        return make_project(tmp_path / name, files)

    return factory
