import json
from pathlib import Path

from nmres.cli import build_parser, main


def _config_file(tmp_path: Path, project: Path) -> Path:
    p = tmp_path / "build.yaml"
    p.write_text(
        f"project_path: {project.name}\n"
        "output_path: dist\n"
        "fixed_build_timestamp: 1704067200\n"
        "compression: fast\n"
    )
    return p


def test_parser_requires_command():
    parser = build_parser()
    args = parser.parse_args(["-vv", "-r", "json", "inspect", "x.nmres", "--json"])
    assert args.verbose == 2
    assert args.reporter == "json"
    assert args.json is True


def test_build_command(tmp_path: Path, project: Path):
    cfg = _config_file(tmp_path, project)
    assert main(["-r", "silent", "build", str(cfg)]) == 0
    assert (tmp_path / "dist" / "packs" / "assets.nmres").is_file()
    assert (tmp_path / "dist" / "build_info.json").is_file()


def test_build_command_json_summary(tmp_path: Path, project: Path, capsys):
    cfg = _config_file(tmp_path, project)
    assert main(["-r", "json", "build", str(cfg)]) == 0
    events = [json.loads(l) for l in capsys.readouterr().out.splitlines()]
    kinds = {e["summary_type"] for e in events if e["event"] == "summary"}
    assert {"pack", "index", "build"} <= kinds


def test_pack_inspect_verify_extract(tmp_path: Path, project: Path, key_file: Path, capsys):
    out = tmp_path / "game.nmres"
    rc = main(
        [
            "-r",
            "silent",
            "pack",
            str(project),
            str(out),
            "scripts/main.nms",
            "assets/data/info.json",
            "--compression",
            "max",
            "--key",
            str(key_file),
            "--timestamp",
            "1704067200",
        ]
    )
    assert rc == 0
    capsys.readouterr()
    assert main(["-r", "silent", "inspect", str(out), "--json"]) == 0
    info = json.loads(capsys.readouterr().out)
    assert info["header"]["resource_count"] == 2
    assert info["footer"]["timestamp"] == 1704067200

    assert main(["-r", "silent", "verify", str(out), "--key", str(key_file)]) == 0
    dest = tmp_path / "x"
    assert main(["-r", "silent", "extract", str(out), str(dest), "--key", str(key_file)]) == 0
    assert (dest / "scripts" / "main.nms").read_bytes() == (
        project / "scripts" / "main.nms"
    ).read_bytes()


def test_verify_reports_corruption(tmp_path: Path, project: Path):
    out = tmp_path / "game.nmres"
    assert main(["-r", "silent", "pack", str(project), str(out), "scripts/main.nms"]) == 0
    data = bytearray(out.read_bytes())
    data[-40] ^= 0x01
    out.write_bytes(bytes(data))
    assert main(["-r", "silent", "verify", str(out)]) == 1


def test_validate_command(tmp_path: Path, project: Path):
    assert main(["-r", "silent", "validate", str(project)]) == 0
    assert main(["-r", "silent", "validate", str(tmp_path / "missing")]) == 1


def test_traversal_returns_error_code(tmp_path: Path, project: Path, capsys):
    out = tmp_path / "evil.nmres"
    rc = main(["-r", "plain", "pack", str(project), str(out), "../evil.txt"])
    assert rc == 2
    assert "Path traversal detected" in capsys.readouterr().err
    assert not out.exists()


def test_keygen(tmp_path: Path):
    key = tmp_path / "k.key"
    assert main(["-r", "silent", "keygen", str(key)]) == 0
    assert len(key.read_bytes()) == 32
    assert main(["-r", "silent", "keygen", str(key)]) == 2
    assert main(["-r", "silent", "keygen", str(key), "--force"]) == 0


def test_json_error_event_carries_category(tmp_path: Path, project: Path, capsys):
    rc = main(["-r", "json", "pack", str(project), str(tmp_path / "e.nmres"), "../x.txt"])
    assert rc == 2
    events = [json.loads(l) for l in capsys.readouterr().out.splitlines()]
    errors = [e for e in events if e.get("level") == "error" and "code" in e]
    assert errors[-1]["code"] == "E_PATH_TRAVERSAL"
    assert errors[-1]["category"] == "security"
