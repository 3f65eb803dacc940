"""Command line interface for nmres."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .logging import configure_logging
from .reporting import get_reporter, make_reporter, set_reporter, set_verbosity
from .build_utils import format_file_size
from .config import CompressionLevel
from .packing.errors import NmresError
from .api import (
    PackRequest,
    build_project,
    extract_pack,
    generate_key,
    inspect_pack,
    pack_files,
    validate_project,
    verify_pack,
)


def _build_cmd(args: argparse.Namespace) -> int:
    result = build_project(args.config)
    rep = get_reporter()
    for p in result.packs:
        rep.verbose(f"{p.output_file} ({format_file_size(p.bytes_written)})")
    return 0


def _pack_cmd(args: argparse.Namespace) -> int:
    result = pack_files(
        PackRequest(
            project_path=args.project,
            output_path=args.output,
            files=args.files,
            compression=CompressionLevel(args.compression),
            key_path=args.key,
            fixed_timestamp=args.timestamp,
            build_number=args.build_number,
            jobs=args.jobs,
        )
    )
    get_reporter().verbose(
        f"{result.output_file} ({format_file_size(result.bytes_written)})"
    )
    return 0


def _validate_cmd(args: argparse.Namespace) -> int:
    problems = validate_project(args.project)
    rep = get_reporter()
    for problem in problems:
        rep.error(problem)
    return 1 if problems else 0


def _inspect_cmd(args: argparse.Namespace) -> int:
    info = inspect_pack(args.pack)
    rep = get_reporter()
    rep.flush()
    if args.json:
        print(json.dumps(info, indent=2, sort_keys=True))
        return 0
    header = info["header"]
    footer = info["footer"]
    rep.section(f"Pack {args.pack.name}")
    rep.status(
        f"version={header['version'][0]}.{header['version'][1]} "
        f"resources={header['resource_count']} size={format_file_size(info['file_size'])} "
        f"timestamp={footer['timestamp']} build={footer['build_number']} "
        f"flags={footer['flags']}"
    )
    for e in info["entries"]:
        rep.status(
            f"{e['path']} type={e['type']} size={e['size']} "
            f"stored={e['stored_size']} flags={e['flags']}"
        )
    return 0


def _verify_cmd(args: argparse.Namespace) -> int:
    issues = verify_pack(args.pack, args.key)
    rep = get_reporter()
    for issue in issues:
        rep.error(issue)
    return 1 if issues else 0


def _extract_cmd(args: argparse.Namespace) -> int:
    extract_pack(args.pack, args.dest, args.key)
    return 0


def _keygen_cmd(args: argparse.Namespace) -> int:
    generate_key(args.path, force=args.force)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="nmres", description="Resource pack builder"
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=["plain", "rich", "json", "silent"],
        default="plain",
        help="Select reporter backend: plain (default), rich, json (JSONL events), silent",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    b = sub.add_parser("build", help="Build a project from a config file")
    b.add_argument("config", type=Path)
    b.set_defaults(func=_build_cmd)

    pk = sub.add_parser("pack", help="Pack project files into one archive")
    pk.add_argument("project", type=Path)
    pk.add_argument("output", type=Path)
    pk.add_argument("files", nargs="*", help="Paths relative to the project")
    pk.add_argument(
        "--compression",
        choices=[c.value for c in CompressionLevel],
        default=CompressionLevel.NONE.value,
    )
    pk.add_argument("--key", type=Path, help="32-byte key file; enables encryption")
    pk.add_argument(
        "--timestamp",
        type=int,
        default=0,
        help="Fixed build timestamp (0 = wall clock)",
    )
    pk.add_argument("--build-number", dest="build_number", type=int, default=0)
    pk.add_argument("-j", "--jobs", type=int, default=1)
    pk.set_defaults(func=_pack_cmd)

    v = sub.add_parser("validate", help="Check a project's directory structure")
    v.add_argument("project", type=Path)
    v.set_defaults(func=_validate_cmd)

    i = sub.add_parser("inspect", help="Inspect a pack file")
    i.add_argument("pack", type=Path)
    i.add_argument("--json", action="store_true", help="Emit JSON")
    i.set_defaults(func=_inspect_cmd)

    vf = sub.add_parser("verify", help="Verify pack integrity")
    vf.add_argument("pack", type=Path)
    vf.add_argument("--key", type=Path)
    vf.set_defaults(func=_verify_cmd)

    x = sub.add_parser("extract", help="Extract a pack into a directory")
    x.add_argument("pack", type=Path)
    x.add_argument("dest", type=Path)
    x.add_argument("--key", type=Path)
    x.set_defaults(func=_extract_cmd)

    k = sub.add_parser("keygen", help="Write a new random 32-byte key")
    k.add_argument("path", type=Path)
    k.add_argument("--force", action="store_true", help="Overwrite an existing key")
    k.set_defaults(func=_keygen_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    set_reporter(make_reporter(args.reporter, interactive=sys.stderr.isatty()))
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    try:
        return args.func(args)
    except NmresError as e:
        get_reporter().error(str(e), code=e.code, category=e.category.value)
        return 2
    finally:
        get_reporter().flush()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
