"""Command line interface for texcopy."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .logging import configure_logging, section, step
from .reporting import (
    set_reporter,
    PlainReporter,
    JsonLinesReporter,
    SilentReporter,
    RichReporter,
    set_verbosity,
    get_reporter,
)
from .errors import CopyError
from .formats import all_formats, lookup, supports_copy
import json
from .layout import (
    Extent,
    LinearLayout,
    TextureDimension,
    compute_full_layout,
    required_bytes,
)
from .api import run_cases, run_config
from .config import load_config
from .matrix import copy_whole_texture_cases


def _flush_reporter() -> None:
    # Progress UI must be finalized before anything goes to stdout.
    get_reporter().flush()


def _run_cmd(args: argparse.Namespace) -> int:
    step(f"running copy matrix from {args.config}")
    config = load_config(args.config)
    if args.jobs:
        config.jobs = args.jobs
    with section(f"Copy matrix: {args.config.name}"):
        summary = run_config(config)
    _flush_reporter()
    if args.json:
        print(json.dumps(summary.to_dict(), indent=2, sort_keys=True))
    return 0 if summary.ok else 1


def _whole_texture_cmd(args: argparse.Namespace) -> int:
    cases = copy_whole_texture_cases(
        format_name=args.format, bytes_per_row=args.bytes_per_row
    )
    with section(f"Whole-texture copies: {args.format}"):
        summary = run_cases(
            cases, jobs=args.jobs, copy_row_alignment=args.row_alignment
        )
    _flush_reporter()
    if args.json:
        print(json.dumps(summary.to_dict(), indent=2, sort_keys=True))
    return 0 if summary.ok else 1


def _layout_cmd(args: argparse.Namespace) -> int:
    fmt = lookup(args.format)
    layout = compute_full_layout(
        fmt,
        TextureDimension(args.dimension),
        Extent(args.width, args.height, args.depth),
        args.mip,
        bytes_per_row_alignment=args.row_alignment,
    )
    _flush_reporter()
    if args.json:
        print(json.dumps(layout.to_dict(), indent=2, sort_keys=True))
    else:
        w, h, d = layout.mip_size.as_tuple()
        get_reporter().status(
            f"Layout summary: format={fmt.name} mip={args.mip} "
            f"size={w}x{h}x{d} bytes_per_row={layout.bytes_per_row} "
            f"rows_per_image={layout.rows_per_image} "
            f"byte_length={layout.byte_length}"
        )
    return 0


def _required_bytes_cmd(args: argparse.Namespace) -> int:
    fmt = lookup(args.format)
    layout = LinearLayout(
        bytes_per_row=args.bytes_per_row,
        rows_per_image=args.rows_per_image,
    )
    n = required_bytes(layout, fmt, Extent(args.width, args.height, args.depth))
    _flush_reporter()
    print(n)
    return 0


def _formats_cmd(args: argparse.Namespace) -> int:
    rows = [
        {
            "name": f.name,
            "block": [f.block_width, f.block_height],
            "bytes_per_block": f.bytes_per_block,
            "copyable": supports_copy(f),
        }
        for f in all_formats()
    ]
    _flush_reporter()
    if args.json:
        print(json.dumps(rows, indent=2, sort_keys=True))
        return 0
    for r in rows:
        bw, bh = r["block"]
        flag = "" if r["copyable"] else "  (no linear copies)"
        print(f"{r['name']:<24} {bw}x{bh} {r['bytes_per_block']:>2} B{flag}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="texcopy",
        description="Texture <-> linear buffer copy layout and verification",
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

    r = sub.add_parser("run", help="Run a copy matrix from a config file")
    r.add_argument("config", type=Path)
    r.add_argument(
        "--jobs", type=int, help="Override the number of parallel cases"
    )
    r.add_argument(
        "--json", action="store_true", help="Emit the run summary as JSON"
    )
    r.set_defaults(func=_run_cmd)

    w = sub.add_parser(
        "whole-texture", help="Run whole-texture copies over small sizes"
    )
    w.add_argument("--format", default="rgba8unorm")
    w.add_argument("--bytes-per-row", type=int, default=256)
    w.add_argument("--row-alignment", type=int, default=1)
    w.add_argument("--jobs", type=int, default=1)
    w.add_argument(
        "--json", action="store_true", help="Emit the run summary as JSON"
    )
    w.set_defaults(func=_whole_texture_cmd)

    lay = sub.add_parser(
        "layout", help="Compute the canonical layout of a mip level"
    )
    lay.add_argument("format")
    lay.add_argument("width", type=int)
    lay.add_argument("height", type=int, nargs="?", default=1)
    lay.add_argument("depth", type=int, nargs="?", default=1)
    lay.add_argument("--mip", type=int, default=0)
    lay.add_argument(
        "--dimension",
        choices=[d.value for d in TextureDimension],
        default="2d",
    )
    lay.add_argument(
        "--row-alignment",
        type=int,
        default=1,
        help="Align bytes_per_row to this many bytes (WebGPU: 256)",
    )
    lay.add_argument("--json", action="store_true", help="Emit JSON layout")
    lay.set_defaults(func=_layout_cmd)

    rb = sub.add_parser(
        "required-bytes", help="Minimum linear size for a copy extent"
    )
    rb.add_argument("format")
    rb.add_argument("width", type=int)
    rb.add_argument("height", type=int, nargs="?", default=1)
    rb.add_argument("depth", type=int, nargs="?", default=1)
    rb.add_argument("--bytes-per-row", type=int, required=True)
    rb.add_argument("--rows-per-image", type=int, required=True)
    rb.set_defaults(func=_required_bytes_cmd)

    f = sub.add_parser("formats", help="List known texel formats")
    f.add_argument("--json", action="store_true", help="Emit JSON list")
    f.set_defaults(func=_formats_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    requested = args.reporter
    if requested == "json":
        set_reporter(JsonLinesReporter())
    elif requested == "silent":
        set_reporter(SilentReporter())
    elif requested == "rich":
        if sys.stderr.isatty():
            set_reporter(RichReporter())
        else:
            # Fallback quietly to plain if no TTY
            set_reporter(PlainReporter())
    else:  # plain
        set_reporter(PlainReporter())
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    try:
        return args.func(args)
    except CopyError as e:
        get_reporter().error(str(e), code=e.code)
        return 2
    except FileNotFoundError as e:
        get_reporter().error(f"File not found: {e}")
        return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
