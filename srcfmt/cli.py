from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import ConfigError, FormatConfig, find_config, load_config
from .runner import (
    STATUS_CHANGED,
    STATUS_ERROR,
    STATUS_SKIPPED,
    STATUS_UNCHANGED,
    Formatter,
    convert_comments_bytes,
)
from .tools import missing_tools

LOG_FORMAT = "%(asctime)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _setup_logging(quiet: bool) -> None:
    logging.basicConfig(
        level=logging.WARNING if quiet else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )


def _load(args: argparse.Namespace, root: Path) -> FormatConfig:
    path: Optional[Path] = Path(args.config) if args.config else find_config(root)
    return load_config(path)


def format_command(args: argparse.Namespace) -> int:
    root = Path(args.root).expanduser().resolve()
    try:
        config = _load(args, root)
        report = Formatter(config, root).run(Path(args.out) if args.out else None)
    except ConfigError as exc:
        print(f"Config error: {exc}")
        return 2

    summary = report.summary
    print(
        "Run {run_id}: {changed} changed, {unchanged} unchanged, "
        "{skipped} skipped, {errors} failed".format(
            run_id=report.run_id,
            changed=summary[STATUS_CHANGED],
            unchanged=summary[STATUS_UNCHANGED],
            skipped=summary[STATUS_SKIPPED],
            errors=summary[STATUS_ERROR],
        )
    )
    for result in report.files:
        if result.status == STATUS_ERROR:
            print(f"  {result.path}: {result.message}")
    return 1 if report.failed else 0


def comments_command(args: argparse.Namespace) -> int:
    out = sys.stdout.buffer
    if not args.files:
        out.write(convert_comments_bytes(sys.stdin.buffer.read()))
        return 0
    for name in args.files:
        try:
            data = Path(name).read_bytes()
        except OSError as exc:
            print(f"Read error: {exc}", file=sys.stderr)
            return 1
        out.write(convert_comments_bytes(data))
    return 0


def check_tools_command(args: argparse.Namespace) -> int:
    root = Path(args.root).expanduser().resolve()
    try:
        config = _load(args, root)
    except ConfigError as exc:
        print(f"Config error: {exc}")
        return 2
    missing = missing_tools(config)
    for tool in missing:
        print(f"{tool} is not installed.")
    if missing:
        return 1
    print("All formatters available.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="srcfmt")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    common = argparse.ArgumentParser(add_help=False)
    # SUPPRESS keeps a top-level -q from being reset by the subcommand default
    common.add_argument(
        "-q", "--quiet", action="store_true", default=argparse.SUPPRESS, help="Only log warnings and errors"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    fmt = subparsers.add_parser("format", parents=[common], help="Format a source tree in place")
    fmt.add_argument("--root", default=".", help="Source tree to format")
    fmt.add_argument("--config", help="Config file (default: <root>/srcfmt.yml)")
    fmt.add_argument("--out", help="Reports directory; the run is written to <out>/<run_id>")
    fmt.set_defaults(func=format_command)

    comments = subparsers.add_parser(
        "comments", parents=[common], help="Print files (or stdin) with // comments rewritten as /* */"
    )
    comments.add_argument("files", nargs="*", metavar="FILE")
    comments.set_defaults(func=comments_command)

    check = subparsers.add_parser("check-tools", parents=[common], help="Report missing formatter executables")
    check.add_argument("--root", default=".", help="Source tree the config belongs to")
    check.add_argument("--config", help="Config file (default: <root>/srcfmt.yml)")
    check.set_defaults(func=check_tools_command)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.quiet)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
