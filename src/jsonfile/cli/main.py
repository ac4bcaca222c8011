"""Command line interface for jsonfile documents."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import cast

from .inspect_cmd import VerbosityArg, run_inspect
from .ls_cmd import run_ls


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jsonfile",
        description="Read-only tools for ROOT-style files stored as one JSON document.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")
    _add_inspect_command(subparsers)
    _add_ls_command(subparsers)
    return parser


def _add_inspect_command(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    command = subparsers.add_parser(
        "inspect",
        help="Show the header, key tree and class usage of a file",
        description="Summarise a jsonfile document: header fields, key counts per class "
        "and the directory tree. The file is opened read-only.",
    )
    command.add_argument("json_file", type=Path, help="jsonfile document (.json is appended if missing)")
    command.add_argument(
        "--verbosity",
        choices=["minimal", "standard", "full"],
        default="standard",
        help="minimal: names only; standard: titles and dates; full: payloads as well",
    )
    summary = command.add_argument_group("machine-readable output")
    summary.add_argument("--json", action="store_true", help="Print the summary as one JSON object")
    summary.add_argument("--output", type=Path, default=None, help="Write the --json summary to this path")
    command.add_argument(
        "--catalog",
        action="store_true",
        help="Include the StreamerInfos class layouts",
    )
    command.set_defaults(
        handler=lambda args: run_inspect(
            args.json_file,
            cast(VerbosityArg, args.verbosity),
            as_json=args.json,
            output_path=args.output,
            with_catalog=args.catalog,
        )
    )


def _add_ls_command(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    command = subparsers.add_parser(
        "ls",
        help="List the keys of one directory",
        description="Print class, name;cycle and title of every key in a directory.",
    )
    command.add_argument("json_file", type=Path, help="jsonfile document (.json is appended if missing)")
    command.add_argument("directory", nargs="?", default="", help="'/'-separated subdirectory path (default: top level)")
    command.set_defaults(handler=lambda args: run_ls(args.json_file, args.directory))


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return cast(int, args.handler(args))


if __name__ == "__main__":
    raise SystemExit(main())
