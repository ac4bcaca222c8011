"""List subcommand implementation."""

from __future__ import annotations

import sys
from pathlib import Path

from .inspect_cmd import open_read_only


def run_ls(json_file: Path, directory_path: str = "") -> int:
    file = open_read_only(json_file)
    if file is None:
        return 1

    with file:
        directory = file.get_directory(directory_path)
        if directory is None:
            print(f"Error: no directory {directory_path!r} in {file.real_name}", file=sys.stderr)
            return 1
        print(f"{directory.path}  ({len(directory.keys)} keys)")
        for line in directory.ls():
            print(line)
    return 0
