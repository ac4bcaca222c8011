"""Rich-based console rendering of a file's directory tree."""

from __future__ import annotations

import json
from io import StringIO
from typing import Literal

from rich.console import Console
from rich.tree import Tree

from ..core import Directory, JsonFile, KeyRecord

Verbosity = Literal["minimal", "standard", "full"]
_MAX_VALUE_LEN = 200


def render_file(file: JsonFile, *, verbosity: Verbosity = "standard") -> str:
    tree = Tree(_file_label(file))
    _add_directory_branch(tree, file, file, verbosity)

    console = Console(record=True, width=120, markup=False, file=StringIO())
    console.print(tree)
    return console.export_text()


def _file_label(file: JsonFile) -> str:
    title = f" - {file.title}" if file.title else ""
    return f"File: {file.real_name or file.name}{title} ({len(file.keys)} keys)"


def _add_directory_branch(
    parent_tree: Tree,
    directory: Directory,
    file: JsonFile,
    verbosity: Verbosity,
) -> None:
    for key in directory.keys:
        branch = parent_tree.add(_key_line(key))
        if verbosity in ("standard", "full"):
            if key.title:
                branch.add(f'title: "{key.title}"')
            if key.created:
                branch.add(f"created: {key.created}")
        if verbosity == "full" and not key.is_subdir and key.payload is not None:
            branch.add(f"object: {_format_data(key.payload)}")
        if key.is_subdir:
            child = file.find_key_dir(directory, key.key_id)
            if child is not None:
                _add_directory_branch(branch, child, file, verbosity)


def _key_line(key: KeyRecord) -> str:
    class_name = key.class_name or "?"
    line = f"[{class_name}] {key.name};{key.cycle}"
    if key.is_subdir:
        line += "/"
    return line


def _format_data(data: object) -> str:
    """Format a payload for display, truncating large values."""
    try:
        s = json.dumps(data, ensure_ascii=False)
    except (TypeError, ValueError):
        s = str(data)
    if len(s) <= _MAX_VALUE_LEN:
        return s
    return s[:_MAX_VALUE_LEN] + "... [truncated]"
