"""Inspect subcommand implementation."""

from __future__ import annotations

import json
import sys
from collections import Counter
from pathlib import Path
from typing import Literal

from ..core import JsonFile
from ..exceptions import JsonFileError
from ..models import DOCUMENT_TYPE, SchemaEntry
from ..renderers import render_file

VerbosityArg = Literal["minimal", "standard", "full"]


def run_inspect(
    json_file: Path,
    verbosity: VerbosityArg,
    *,
    as_json: bool,
    output_path: Path | None,
    with_catalog: bool = False,
) -> int:
    if output_path is not None and not as_json:
        raise ValueError("--output is only supported when --json is provided")

    file = open_read_only(json_file)
    if file is None:
        return 1

    with file:
        summary = _build_summary(file)
        entries = file.get_streamer_info_list()

        if as_json:
            if with_catalog:
                summary["catalog"] = [entry.to_node() for entry in entries]
            payload = json.dumps(summary, ensure_ascii=True, sort_keys=True)
            if output_path is not None:
                output_path.parent.mkdir(parents=True, exist_ok=True)
                output_path.write_text(payload + "\n", encoding="utf-8")
            else:
                print(payload)
            return 0

        print(f"File: {file.real_name}")
        print(f"Title: {file.title or '<untitled>'}")
        print(f"IO version: {file.io_version}")
        print(f"UUID: {file.uuid}")
        print(f"Created: {file.created}")
        print(f"Modified: {file.modified}")
        print(f"Keys: {summary['key_count']}")
        print(f"Directories: {summary['directory_count']}")
        print("Class counts:")
        for class_name, count in summary["class_counts"].items():  # type: ignore[union-attr]
            print(f"  - {class_name}: {count}")
        if with_catalog:
            print("Streamer infos:")
            for entry in entries:
                print(_format_entry(entry))
        print()
        print(render_file(file, verbosity=verbosity))
    return 0


def open_read_only(json_file: Path) -> JsonFile | None:
    """Open ``json_file`` for reading; report the failure on stderr and return None."""
    try:
        file = JsonFile(str(json_file), "read")
    except JsonFileError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return None
    except OSError as exc:
        print(f"Error reading file: {exc}", file=sys.stderr)
        return None
    if file.is_zombie:
        print(f"Error: {file.zombie_reason}", file=sys.stderr)
        return None
    return file


def _build_summary(file: JsonFile) -> dict[str, object]:
    keys = [key for _, key in file.walk()]
    class_counts = Counter(key.class_name or "?" for key in keys)

    return {
        "type": DOCUMENT_TYPE,
        "io_version": file.io_version,
        "uuid": file.uuid,
        "title": file.title,
        "created": file.created,
        "modified": file.modified,
        "key_count": len(keys),
        "directory_count": sum(1 for key in keys if key.is_subdir),
        "class_counts": dict(sorted(class_counts.items())),
        "streamer_infos": [entry.name for entry in file.get_streamer_info_list()],
    }


def _format_entry(entry: SchemaEntry) -> str:
    lines = [f"  - {entry.name} v{entry.class_version} (checksum {entry.checksum})"]
    for element in entry.elements:
        lines.append(f"      {element.kind.value} {element.name}: {element.type_name or element.type_code}")
    return "\n".join(lines)
