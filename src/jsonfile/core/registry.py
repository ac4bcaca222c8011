"""Process-wide list of open files."""

from __future__ import annotations

import threading
import weakref
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .file import JsonFile

_files_lock = threading.Lock()
_open_files: list[weakref.ref[JsonFile]] = []


def register_file(file: JsonFile) -> None:
    with _files_lock:
        if not any(ref() is file for ref in _open_files):
            _open_files.append(weakref.ref(file))


def unregister_file(file: JsonFile) -> None:
    with _files_lock:
        _open_files[:] = [ref for ref in _open_files if ref() is not None and ref() is not file]


def get_open_files() -> list[JsonFile]:
    with _files_lock:
        return [file for file in (ref() for ref in _open_files) if file is not None]


def find_open_file(name: str) -> JsonFile | None:
    for file in get_open_files():
        if name in (file.name, file.real_name):
            return file
    return None


def clear_open_files() -> None:
    with _files_lock:
        _open_files.clear()
