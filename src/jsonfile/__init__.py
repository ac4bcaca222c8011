"""jsonfile — a ROOT-style file format stored as one JSON document.

Convenience API:
    jsonfile.register_class(Model)      -> make a pydantic model storable
    jsonfile.open_file(path, "create")  -> open a file, raising on failure

DI API (construct the file yourself):
    from jsonfile.core import FileConfig, JsonFile
    with JsonFile("run.json", "recreate", config=FileConfig(reproducible=True)) as f:
        f.write_object(hist, "h1")
"""

from __future__ import annotations

from .core import (
    ClassRegistry,
    Directory,
    EmulatedObject,
    FileConfig,
    JsonFile,
    KeyRecord,
    clear_open_files,
    default_registry,
)
from .exceptions import (
    JsonFileError,
    JsonFileIOError,
    JsonFileLoadError,
    JsonFileUsageError,
    JsonFileVersionError,
)
from .models import Counted, FixedArray
from .storage import DocumentStorage, LocalFileStorage, MemoryStorage

register_class = default_registry.register


def _reset_default_registry() -> None:
    """Forget registered classes and open files. Used by test fixtures."""
    default_registry.reset()
    clear_open_files()


def open_file(
    filename: str,
    option: str = "read",
    title: str = "",
    compression: int | None = None,
    *,
    config: FileConfig | None = None,
    registry: ClassRegistry | None = None,
    storage: DocumentStorage | None = None,
) -> JsonFile:
    """Open ``filename`` and return the file, or raise ``JsonFileUsageError`` if it cannot be opened."""
    file = JsonFile(
        filename,
        option,
        title,
        compression,
        config=config,
        registry=registry,
        storage=storage,
    )
    if file.is_zombie:
        raise JsonFileUsageError(file.zombie_reason)
    return file


__all__ = [
    "ClassRegistry",
    "Counted",
    "Directory",
    "DocumentStorage",
    "EmulatedObject",
    "FileConfig",
    "FixedArray",
    "JsonFile",
    "JsonFileError",
    "JsonFileIOError",
    "JsonFileLoadError",
    "JsonFileUsageError",
    "JsonFileVersionError",
    "KeyRecord",
    "LocalFileStorage",
    "MemoryStorage",
    "default_registry",
    "open_file",
    "register_class",
]
