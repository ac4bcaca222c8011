"""Core file runtime."""

from .catalog import collect_schema_entries, read_schema_entries, store_element, store_schema_entry
from .directory import Directory
from .file import JsonFile
from .file_config import FileConfig
from .key import KeyRecord
from .reflection import (
    ClassHandle,
    ClassRegistry,
    EmulatedObject,
    ReflectionBridge,
    default_registry,
)
from .registry import clear_open_files, find_open_file, get_open_files
from .tree import JsonTree

__all__ = [
    "ClassHandle",
    "ClassRegistry",
    "Directory",
    "EmulatedObject",
    "FileConfig",
    "JsonFile",
    "JsonTree",
    "KeyRecord",
    "ReflectionBridge",
    "clear_open_files",
    "collect_schema_entries",
    "default_registry",
    "find_open_file",
    "get_open_files",
    "read_schema_entries",
    "store_element",
    "store_schema_entry",
]
