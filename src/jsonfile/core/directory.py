"""Directories: ordered, name-indexed collections of keys."""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from ..exceptions import JsonFileUsageError
from ..models import NULL_UUID, DirectoryRecord, new_uuid, sql_timestamp

if TYPE_CHECKING:
    from .file import JsonFile
    from .key import ExpectedClass, KeyRecord


class Directory:
    """A named collection of keys, possibly nested inside another directory.

    ``seek_dir`` is the ``key_id`` of the key that stands for this directory
    in its mother; the root directory (the file itself) has ``seek_dir == 0``.
    """

    def __init__(
        self,
        name: str,
        title: str = "",
        *,
        mother: Directory | None = None,
        file: JsonFile | None = None,
        seek_dir: int = 0,
    ) -> None:
        self.name = name
        self.title = title
        self.mother = mother
        self.seek_dir = seek_dir
        self._file = file
        self._keys: list[KeyRecord] = []
        self._subdirs: list[Directory] = []
        now = sql_timestamp()
        self.created = now
        self.modified = now
        self.uuid = new_uuid()

    @property
    def file(self) -> JsonFile:
        if self._file is None:
            raise JsonFileUsageError(f"directory {self.name!r} is not attached to a file")
        return self._file

    @property
    def keys(self) -> list[KeyRecord]:
        return list(self._keys)

    @property
    def subdirectories(self) -> list[Directory]:
        return list(self._subdirs)

    @property
    def path(self) -> str:
        parts: list[str] = []
        directory: Directory | None = self
        while directory is not None and directory.mother is not None:
            parts.append(directory.name)
            directory = directory.mother
        root = directory.name if directory is not None else ""
        return f"{root}:/" + "/".join(reversed(parts))

    def append_key(self, key: KeyRecord) -> int:
        """Append ``key`` and return its cycle: one more than the highest cycle of that name."""
        cycle = 1 + max((k.cycle for k in self._keys if k.name == key.name), default=0)
        self._keys.append(key)
        return cycle

    def adopt_key(self, key: KeyRecord) -> None:
        """Append a key read from a document, keeping its stored cycle."""
        self._keys.append(key)

    def remove_key(self, key: KeyRecord) -> None:
        self._keys = [k for k in self._keys if k is not key]

    def append_directory(self, directory: Directory) -> None:
        if not any(d is directory for d in self._subdirs):
            self._subdirs.append(directory)

    def remove_directory(self, directory: Directory) -> None:
        self._subdirs = [d for d in self._subdirs if d is not directory]

    def get_key(self, name: str, cycle: int | None = None) -> KeyRecord | None:
        """Find a key by name, optionally ``"name;cycle"``; the highest cycle wins by default."""
        name, cycle = _split_cycle(name, cycle)
        matches = [k for k in self._keys if k.name == name and (cycle is None or k.cycle == cycle)]
        if not matches:
            return None
        return max(matches, key=lambda k: k.cycle)

    def get(self, name: str, cycle: int | None = None, *, expected: ExpectedClass | None = None) -> Any:
        """Read the object stored under ``name`` (a ``Directory`` for subdirectories)."""
        if "/" in name:
            head, _, tail = name.rpartition("/")
            directory = self.get_directory(head)
            return directory.get(tail, cycle, expected=expected) if directory is not None else None
        key = self.get_key(name, cycle)
        if key is None:
            return None
        return key.read_object(expected)

    def get_directory(self, path: str) -> Directory | None:
        directory: Directory | None = self
        for part in (p for p in path.split("/") if p):
            if directory is None:
                return None
            directory = directory._find_subdirectory(part)
        return directory

    def _find_subdirectory(self, name: str) -> Directory | None:
        for directory in self._subdirs:
            if directory.name == name:
                return directory
        key = self.get_key(name)
        if key is None or not key.is_subdir:
            return None
        return key.read_object()

    def write_object(
        self,
        obj: object,
        name: str | None = None,
        *,
        title: str | None = None,
        cls: ExpectedClass | None = None,
    ) -> KeyRecord:
        """Store ``obj`` as a new key; an existing name gets the next cycle."""
        self.file.ensure_writable()
        return self.file.create_key(self, obj, name, title=title, cls=cls)

    def mkdir(self, name: str, title: str = "") -> Directory:
        self.file.ensure_writable()
        if not name or "/" in name:
            raise ValueError(f"invalid directory name: {name!r}")
        if self.get_key(name) is not None:
            raise ValueError(f"An object with name {name!r} exists already in {self.path}")
        child = Directory(name, title, mother=self, file=self.file)
        self._subdirs.append(child)
        child.seek_dir = self.file.dir_create_entry(child)
        return child

    def read_keys(self) -> int:
        return self.file.dir_read_keys(self)

    def save(self) -> None:
        """Refresh the stored header and key metadata of this directory and below."""
        for directory in self._subdirs:
            directory.save()
        self.modified = sql_timestamp()
        self.file.dir_write_header(self)
        self.file.dir_write_keys(self)

    def delete(self, name: str) -> int:
        """Delete ``name`` (highest cycle), ``"name;N"`` or ``"name;*"``. Returns the count removed."""
        self.file.ensure_writable()
        base, _, suffix = name.partition(";")
        if suffix == "*":
            victims = [k for k in self._keys if k.name == base]
        else:
            key = self.get_key(name)
            victims = [key] if key is not None else []
        for key in victims:
            if key.is_subdir:
                directory = self.file.find_key_dir(self, key.key_id)
                if directory is not None:
                    directory.close()
                    self.remove_directory(directory)
            key.delete()
        return len(victims)

    def close(self) -> None:
        """Release subdirectories first, then this directory's keys."""
        for directory in self._subdirs:
            directory.close()
        self._subdirs.clear()
        for key in self._keys:
            key.release()
        self._keys.clear()

    def to_record(self) -> DirectoryRecord:
        file = self.file
        return DirectoryRecord(
            name=self.name,
            title=self.title,
            created=file.stamp(self.created),
            modified=file.stamp(self.modified),
            uuid=NULL_UUID if file.reproducible else self.uuid,
        )

    def walk(self) -> Iterator[tuple[Directory, KeyRecord]]:
        """Every key of this directory and its subdirectories, depth first."""
        for key in list(self._keys):
            yield self, key
            if key.is_subdir:
                child = self.file.find_key_dir(self, key.key_id)
                if child is not None:
                    yield from child.walk()

    def ls(self) -> list[str]:
        return [f"{key.class_name}\t{key.name};{key.cycle}\t{key.title}" for key in self._keys]

    def __iter__(self) -> Iterator[KeyRecord]:
        return iter(list(self._keys))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get_key(name) is not None

    def __repr__(self) -> str:
        return f"Directory({self.path!r}, keys={len(self._keys)})"


def _split_cycle(name: str, cycle: int | None) -> tuple[str, int | None]:
    if ";" not in name:
        return name, cycle
    base, _, suffix = name.partition(";")
    if suffix.isdigit() and cycle is None:
        return base, int(suffix)
    return base, cycle
