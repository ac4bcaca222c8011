"""JsonFile: a whole-document JSON file holding keys, directories and a schema catalog."""

from __future__ import annotations

import os
import warnings
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from ..exceptions import JsonFileIOError, JsonFileLoadError, JsonFileUsageError, JsonFileVersionError
from ..models import (
    CURRENT_IO_VERSION,
    DOCUMENT_TYPE,
    NULL_UUID,
    REPRODUCIBLE_TIMESTAMP,
    DocumentHeader,
    SchemaEntry,
    version_code,
)
from ..storage import DEVNULL, DocumentStorage, LocalFileStorage, NullStorage
from .block_io import BlockIOStubs
from .catalog import collect_schema_entries, read_schema_entries, store_schema_entry
from .directory import Directory
from .file_config import FileConfig
from .key import ExpectedClass, KeyRecord
from .reflection import ClassRegistry, ReflectionBridge, default_registry
from .registry import register_file, unregister_file
from .tree import JsonTree

_PREFIX = "json:"
_SUFFIX = ".json"
_MODES = ("CREATE", "RECREATE", "UPDATE", "READ")
_WRITE_MODES = ("NEW", "CREATE", "RECREATE", "UPDATE")


class JsonFile(BlockIOStubs, Directory):
    """A file whose whole content is one JSON document.

    The document is parsed once when the file is opened and written once
    when it is closed (or reopened read-only). In between, keys and
    subdirectories live in memory; their JSON nodes are shared with the
    in-memory tree so that what is flushed is exactly what was built.

    Options (case-insensitive): ``NEW``/``CREATE`` make a new file,
    ``RECREATE`` replaces an existing one, ``UPDATE`` reads then rewrites
    (creating the file when missing), ``READ`` opens read-only. Anything
    else is treated as ``READ``. A file that cannot be opened becomes a
    zombie: ``is_zombie`` is set and every write is refused.
    """

    def __init__(
        self,
        filename: str,
        option: str = "read",
        title: str = "",
        compression: int | None = None,
        *,
        config: FileConfig | None = None,
        registry: ClassRegistry | None = None,
        storage: DocumentStorage | None = None,
    ) -> None:
        name = filename[len(_PREFIX) :] if filename.startswith(_PREFIX) else filename
        Directory.__init__(self, name, title, file=self)
        self.config = config or FileConfig()
        self.registry = registry if registry is not None else default_registry
        self.bridge = ReflectionBridge(self.registry, on_class_used=self._note_class)
        self.compression = compression
        self.reproducible = self.config.reproducible
        self.store_streamer_infos = self.config.store_streamer_infos
        self.io_version = CURRENT_IO_VERSION
        self.file_version_code = version_code()
        self.option = option.upper()
        self.writable = False
        self.zombie_reason: str | None = None
        self._tree: JsonTree | None = None
        self._class_index: dict[str, None] = {}
        self._streamer_infos: list[SchemaEntry] = []
        self._last_key_id = 0

        if storage is None and not name:
            self._storage: DocumentStorage = NullStorage()
            self.real_name = ""
            self._make_zombie("file name is not specified", stacklevel=3)
            return
        self._storage = storage if storage is not None else _resolve_storage(name, self.option)
        self.real_name = self._storage.location
        self._open(self.option)

    def _open(self, option: str) -> None:
        if option == "NEW":
            option = "CREATE"
        if option not in _MODES:
            option = "READ"
        if isinstance(self._storage, NullStorage):
            option = "CREATE"

        storage = self._storage
        if option == "RECREATE":
            storage.remove()
            option = "CREATE"
        create = option == "CREATE"
        if create and storage.exists():
            self._make_zombie(f"file {self.real_name} already exists")
            return

        update = option == "UPDATE"
        if update:
            if not storage.exists():
                update = False
                create = True
            elif not storage.is_writable():
                self._make_zombie(f"no write permission, could not open file {self.real_name}")
                return

        if option == "READ":
            if not storage.exists():
                self._make_zombie(f"File does not exist. Could not open file {self.real_name}")
                return
            if not storage.is_readable():
                self._make_zombie(f"no read permission, could not open file {self.real_name}")
                return

        self.option = option
        self.writable = create or update
        self._init_json_file(create)

    def _make_zombie(self, reason: str, stacklevel: int = 4) -> None:
        self.zombie_reason = reason
        self.writable = False
        warnings.warn(f"jsonfile: {reason}", stacklevel=stacklevel)

    def _init_json_file(self, create: bool) -> None:
        self._tree = JsonTree.empty() if create else JsonTree.load(self._storage)
        if not create:
            try:
                self._read_document(self._tree.root)
            except Exception:
                self._tree.release()
                self._tree = None
                self.writable = False
                Directory.close(self)
                raise
        register_file(self)

    # -- reading ---------------------------------------------------------

    def _read_document(self, root: dict[str, Any]) -> None:
        if "type" not in root:
            raise JsonFileLoadError("File does not have a type.")
        if root["type"] != DOCUMENT_TYPE:
            raise JsonFileLoadError("Not a ROOT File.")
        io_version = root.get("IOVersion", CURRENT_IO_VERSION)
        if isinstance(io_version, int) and io_version > CURRENT_IO_VERSION:
            raise JsonFileVersionError("File version not compatible.")
        try:
            header = DocumentHeader.model_validate(root)
        except ValidationError as exc:
            raise JsonFileLoadError(f"Malformed document header in {self.real_name}: {exc}") from exc

        self.io_version = header.io_version
        if header.version_code is not None:
            self.file_version_code = header.version_code
        if header.created:
            self.created = header.created
        if header.modified:
            self.modified = header.modified
        if header.uuid:
            self.uuid = header.uuid
        if header.title is not None:
            self.title = header.title

        if "StreamerInfos" in root:
            self._streamer_infos = read_schema_entries(root["StreamerInfos"], self.registry)
            self.registry.merge_schema_entries(self._streamer_infos)
        self._read_keys_list(self, root)

    def _read_keys_list(self, directory: Directory, topnode: dict[str, Any]) -> int:
        nodes = topnode.get("Keys")
        if nodes is None:
            return 0
        if not isinstance(nodes, list):
            raise JsonFileLoadError(f"Keys of {directory.path} is not an array")
        count = 0
        for index, node in enumerate(nodes):
            if not isinstance(node, dict) or "Object" not in node:
                warnings.warn(
                    f"jsonfile: skipping key #{index} in {directory.path}: no Object",
                    stacklevel=2,
                )
                continue
            key = KeyRecord.from_node(directory, self._next_key_id(), node)
            directory.adopt_key(key)
            count += 1
            if key.is_subdir:
                key.read_object()
        return count

    def get_streamer_info_list(self) -> list[SchemaEntry]:
        """Schema entries restored from the document's ``StreamerInfos``."""
        return [entry.model_copy(deep=True) for entry in self._streamer_infos]

    # -- writing ---------------------------------------------------------

    def _save_to_file(self) -> None:
        if self._tree is None or not self._tree.is_loaded:
            return
        self.save()
        root = self._tree.reset()
        header = DocumentHeader(
            doc_type=DOCUMENT_TYPE,
            io_version=self.io_version,
            created=self.stamp(self.created),
            modified=self.stamp(self.modified),
            uuid=NULL_UUID if self.reproducible else self.uuid,
            title=self.title or None,
        )
        root.update(header.to_node())
        root["Keys"] = self._combine_nodes_tree(self)
        self.write_streamer_info()
        try:
            self._storage.save(root, indent=self.config.indent)
        except OSError as exc:
            raise JsonFileIOError(f"cannot write {self.real_name}: {exc}") from exc

    def _combine_nodes_tree(self, directory: Directory) -> list[dict[str, Any]]:
        nodes: list[dict[str, Any]] = []
        for key in directory.keys:
            if key.node is None:
                continue
            key.update_attributes()
            if key.is_subdir:
                child = self.find_key_dir(directory, key.key_id)
                if child is not None:
                    key.node["Keys"] = self._combine_nodes_tree(child)
            nodes.append(key.node)
        return nodes

    def write_streamer_info(self) -> None:
        """Store the layouts of every class this file references."""
        if not self.store_streamer_infos or self._tree is None or not self._tree.is_loaded:
            return
        entries = collect_schema_entries(self.registry, self._class_index)
        if not entries:
            return
        self._tree.root["StreamerInfos"] = [store_schema_entry(entry) for entry in entries]

    def set_store_streamer_infos(self, store: bool) -> None:
        if self.writable and not self._keys:
            self.store_streamer_infos = store

    def create_key(
        self,
        mother: Directory,
        obj: object,
        name: str | None = None,
        *,
        title: str | None = None,
        cls: ExpectedClass | None = None,
    ) -> KeyRecord:
        return KeyRecord.create(mother, self._next_key_id(), obj, obj_class=cls, name=name, title=title)

    # -- directory support -----------------------------------------------

    def dir_create_entry(self, directory: Directory) -> int:
        """Create the key standing for ``directory`` in its mother; returns its ``key_id``."""
        mother = directory.mother if directory.mother is not None else self
        key = KeyRecord.create(
            mother,
            self._next_key_id(),
            directory,
            name=directory.name,
            title=directory.title,
        )
        key.is_subdir = True
        if key.node is not None:
            key.node["Keys"] = []
        return key.key_id

    def dir_read_keys(self, directory: Directory) -> int:
        if directory.keys:
            return len(directory.keys)
        key = self.find_dir_key(directory)
        if key is None or key.node is None:
            return 0
        return self._read_keys_list(directory, key.node)

    def dir_write_keys(self, directory: Directory) -> None:
        key = self.find_dir_key(directory)
        if key is None or key.node is None:
            return
        key.node["Keys"] = [k.node for k in directory.keys if k.node is not None]

    def dir_write_header(self, directory: Directory) -> None:
        key = self.find_dir_key(directory)
        if key is not None:
            key.update_payload(directory)

    def find_dir_key(self, directory: Directory) -> KeyRecord | None:
        """The key that stands for ``directory`` in its mother."""
        if directory.mother is None:
            return None
        for key in directory.mother.keys:
            if key.key_id == directory.seek_dir:
                return key
        return None

    def find_key_dir(self, mother: Directory, key_id: int) -> Directory | None:
        """The in-memory subdirectory of ``mother`` whose key is ``key_id``."""
        for directory in mother.subdirectories:
            if directory.seek_dir == key_id:
                return directory
        return None

    # -- bookkeeping -----------------------------------------------------

    def _next_key_id(self) -> int:
        self._last_key_id += 1
        return self._last_key_id

    def _note_class(self, name: str) -> None:
        self._class_index.setdefault(name, None)

    def note_classes(self, names: Iterable[str]) -> None:
        for name in names:
            self._note_class(name)

    @property
    def class_index(self) -> list[str]:
        return list(self._class_index)

    def stamp(self, value: str) -> str:
        return REPRODUCIBLE_TIMESTAMP if self.reproducible else value

    def ensure_writable(self) -> None:
        if not self.is_open:
            raise JsonFileUsageError(f"file {self.real_name or self.name!r} is not open")
        if not self.writable:
            raise JsonFileUsageError(f"file {self.real_name!r} is not writable")

    @property
    def storage(self) -> DocumentStorage:
        return self._storage

    @property
    def is_open(self) -> bool:
        return self._tree is not None and self._tree.is_loaded

    @property
    def is_zombie(self) -> bool:
        return self.zombie_reason is not None

    # -- lifecycle -------------------------------------------------------

    def reopen(self, mode: str) -> bool:
        """Switch between ``READ`` and ``UPDATE``. Returns ``False`` when nothing changed."""
        mode = mode.upper()
        if mode not in ("READ", "UPDATE"):
            raise ValueError(f"mode must be either READ or UPDATE, not {mode}")
        if mode == self.option or (mode == "UPDATE" and self.option == "CREATE"):
            return False
        if mode == "READ":
            if self.is_open and self.writable:
                self._save_to_file()
            self.writable = False
        else:
            self.writable = True
        self.option = mode
        return True

    def close(self, option: str = "") -> None:
        """Flush when writable, then release everything. Safe to call twice.

        When the flush fails the file stays open and unchanged, so ``close``
        can be retried.
        """
        if not self.is_open:
            return
        if self.writable:
            self._save_to_file()
        self.writable = False
        assert self._tree is not None
        self._tree.release()
        self._tree = None
        self._class_index.clear()
        self._streamer_infos.clear()
        Directory.close(self)
        unregister_file(self)

    def __enter__(self) -> JsonFile:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __del__(self) -> None:
        if getattr(self, "_tree", None) is not None:
            self.close()

    def __repr__(self) -> str:
        state = "zombie" if self.is_zombie else ("open" if self.is_open else "closed")
        return f"JsonFile({self.real_name!r}, option={self.option!r}, {state}, keys={len(self._keys)})"


def _resolve_storage(name: str, option: str) -> DocumentStorage:
    if name == DEVNULL and option.upper() in _WRITE_MODES:
        return NullStorage()
    path = os.path.expandvars(os.path.expanduser(name))
    if not path.lower().endswith(_SUFFIX):
        path += _SUFFIX
    return LocalFileStorage(path)
