"""Key records: one named, versioned entry of a directory."""

from __future__ import annotations

import warnings
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from ..exceptions import JsonFileLoadError
from ..models import DIRECTORY_TYPENAME, KeyHeader, sql_timestamp
from ..serializers import value_to_json
from .directory import Directory
from .reflection import TYPENAME, ClassHandle, iter_typenames

if TYPE_CHECKING:
    from .file import JsonFile

ExpectedClass = ClassHandle | type | str


class KeyRecord:
    """Metadata plus one embedded object payload.

    ``node`` is the JSON object of this key as it appears in the document:
    ``name``, ``cycle``, ``title``, ``created`` and ``Object``. A key that
    stands for a subdirectory also holds that directory's ``Keys`` array.
    The mother directory is referenced, never owned.
    """

    def __init__(self, mother: Directory, key_id: int) -> None:
        self.mother: Directory | None = mother
        self.key_id = key_id
        self.name = ""
        self.title = ""
        self.cycle = 1
        self.created = ""
        self.class_name = ""
        self.is_subdir = False
        self.node: dict[str, Any] | None = {}
        self._file: JsonFile = mother.file

    @classmethod
    def create(
        cls,
        mother: Directory,
        key_id: int,
        obj: object,
        *,
        obj_class: ExpectedClass | None = None,
        name: str | None = None,
        title: str | None = None,
    ) -> KeyRecord:
        """Encode ``obj`` and build a key for it, appended to ``mother``.

        The payload is encoded first; when encoding fails nothing is added to
        ``mother``.
        """
        key = cls(mother, key_id)
        payload, handle = key._resolve(obj, obj_class)
        encoded = key._file.bridge.encode(payload, handle)
        key.name = name or _object_name(obj) or handle.name or "Noname"
        key.title = title or ""
        key.cycle = mother.append_key(key)
        key.created = sql_timestamp()
        key._attach(encoded, handle)
        return key

    @classmethod
    def from_node(cls, mother: Directory, key_id: int, node: dict[str, Any]) -> KeyRecord:
        """Adopt a key node read from a document."""
        try:
            header = KeyHeader.model_validate(node)
        except ValidationError as exc:
            raise JsonFileLoadError(f"Malformed key #{key_id} in {mother.path}: {exc}") from exc
        key = cls(mother, key_id)
        key.name = header.name
        key.title = header.title
        key.cycle = header.cycle
        key.created = header.created or ""
        payload = node.get("Object")
        if isinstance(payload, dict) and isinstance(payload.get(TYPENAME), str):
            key.class_name = payload[TYPENAME]
        key.is_subdir = key.class_name == DIRECTORY_TYPENAME
        key._file.note_classes(iter_typenames(payload))
        key.node = node
        return key

    @property
    def payload(self) -> Any:
        return self.node.get("Object") if self.node is not None else None

    def _resolve(self, obj: object, cls: ExpectedClass | None) -> tuple[object, ClassHandle]:
        registry = self._file.registry
        if isinstance(obj, Directory):
            handle = registry.get_class(DIRECTORY_TYPENAME)
            assert handle is not None
            return obj.to_record(), handle
        handle = registry.handle_for(cls) if cls is not None else registry.handle_for(obj)
        if handle is None:
            shown = cls if cls is not None else type(obj).__name__
            raise TypeError(f"jsonfile: class {shown!r} is not registered")
        return obj, handle

    def _store_attributes(self) -> None:
        if self.node is None:
            return
        attributes = KeyHeader(
            name=self.name,
            cycle=self.cycle,
            title=self.title,
            created=self._file.stamp(self.created),
        ).to_node()
        kept = {field: self.node[field] for field in ("Object", "Keys") if field in self.node}
        self.node.clear()
        self.node.update(attributes)
        self.node.update(kept)

    def _attach(self, encoded: dict[str, Any], handle: ClassHandle) -> None:
        if self.node is None:
            return
        self._store_attributes()
        self.node["Object"] = encoded
        self.class_name = handle.name

    def update_attributes(self) -> None:
        """Rewrite the metadata fields, keeping the payload."""
        self._store_attributes()

    def update_payload(self, obj: object) -> None:
        """Re-encode the payload from ``obj``, keeping the metadata."""
        if obj is None or self.node is None:
            return
        payload, handle = self._resolve(obj, None)
        self._attach(self._file.bridge.encode(payload, handle), handle)

    def read_object(self, expected: ExpectedClass | None = None) -> Any:
        """Decode the payload into a live instance.

        Returns ``None`` when there is no payload, when the class cannot be
        resolved, or when the stored class does not derive from ``expected``.
        A subdirectory key returns its ``Directory``.
        """
        if self.payload is None:
            return None
        if self.is_subdir:
            if expected is not None and expected not in (Directory, DIRECTORY_TYPENAME):
                return None
            return self._read_directory()

        registry = self._file.registry
        expected_handle = None
        if expected is not None:
            expected_handle = registry.handle_for(expected)
            if expected_handle is None:
                warnings.warn(f"jsonfile: expected class {expected!r} is not registered", stacklevel=2)
                return None
        obj, handle = self._decode()
        if obj is None or handle is None:
            return None
        if expected_handle is not None:
            if handle.base_offset(expected_handle) < 0:
                return None
            if not handle.emulated and expected_handle.emulated:
                warnings.warn(
                    f"jsonfile: reading compiled class {handle.name!r} "
                    f"into emulated class {expected_handle.name!r}",
                    stacklevel=2,
                )
        return obj

    def read_into(self, target: BaseModel) -> BaseModel | None:
        """Decode the payload and copy every member ``target`` declares onto it."""
        obj = self.read_object(expected=type(target))
        if obj is None:
            return None
        for name in type(target).model_fields:
            if hasattr(obj, name):
                setattr(target, name, getattr(obj, name))
        return target

    def _decode(self) -> tuple[Any, ClassHandle | None]:
        try:
            obj, handle = self._file.bridge.decode(value_to_json(self.payload))
        except ValidationError as exc:
            warnings.warn(
                f"jsonfile: cannot decode {self.class_name!r} from key {self.name};{self.cycle}: "
                f"{exc.error_count()} invalid member(s)",
                stacklevel=3,
            )
            return None, None
        if handle is None:
            warnings.warn(
                f"jsonfile: unknown class {self.class_name!r} in key {self.name};{self.cycle}",
                stacklevel=3,
            )
        return obj, handle

    def _read_directory(self) -> Directory | None:
        assert self.mother is not None
        existing = self._file.find_key_dir(self.mother, self.key_id)
        if existing is not None:
            return existing
        record, _ = self._decode()
        directory = Directory(
            self.name,
            self.title,
            mother=self.mother,
            file=self._file,
            seek_dir=self.key_id,
        )
        if record is not None:
            directory.created = record.created or directory.created
            directory.modified = record.modified or directory.modified
            directory.uuid = record.uuid or directory.uuid
        # mother first: reading keys looks this key up through the mother
        self.mother.append_directory(directory)
        directory.read_keys()
        self.is_subdir = True
        return directory

    def delete(self) -> None:
        """Detach from the mother directory and drop the node."""
        if self.mother is not None:
            self.mother.remove_key(self)
        self.release()

    def release(self) -> None:
        self.node = None
        self.mother = None

    def __repr__(self) -> str:
        return f"KeyRecord({self.name!r}, cycle={self.cycle}, class={self.class_name!r}, id={self.key_id})"


def _object_name(obj: object) -> str | None:
    name = getattr(obj, "name", None)
    return name if isinstance(name, str) and name else None
