"""Class registry and object <-> JSON conversion for stored payloads."""

from __future__ import annotations

import math
import types
import zlib
from collections.abc import Callable, Iterator
from typing import Any, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, PrivateAttr
from pydantic.fields import FieldInfo
from pydantic_core import to_jsonable_python

from ..models import (
    DIRECTORY_TYPENAME,
    Counted,
    DirectoryRecord,
    ElementKind,
    FixedArray,
    SchemaElement,
    SchemaEntry,
    STLType,
    TypeCode,
)
from ..serializers import value_from_json

TYPENAME = "_typename"

# annotation -> (type code, typename, size, name inside STL typenames)
_BASIC_TYPES: dict[type, tuple[TypeCode, str, int, str]] = {
    bool: (TypeCode.BOOL, "Bool_t", 1, "bool"),
    int: (TypeCode.LONG64, "Long64_t", 8, "Long64_t"),
    float: (TypeCode.DOUBLE, "Double_t", 8, "double"),
}
_SEQUENCE_ORIGINS = (list, tuple, set, frozenset)
_POINTER_SIZE = 8


class EmulatedObject(BaseModel):
    """Instance of a class known only from a file's schema catalog."""

    model_config = ConfigDict(extra="allow")

    _class_name: str = PrivateAttr(default="")

    @property
    def class_name(self) -> str:
        return self._class_name

    def fields(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class ClassHandle:
    """Registry view of one class: a compiled pydantic model or an emulated layout."""

    def __init__(
        self,
        name: str,
        registry: ClassRegistry,
        *,
        model: type[BaseModel] | None = None,
        version: int = 1,
        title: str = "",
        schema: SchemaEntry | None = None,
    ) -> None:
        self.name = name
        self.model = model
        self.version = version
        self.title = title
        self.on_file_version: int | None = None
        self._registry = registry
        self._schema = schema

    @property
    def emulated(self) -> bool:
        return self.model is None

    @property
    def base_names(self) -> list[str]:
        if self.model is None:
            return self._schema.base_names if self._schema is not None else []
        return [handle.name for handle in self._registered_bases(self.model)]

    def _registered_bases(self, model: type[BaseModel]) -> list[ClassHandle]:
        found: list[ClassHandle] = []
        for base in model.__bases__:
            if not (isinstance(base, type) and issubclass(base, BaseModel)) or base is BaseModel:
                continue
            handle = self._registry.handle_for(base) or self._registry.get_class(base.__name__)
            if handle is not None:
                found.append(handle)
            else:
                found.extend(self._registered_bases(base))
        return found

    def ancestors(self) -> list[str]:
        """This class followed by every registered base, nearest first."""
        order: list[str] = []
        pending = [self.name]
        while pending:
            name = pending.pop(0)
            if name in order:
                continue
            order.append(name)
            handle = self._registry.get_class(name)
            if handle is not None:
                pending.extend(handle.base_names)
        return order

    def base_offset(self, base: ClassHandle | type | str) -> int:
        """Distance from this class to ``base`` in its ancestry; -1 when unrelated."""
        base_name = self._registry.resolve_name(base)
        if base_name is None:
            return -1
        ancestors = self.ancestors()
        return ancestors.index(base_name) if base_name in ancestors else -1

    def inherits_from(self, base: ClassHandle | type | str) -> bool:
        return self.base_offset(base) >= 0

    def instantiate(self, **fields: Any) -> BaseModel:
        if self.model is None:
            obj = EmulatedObject(**fields)
            obj._class_name = self.name
            return obj
        return self.model.model_validate(fields, strict=False)

    def _own_fields(self) -> dict[str, FieldInfo]:
        assert self.model is not None
        inherited: set[str] = set()
        for handle in self._registered_bases(self.model):
            if handle.model is not None:
                inherited.update(handle.model.model_fields)
            elif handle._schema is not None:
                inherited.update(element.name for element in handle._schema.elements)
        return {
            name: info for name, info in self.model.model_fields.items() if name not in inherited
        }

    def member_class_names(self) -> list[str]:
        """Registered classes used by members of this class."""
        if self.model is None:
            if self._schema is None:
                return []
            names = []
            for element in self._schema.elements:
                candidate = element.type_name.rstrip("*")
                if element.kind != ElementKind.BASE and self._registry.get_class(candidate):
                    names.append(candidate)
            return names
        names = []
        for info in self._own_fields().values():
            for model in _iter_models(info.annotation):
                handle = self._registry.handle_for(model)
                if handle is not None and handle.name not in names:
                    names.append(handle.name)
        return names

    def _elements(self) -> list[SchemaElement]:
        elements: list[SchemaElement] = []
        assert self.model is not None
        for base in self._registered_bases(self.model):
            elements.append(
                SchemaElement(
                    kind=ElementKind.BASE,
                    name=base.name,
                    title=base.title,
                    type_code=TypeCode.BASE,
                    type_name="BASE",
                    base_version=base.version,
                    base_checksum=base.checksum,
                )
            )
        for name, info in self._own_fields().items():
            elements.append(self._describe_member(name, info))
        return elements

    def _describe_member(self, name: str, info: FieldInfo) -> SchemaElement:
        annotation = _strip_optional(info.annotation)
        optional = annotation is not info.annotation
        fixed = next((m for m in info.metadata if isinstance(m, FixedArray)), None)
        counted = next((m for m in info.metadata if isinstance(m, Counted)), None)
        common: dict[str, Any] = {"name": name, "title": info.description or ""}

        if annotation in _BASIC_TYPES:
            code, type_name, size, _ = _BASIC_TYPES[annotation]
            return SchemaElement(kind=ElementKind.PLAIN, type_code=code, type_name=type_name, size=size, **common)
        if annotation is str:
            return SchemaElement(
                kind=ElementKind.STL_STRING,
                type_code=TypeCode.STL_STRING,
                type_name="string",
                size=32,
                stl_type=STLType.STRING,
                ctype=TypeCode.OBJECT,
                **common,
            )
        model_handle = self._registry.handle_for(annotation) if isinstance(annotation, type) else None
        if model_handle is not None:
            if optional:
                return SchemaElement(
                    kind=ElementKind.PLAIN,
                    type_code=TypeCode.OBJECT_P,
                    type_name=f"{model_handle.name}*",
                    size=_POINTER_SIZE,
                    **common,
                )
            return SchemaElement(kind=ElementKind.PLAIN, type_code=TypeCode.OBJECT, type_name=model_handle.name, **common)

        origin = get_origin(annotation)
        args = get_args(annotation)
        if origin in _SEQUENCE_ORIGINS:
            item = args[0] if args else Any
            if fixed is not None and item in _BASIC_TYPES:
                code, type_name, size, _ = _BASIC_TYPES[item]
                return SchemaElement(
                    kind=ElementKind.PLAIN,
                    type_code=code + TypeCode.OFFSET_L,
                    type_name=type_name,
                    size=size * fixed.length,
                    array_dim=[fixed.length],
                    **common,
                )
            if counted is not None:
                count = {
                    "count_name": counted.count_name,
                    "count_class": self.name,
                    "count_version": self.version,
                }
                if item in _BASIC_TYPES:
                    code, type_name, _, _ = _BASIC_TYPES[item]
                    return SchemaElement(
                        kind=ElementKind.BASIC_POINTER,
                        type_code=code + TypeCode.OFFSET_P,
                        type_name=f"{type_name}*",
                        size=_POINTER_SIZE,
                        **count,
                        **common,
                    )
                item_handle = self._registry.handle_for(item) if isinstance(item, type) else None
                if item_handle is not None:
                    return SchemaElement(
                        kind=ElementKind.LOOP,
                        type_code=TypeCode.STREAM_LOOP,
                        type_name=f"{item_handle.name}*",
                        size=_POINTER_SIZE,
                        **count,
                        **common,
                    )
            is_set = origin in (set, frozenset)
            container = "set" if is_set else "vector"
            return SchemaElement(
                kind=ElementKind.STL,
                type_code=TypeCode.STL,
                type_name=f"{container}<{self._stl_item_name(item)}>",
                size=24,
                stl_type=STLType.SET if is_set else STLType.VECTOR,
                ctype=self._stl_item_code(item),
                **common,
            )
        if origin is dict:
            key_type, value_type = args if len(args) == 2 else (Any, Any)
            return SchemaElement(
                kind=ElementKind.STL,
                type_code=TypeCode.STL,
                type_name=f"map<{self._stl_item_name(key_type)},{self._stl_item_name(value_type)}>",
                size=48,
                stl_type=STLType.MAP,
                ctype=TypeCode.OBJECT,
                **common,
            )
        return SchemaElement(
            kind=ElementKind.PLAIN,
            type_code=TypeCode.ANY,
            type_name=_annotation_name(info.annotation),
            **common,
        )

    def _stl_item_name(self, item: Any) -> str:
        if item in _BASIC_TYPES:
            return _BASIC_TYPES[item][3]
        if item is str:
            return "string"
        handle = self._registry.handle_for(item) if isinstance(item, type) else None
        return handle.name if handle is not None else _annotation_name(item)

    def _stl_item_code(self, item: Any) -> int:
        if item in _BASIC_TYPES:
            return int(_BASIC_TYPES[item][0])
        if item is str:
            return int(TypeCode.STL_STRING)
        return int(TypeCode.OBJECT)

    @property
    def checksum(self) -> int:
        if self.model is None:
            return self._schema.checksum if self._schema is not None else 0
        parts = [self.name, *self.base_names]
        parts += [
            f"{name}:{self._describe_member(name, info).type_name}"
            for name, info in self._own_fields().items()
        ]
        return zlib.crc32(";".join(parts).encode("utf-8"))

    def schema_entry(self) -> SchemaEntry:
        if self.model is None:
            if self._schema is None:
                raise ValueError(f"no layout known for emulated class {self.name!r}")
            return self._schema.model_copy(deep=True)
        return SchemaEntry(
            name=self.name,
            title=self.title,
            class_version=self.version,
            checksum=self.checksum,
            can_optimize=True,
            elements=self._elements(),
        )

    def __repr__(self) -> str:
        kind = "emulated" if self.emulated else self.model.__qualname__  # type: ignore[union-attr]
        return f"ClassHandle({self.name!r}, version={self.version}, {kind})"


class ClassRegistry:
    """Maps class names to handles; the reflection layer for stored payloads."""

    def __init__(self) -> None:
        self._by_name: dict[str, ClassHandle] = {}
        self._by_model: dict[type[BaseModel], ClassHandle] = {}
        self._register_builtins()

    def _register_builtins(self) -> None:
        self.register(DirectoryRecord, name=DIRECTORY_TYPENAME, version=5, title="Describe directory structure in memory")

    def register(
        self,
        model: type[BaseModel] | None = None,
        *,
        name: str | None = None,
        version: int = 1,
        title: str | None = None,
    ) -> Any:
        """Register a pydantic model class. Usable as ``@registry.register(version=2)``."""
        if model is None:
            return lambda cls: self.register(cls, name=name, version=version, title=title)
        if not (isinstance(model, type) and issubclass(model, BaseModel)):
            raise TypeError(f"only pydantic models can be registered, got {model!r}")
        class_name = name or model.__name__
        existing = self._by_name.get(class_name)
        if existing is not None and existing.model is not None and existing.model is not model:
            raise ValueError(f"class name {class_name!r} is already registered")
        handle = ClassHandle(
            class_name,
            self,
            model=model,
            version=version,
            title=title if title is not None else _first_doc_line(model),
        )
        if existing is not None:
            handle.on_file_version = existing.on_file_version
        self._by_name[class_name] = handle
        self._by_model[model] = handle
        return model

    def unregister(self, name: str) -> None:
        handle = self._by_name.pop(name, None)
        if handle is not None and handle.model is not None:
            self._by_model.pop(handle.model, None)

    def reset(self) -> None:
        self._by_name.clear()
        self._by_model.clear()
        self._register_builtins()

    def get_class(self, name: str) -> ClassHandle | None:
        return self._by_name.get(name)

    def handle_for(self, obj: object) -> ClassHandle | None:
        if isinstance(obj, ClassHandle):
            return obj
        if isinstance(obj, str):
            return self.get_class(obj)
        if isinstance(obj, EmulatedObject):
            return self.get_class(obj.class_name)
        cls = obj if isinstance(obj, type) else type(obj)
        return self._by_model.get(cls)  # type: ignore[arg-type]

    def resolve_name(self, obj: ClassHandle | type | str) -> str | None:
        if isinstance(obj, str):
            return obj
        handle = self.handle_for(obj)
        return handle.name if handle is not None else None

    def names(self) -> list[str]:
        return list(self._by_name)

    def schema_entry(self, name: str) -> SchemaEntry | None:
        handle = self.get_class(name)
        if handle is None:
            return None
        return handle.schema_entry()

    def merge_schema_entries(self, entries: list[SchemaEntry]) -> None:
        """Take in a file's catalog: unknown classes become emulated classes."""
        for entry in entries:
            handle = self._by_name.get(entry.name)
            if handle is None:
                handle = ClassHandle(
                    entry.name,
                    self,
                    version=entry.class_version,
                    title=entry.title,
                    schema=entry,
                )
                self._by_name[entry.name] = handle
            handle.on_file_version = entry.class_version


class ReflectionBridge:
    """Converts registered instances to JSON values tagged with ``_typename`` and back."""

    def __init__(
        self,
        registry: ClassRegistry | None = None,
        *,
        on_class_used: Callable[[str], None] | None = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry
        self._on_class_used = on_class_used

    def encode(self, obj: object, handle: ClassHandle | None = None) -> dict[str, Any]:
        handle = handle or self.registry.handle_for(obj)
        if handle is None:
            raise TypeError(f"class {type(obj).__name__!r} is not registered")
        node = self._encode_instance(obj, handle)
        # classes are reported only once the whole payload has encoded
        if self._on_class_used is not None:
            for name in iter_typenames(node):
                self._on_class_used(name)
        return node

    def _encode_instance(self, obj: object, handle: ClassHandle) -> dict[str, Any]:
        node: dict[str, Any] = {TYPENAME: handle.name}
        if isinstance(obj, EmulatedObject):
            items = obj.fields().items()
        else:
            model = handle.model if handle.model is not None else type(obj)
            items = ((name, getattr(obj, name)) for name in model.model_fields)  # type: ignore[union-attr]
        for name, value in items:
            node[name] = self._encode_value(value)
        return node

    def _encode_value(self, value: Any) -> Any:
        if isinstance(value, BaseModel):
            handle = self.registry.handle_for(value)
            if handle is not None:
                return self._encode_instance(value, handle)
            return _finite(to_jsonable_python(value))
        if isinstance(value, dict):
            return {str(key): self._encode_value(item) for key, item in value.items()}
        if isinstance(value, (set, frozenset)):
            try:
                value = sorted(value)
            except TypeError:
                value = list(value)
        if isinstance(value, (list, tuple)):
            return [self._encode_value(item) for item in value]
        return _finite(to_jsonable_python(value))

    def decode(self, payload: str) -> tuple[Any, ClassHandle | None]:
        """Decode JSON text into ``(instance, handle)``; ``(None, None)`` if the class is unknown.

        Raises ``pydantic.ValidationError`` when the stored members do not fit
        the registered class.
        """
        return self.decode_value(value_from_json(payload))

    def decode_value(self, value: Any) -> tuple[Any, ClassHandle | None]:
        if not isinstance(value, dict) or not isinstance(value.get(TYPENAME), str):
            return None, None
        handle = self.registry.get_class(value[TYPENAME])
        if handle is None:
            return None, None
        return self._decode_instance(value, handle), handle

    def _decode_instance(self, node: dict[str, Any], handle: ClassHandle) -> Any:
        fields = {key: self._decode_member(item) for key, item in node.items() if key != TYPENAME}
        return handle.instantiate(**fields)

    def _decode_member(self, value: Any) -> Any:
        if isinstance(value, dict):
            typename = value.get(TYPENAME)
            handle = self.registry.get_class(typename) if isinstance(typename, str) else None
            if handle is not None:
                return self._decode_instance(value, handle)
            return {key: self._decode_member(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self._decode_member(item) for item in value]
        return value


def iter_typenames(value: Any) -> Iterator[str]:
    """Every ``_typename`` found anywhere inside a JSON value."""
    if isinstance(value, dict):
        typename = value.get(TYPENAME)
        if isinstance(typename, str):
            yield typename
        for item in value.values():
            yield from iter_typenames(item)
    elif isinstance(value, list):
        for item in value:
            yield from iter_typenames(item)


def _finite(value: Any) -> Any:
    """Replace non-finite floats with the strings pydantic reads back as floats."""
    if isinstance(value, float):
        if math.isnan(value):
            return "nan"
        if math.isinf(value):
            return "inf" if value > 0 else "-inf"
        return value
    if isinstance(value, dict):
        return {key: _finite(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_finite(item) for item in value]
    return value


def _strip_optional(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _iter_models(annotation: Any) -> Iterator[type[BaseModel]]:
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        yield annotation
        return
    for arg in get_args(annotation):
        yield from _iter_models(arg)


def _annotation_name(annotation: Any) -> str:
    if isinstance(annotation, type):
        return annotation.__name__
    return str(annotation).replace("typing.", "")


def _first_doc_line(model: type[BaseModel]) -> str:
    doc = model.__doc__ or ""
    if doc == BaseModel.__doc__:
        return ""
    return doc.strip().splitlines()[0] if doc.strip() else ""


default_registry = ClassRegistry()
