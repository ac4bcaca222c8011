"""Schema catalog models: class layouts stored under ``StreamerInfos``."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ElementKind(StrEnum):
    BASE = "TStreamerBase"
    BASIC_POINTER = "TStreamerBasicPointer"
    LOOP = "TStreamerLoop"
    STL = "TStreamerSTL"
    STL_STRING = "TStreamerSTLstring"
    PLAIN = "TStreamerElement"


class TypeCode(IntEnum):
    BASE = 0
    CHAR = 1
    SHORT = 2
    INT = 3
    LONG = 4
    FLOAT = 5
    COUNTER = 6
    CHAR_STAR = 7
    DOUBLE = 8
    LONG64 = 16
    BOOL = 18
    OFFSET_L = 20
    OFFSET_P = 40
    OBJECT = 61
    ANY = 62
    OBJECT_P = 64
    STL = 300
    STL_STRING = 365
    STREAM_LOOP = 501


class STLType(IntEnum):
    VECTOR = 1
    LIST = 2
    DEQUE = 3
    MAP = 4
    MULTIMAP = 5
    SET = 6
    STRING = 365


@dataclass(frozen=True)
class FixedArray:
    """Marks a ``list`` field as a fixed-size array: ``Annotated[list[float], FixedArray(3)]``."""

    length: int


@dataclass(frozen=True)
class Counted:
    """Marks a ``list`` field whose length is held by another member."""

    count_name: str


_COUNT_KINDS = (ElementKind.BASIC_POINTER, ElementKind.LOOP)
_STL_KINDS = (ElementKind.STL, ElementKind.STL_STRING)


class SchemaElement(BaseModel):
    """One member of a class layout.

    The kind tag selects which of the optional extras must be present:
    Base needs the base version and checksum, BasicPointer and Loop need the
    counter description, STL and STLstring need the container and content
    types.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    kind: ElementKind = Field(alias="streamerelement")
    name: str
    title: str = ""
    version: int = Field(default=1, alias="v")
    type_code: int = Field(alias="type")
    type_name: str = Field(default="", alias="typename")
    size: int = 0
    array_dim: list[int] = Field(default_factory=list, alias="arraydim")

    base_version: int | None = Field(default=None, alias="baseversion")
    base_checksum: int | None = Field(default=None, alias="basechecksum")
    count_version: int | None = Field(default=None, alias="countversion")
    count_name: str | None = Field(default=None, alias="countname")
    count_class: str | None = Field(default=None, alias="countclass")
    stl_type: int | None = Field(default=None, alias="STLtype")
    ctype: int | None = Field(default=None, alias="Ctype")

    @model_validator(mode="before")
    @classmethod
    def _accept_numdim_layout(cls, data: object) -> object:
        if not isinstance(data, dict) or "arraydim" in data or "numdim" not in data:
            return data
        numdim = data["numdim"]
        if not isinstance(numdim, int) or numdim < 0:
            raise ValueError(f"invalid numdim: {numdim!r}")
        dims = [data.get(f"dim{index}") for index in range(numdim)]
        if any(not isinstance(dim, int) for dim in dims):
            raise ValueError(f"incomplete dimensions for numdim={numdim}")
        result = dict(data)
        result["arraydim"] = dims
        return result

    @model_validator(mode="after")
    def _check_kind_extras(self) -> SchemaElement:
        if self.kind == ElementKind.BASE:
            missing = [f for f in ("base_version", "base_checksum") if getattr(self, f) is None]
        elif self.kind in _COUNT_KINDS:
            missing = [
                f for f in ("count_version", "count_name", "count_class") if getattr(self, f) is None
            ]
        elif self.kind in _STL_KINDS:
            missing = [f for f in ("stl_type", "ctype") if getattr(self, f) is None]
        else:
            missing = []
        if missing:
            raise ValueError(f"{self.kind.value} element {self.name!r} lacks {', '.join(missing)}")
        return self

    def to_node(self) -> dict[str, object]:
        node: dict[str, object] = {"streamerelement": self.kind.value, "name": self.name}
        if self.title:
            node["title"] = self.title
        node["v"] = self.version
        node["type"] = self.type_code
        if self.type_name:
            node["typename"] = self.type_name
        node["size"] = self.size
        if self.array_dim:
            node["arraydim"] = list(self.array_dim)
        if self.kind == ElementKind.BASE:
            node["baseversion"] = self.base_version
            node["basechecksum"] = self.base_checksum
        elif self.kind in _COUNT_KINDS:
            node["countversion"] = self.count_version
            node["countname"] = self.count_name
            node["countclass"] = self.count_class
        elif self.kind in _STL_KINDS:
            node["STLtype"] = self.stl_type
            node["Ctype"] = self.ctype
        return node


class SchemaEntry(BaseModel):
    """Layout of one class as stored in the catalog."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str
    title: str = ""
    class_version: int = Field(alias="classversion")
    checksum: int
    can_optimize: bool = Field(default=False, alias="canoptimize")
    elements: list[SchemaElement] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _parse_canoptimize(cls, data: object) -> object:
        if not isinstance(data, dict):
            return data
        result = dict(data)
        flag = result.get("canoptimize", result.get("can_optimize"))
        result.pop("can_optimize", None)
        if isinstance(flag, bool):
            result["canoptimize"] = flag
        else:
            result["canoptimize"] = flag == "true"
        return result

    @property
    def cannot_optimize(self) -> bool:
        return not self.can_optimize

    @property
    def base_names(self) -> list[str]:
        return [element.name for element in self.elements if element.kind == ElementKind.BASE]

    def to_node(self) -> dict[str, object]:
        return {
            "name": self.name,
            "title": self.title,
            "classversion": self.class_version,
            "checksum": self.checksum,
            "canoptimize": "true" if self.can_optimize else "false",
            "elements": [element.to_node() for element in self.elements],
        }
