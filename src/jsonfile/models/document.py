"""Document and key header models for the on-disk JSON layout."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

DOCUMENT_TYPE = "ROOTfile"
CURRENT_IO_VERSION = 1
FRAMEWORK_VERSION = "0.1.0"

REPRODUCIBLE_TIMESTAMP = "1970-01-01 00:00:01"
NULL_UUID = "00000000-0000-0000-0000-000000000000"

DIRECTORY_TYPENAME = "TDirectory"

_SQL_FORMAT = "%Y-%m-%d %H:%M:%S"


def version_code(version: str = FRAMEWORK_VERSION) -> int:
    """Encode ``major.minor.patch`` the way the header stores runtime versions."""
    parts = [int(part) for part in version.split(".")[:3]]
    parts += [0] * (3 - len(parts))
    major, minor, patch = parts
    return (major << 16) + (minor << 8) + patch


def sql_timestamp(moment: datetime | None = None) -> str:
    return (moment or datetime.now(UTC)).strftime(_SQL_FORMAT)


def new_uuid() -> str:
    return str(uuid4())


class DocumentHeader(BaseModel):
    """Header fields of the root document.

    ``type`` and ``IOVersion`` are checked by the file before this model is
    validated, so every field here is optional on read.
    """

    model_config = ConfigDict(strict=True, extra="ignore", populate_by_name=True)

    doc_type: str = Field(default=DOCUMENT_TYPE, alias="type")
    io_version: int = Field(default=CURRENT_IO_VERSION, alias="IOVersion")
    version_code: int | None = Field(default=None, alias="ROOTVersionCode")
    created: str | None = None
    modified: str | None = None
    uuid: str | None = None
    title: str | None = None

    def to_node(self) -> dict[str, object]:
        node: dict[str, object] = {
            "type": self.doc_type,
            "IOVersion": self.io_version,
            "ROOTVersionCode": self.version_code if self.version_code is not None else version_code(),
            "created": self.created,
            "modified": self.modified,
            "uuid": self.uuid,
        }
        if self.title:
            node["title"] = self.title
        return node


class KeyHeader(BaseModel):
    """Metadata stored next to the payload of every key."""

    model_config = ConfigDict(strict=True, extra="ignore")

    name: str
    cycle: int = Field(default=1, ge=1)
    title: str = ""
    created: str | None = None

    def to_node(self) -> dict[str, object]:
        node: dict[str, object] = {"name": self.name, "cycle": self.cycle}
        if self.title:
            node["title"] = self.title
        if self.created is not None:
            node["created"] = self.created
        return node


class DirectoryRecord(BaseModel):
    """Payload stored in the key that represents a subdirectory."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    title: str = ""
    created: str = ""
    modified: str = ""
    uuid: str = ""
