"""Data models for the JSON document layout."""

from .document import (
    CURRENT_IO_VERSION,
    DIRECTORY_TYPENAME,
    DOCUMENT_TYPE,
    FRAMEWORK_VERSION,
    NULL_UUID,
    REPRODUCIBLE_TIMESTAMP,
    DirectoryRecord,
    DocumentHeader,
    KeyHeader,
    new_uuid,
    sql_timestamp,
    version_code,
)
from .streamer import (
    Counted,
    ElementKind,
    FixedArray,
    SchemaElement,
    SchemaEntry,
    STLType,
    TypeCode,
)

__all__ = [
    "CURRENT_IO_VERSION",
    "DIRECTORY_TYPENAME",
    "DOCUMENT_TYPE",
    "FRAMEWORK_VERSION",
    "NULL_UUID",
    "REPRODUCIBLE_TIMESTAMP",
    "Counted",
    "DirectoryRecord",
    "DocumentHeader",
    "ElementKind",
    "FixedArray",
    "KeyHeader",
    "STLType",
    "SchemaElement",
    "SchemaEntry",
    "TypeCode",
    "new_uuid",
    "sql_timestamp",
    "version_code",
]
