"""In-memory storage backend."""

from __future__ import annotations

from ..exceptions import JsonFileLoadError
from ..serializers import DEFAULT_INDENT, document_from_json, document_to_json


class MemoryStorage:
    """Keeps document text in a dict. Good for tests and short-lived scripts.

    Several instances may share one ``documents`` mapping to emulate files
    that outlive the object that wrote them.
    """

    def __init__(self, location: str, documents: dict[str, str] | None = None) -> None:
        self.location = location
        self.documents: dict[str, str] = documents if documents is not None else {}

    def exists(self) -> bool:
        return self.location in self.documents

    def is_readable(self) -> bool:
        return self.exists()

    def is_writable(self) -> bool:
        return True

    def remove(self) -> None:
        self.documents.pop(self.location, None)

    def load(self) -> dict[str, object]:
        if self.location not in self.documents:
            raise JsonFileLoadError("File does not exist.")
        return document_from_json(self.documents[self.location])

    def save(self, root: dict[str, object], *, indent: int | None = DEFAULT_INDENT) -> None:
        self.documents[self.location] = document_to_json(root, indent=indent)
