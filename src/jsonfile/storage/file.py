"""Local file storage backend."""

from __future__ import annotations

import os
from pathlib import Path

from ..exceptions import JsonFileLoadError
from ..serializers import DEFAULT_INDENT, document_from_json, document_to_json


class LocalFileStorage:
    """Reads and writes the document as a UTF-8 text file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.location = str(self.path)

    def exists(self) -> bool:
        return self.path.exists()

    def is_readable(self) -> bool:
        return os.access(self.path, os.R_OK)

    def is_writable(self) -> bool:
        return os.access(self.path, os.W_OK)

    def remove(self) -> None:
        self.path.unlink(missing_ok=True)

    def load(self) -> dict[str, object]:
        try:
            payload = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise JsonFileLoadError("File does not exist.") from exc
        return document_from_json(payload)

    def save(self, root: dict[str, object], *, indent: int | None = DEFAULT_INDENT) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(document_to_json(root, indent=indent), encoding="utf-8")
