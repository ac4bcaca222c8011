"""Storage backend for ``/dev/null``: accepts every write, keeps nothing."""

from __future__ import annotations

from ..exceptions import JsonFileLoadError
from ..serializers import DEFAULT_INDENT, document_to_json

DEVNULL = "/dev/null"


class NullStorage:
    def __init__(self) -> None:
        self.location = DEVNULL
        self.bytes_discarded = 0

    def exists(self) -> bool:
        return False

    def is_readable(self) -> bool:
        return False

    def is_writable(self) -> bool:
        return True

    def remove(self) -> None:
        pass

    def load(self) -> dict[str, object]:
        raise JsonFileLoadError("File does not exist.")

    def save(self, root: dict[str, object], *, indent: int | None = DEFAULT_INDENT) -> None:
        self.bytes_discarded += len(document_to_json(root, indent=indent).encode("utf-8"))
