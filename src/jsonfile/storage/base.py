"""Storage backend abstractions."""

from __future__ import annotations

from typing import Protocol


class DocumentStorage(Protocol):
    """Protocol for persisting one whole document."""

    location: str

    def exists(self) -> bool: ...
    def is_readable(self) -> bool: ...
    def is_writable(self) -> bool: ...
    def remove(self) -> None: ...
    def load(self) -> dict[str, object]: ...
    def save(self, root: dict[str, object], *, indent: int | None = 3) -> None: ...
