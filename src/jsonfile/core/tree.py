"""In-memory JSON tree mirroring the on-disk document."""

from __future__ import annotations

from ..storage import DocumentStorage


class JsonTree:
    """Owns the root JSON object of one open file.

    The tree is only ever persisted whole; nothing here touches the disk
    except ``load``.
    """

    def __init__(self, root: dict[str, object] | None = None) -> None:
        self._root: dict[str, object] | None = root if root is not None else {}

    @classmethod
    def empty(cls) -> JsonTree:
        return cls({})

    @classmethod
    def load(cls, storage: DocumentStorage) -> JsonTree:
        return cls(storage.load())

    @property
    def is_loaded(self) -> bool:
        return self._root is not None

    @property
    def root(self) -> dict[str, object]:
        if self._root is None:
            raise RuntimeError("JSON tree has been released")
        return self._root

    def reset(self) -> dict[str, object]:
        self._root = {}
        return self._root

    def release(self) -> None:
        if self._root is not None:
            self._root.clear()
        self._root = None
