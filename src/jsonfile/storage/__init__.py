"""Storage backends."""

from .base import DocumentStorage
from .file import LocalFileStorage
from .memory import MemoryStorage
from .null import DEVNULL, NullStorage

__all__ = ["DEVNULL", "DocumentStorage", "LocalFileStorage", "MemoryStorage", "NullStorage"]
