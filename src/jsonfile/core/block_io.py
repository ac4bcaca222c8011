"""Block-level I/O hooks, inert for whole-document files."""

from __future__ import annotations


class BlockIOStubs:
    """Low-level hooks that block-structured file formats implement.

    A JSON document is parsed once on open and written once on close, so
    every hook here does nothing and reports zero.
    """

    def sys_open(self, pathname: str, flags: int = 0, mode: int = 0) -> int:
        return 0

    def sys_close(self, fd: int) -> int:
        return 0

    def sys_read(self, fd: int, size: int) -> int:
        return 0

    def sys_write(self, fd: int, buffer: bytes) -> int:
        return 0

    def sys_seek(self, fd: int, offset: int, whence: int = 0) -> int:
        return 0

    def sys_stat(self, fd: int) -> int:
        return 0

    def sys_sync(self, fd: int) -> int:
        return 0

    def read_buffer(self, size: int, position: int | None = None) -> bool:
        return False

    def write_buffer(self, buffer: bytes) -> bool:
        return False

    def seek(self, offset: int, whence: int = 0) -> None:
        return None

    def flush(self) -> None:
        return None

    def get_end(self) -> int:
        return 0

    def get_size(self) -> int:
        return 0

    def get_nfree(self) -> int:
        return 0

    def get_nbytes_info(self) -> int:
        return 0

    def get_nbytes_free(self) -> int:
        return 0

    def get_seek_free(self) -> int:
        return 0

    def get_seek_info(self) -> int:
        return 0

    def get_errno(self) -> int:
        return 0

    def reset_errno(self) -> None:
        return None

    def make_free(self, first: int, last: int) -> None:
        return None

    def read_free(self) -> None:
        return None

    def write_free(self) -> None:
        return None

    def write_header(self) -> None:
        return None

    def recover(self) -> int:
        return 0

    def sizeof(self) -> int:
        return 0
