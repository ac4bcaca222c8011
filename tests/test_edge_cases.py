"""Edge-case tests for flush failures, malformed documents, finalisation and concurrency."""

from __future__ import annotations

import gc
import json
import threading
import warnings
from pathlib import Path

import pytest
from pydantic import BaseModel

from jsonfile import (
    JsonFile,
    JsonFileIOError,
    JsonFileLoadError,
    JsonFileUsageError,
    MemoryStorage,
    register_class,
)
from jsonfile.core import get_open_files


class Point(BaseModel):
    x: float = 0.0
    y: float = 0.0


@pytest.fixture(autouse=True)
def _register_models(_reset_state: None) -> None:
    register_class(Point)


def _write_document(path: Path, document: object) -> Path:
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# 1. Flush failure — usage error, state preserved, retry succeeds
# ---------------------------------------------------------------------------


class _FlakyStorage(MemoryStorage):
    def __init__(self) -> None:
        super().__init__("flaky.json")
        self.failures = 1

    def save(self, root: dict[str, object], *, indent: int | None = 3) -> None:
        if self.failures:
            self.failures -= 1
            raise OSError("disk full")
        super().save(root, indent=indent)


def test_flush_failure_keeps_file_open_and_retry_works() -> None:
    storage = _FlakyStorage()
    file = JsonFile("flaky", "recreate", storage=storage)
    file.write_object(Point(x=1.0), "p")

    with pytest.raises(JsonFileIOError, match="disk full"):
        file.close()

    assert file.is_open
    assert file.writable
    assert [key.name for key in file.keys] == ["p"]
    assert file.get("p") == Point(x=1.0)

    file.close()
    assert not file.is_open
    document = json.loads(storage.documents["flaky.json"])
    assert [node["name"] for node in document["Keys"]] == ["p"]


def test_io_error_is_a_usage_error() -> None:
    assert issubclass(JsonFileIOError, JsonFileUsageError)


# ---------------------------------------------------------------------------
# 2. Malformed documents — load errors and skipped keys
# ---------------------------------------------------------------------------


def test_key_without_name_is_a_load_error(tmp_path: Path) -> None:
    path = _write_document(
        tmp_path / "bad_key.json",
        {"type": "ROOTfile", "IOVersion": 1, "Keys": [{"cycle": 1, "Object": {}}]},
    )

    with pytest.raises(JsonFileLoadError, match="Malformed key"):
        JsonFile(str(path))
    assert get_open_files() == []


def test_keys_that_are_not_an_array_are_a_load_error(tmp_path: Path) -> None:
    path = _write_document(tmp_path / "bad_keys.json", {"type": "ROOTfile", "Keys": {"a": 1}})

    with pytest.raises(JsonFileLoadError, match="not an array"):
        JsonFile(str(path))


def test_header_with_wrong_types_is_a_load_error(tmp_path: Path) -> None:
    path = _write_document(tmp_path / "bad_header.json", {"type": "ROOTfile", "uuid": 42})

    with pytest.raises(JsonFileLoadError, match="Malformed document header"):
        JsonFile(str(path))


def test_key_without_object_is_skipped(tmp_path: Path) -> None:
    path = _write_document(
        tmp_path / "partial.json",
        {
            "type": "ROOTfile",
            "IOVersion": 1,
            "Keys": [
                {"name": "empty", "cycle": 1},
                {"name": "p", "cycle": 1, "Object": {"_typename": "Point", "x": 4.0, "y": 0.0}},
            ],
        },
    )

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        with JsonFile(str(path)) as file:
            assert [key.name for key in file.keys] == ["p"]
            assert file.get("p") == Point(x=4.0)

    assert any("no Object" in str(w.message) for w in caught)


def test_payload_without_typename_reads_as_none(tmp_path: Path) -> None:
    path = _write_document(
        tmp_path / "untyped_payload.json",
        {"type": "ROOTfile", "Keys": [{"name": "raw", "cycle": 1, "Object": {"x": 1}}]},
    )

    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        with JsonFile(str(path)) as file:
            key = file.get_key("raw")
            assert key.class_name == ""
            assert key.read_object() is None


# ---------------------------------------------------------------------------
# 3. Non-ASCII content survives a round-trip
# ---------------------------------------------------------------------------


def test_non_ascii_names_and_titles(tmp_path: Path) -> None:
    path = tmp_path / "unicode.json"
    with JsonFile(str(path), "recreate", "Messung ΔE") as file:
        file.mkdir("größe").write_object(Point(x=1.0), "µ", title="Ω")

    assert "Messung ΔE" in path.read_text(encoding="utf-8")
    with JsonFile(str(path)) as file:
        assert file.title == "Messung ΔE"
        assert file.get("größe/µ") == Point(x=1.0)
        assert file.get_directory("größe").get_key("µ").title == "Ω"


# ---------------------------------------------------------------------------
# 4. Finaliser — an unreferenced open file is flushed
# ---------------------------------------------------------------------------


def test_dropped_file_is_flushed(tmp_path: Path) -> None:
    path = tmp_path / "dropped.json"
    file = JsonFile(str(path), "recreate")
    file.write_object(Point(x=8.0), "p")
    del file
    gc.collect()

    assert path.exists()
    assert get_open_files() == []
    with JsonFile(str(path)) as reread:
        assert reread.get("p") == Point(x=8.0)


# ---------------------------------------------------------------------------
# 5. Concurrent files — one file per thread, shared registry stays consistent
# ---------------------------------------------------------------------------


def test_files_in_separate_threads(tmp_path: Path) -> None:
    errors: list[BaseException] = []

    def worker(index: int) -> None:
        try:
            with JsonFile(str(tmp_path / f"thread_{index}.json"), "recreate") as file:
                for step in range(20):
                    file.write_object(Point(x=float(step)), f"p{index}")
        except BaseException as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert get_open_files() == []
    for index in range(4):
        with JsonFile(str(tmp_path / f"thread_{index}.json")) as file:
            assert file.get_key(f"p{index}").cycle == 20


# ---------------------------------------------------------------------------
# 6. Block-level hooks — inert for whole-document files
# ---------------------------------------------------------------------------


def test_block_io_hooks_do_nothing() -> None:
    with JsonFile("blocks", "recreate", storage=MemoryStorage("blocks.json")) as file:
        assert file.sys_open("blocks.json") == 0
        assert file.sys_write(0, b"data") == 0
        assert file.read_buffer(16) is False
        assert file.write_buffer(b"data") is False
        assert file.seek(10) is None
        assert file.flush() is None
        assert file.get_end() == 0
        assert file.get_size() == 0
        assert file.get_errno() == 0
        assert file.recover() == 0
        assert file.sizeof() == 0
        assert file.is_open
