from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import BaseModel

from jsonfile import Directory, JsonFile, JsonFileUsageError, register_class
from jsonfile.models import DIRECTORY_TYPENAME


class Point(BaseModel):
    x: float = 0.0
    y: float = 0.0


@pytest.fixture(autouse=True)
def _register_models(_reset_state: None) -> None:
    register_class(Point)


def _nested_file(path: Path) -> None:
    with JsonFile(str(path), "recreate") as file:
        file.write_object(Point(x=1.0), "top")
        outer = file.mkdir("outer", "Outer directory")
        outer.write_object(Point(x=2.0), "a")
        inner = outer.mkdir("inner")
        inner.write_object(Point(x=3.0), "b")
        outer.write_object(Point(x=4.0), "c")


def test_mkdir_creates_directory_key(tmp_path: Path) -> None:
    with JsonFile(str(tmp_path / "d.json"), "recreate") as file:
        sub = file.mkdir("sub", "a subdirectory")

        key = file.get_key("sub")
        assert isinstance(sub, Directory)
        assert key is not None
        assert key.is_subdir
        assert key.class_name == DIRECTORY_TYPENAME
        assert key.title == "a subdirectory"
        assert sub.seek_dir == key.key_id
        assert sub.mother is file
        assert sub.path == f"{file.name}:/sub"
        assert file.find_key_dir(file, key.key_id) is sub
        assert file.find_dir_key(sub) is key


def test_mkdir_rejects_duplicates_and_bad_names(tmp_path: Path) -> None:
    with JsonFile(str(tmp_path / "d.json"), "recreate") as file:
        file.mkdir("sub")
        with pytest.raises(ValueError, match="exists already"):
            file.mkdir("sub")
        with pytest.raises(ValueError, match="invalid directory name"):
            file.mkdir("a/b")
        with pytest.raises(ValueError, match="invalid directory name"):
            file.mkdir("")


def test_nested_layout_on_disk(tmp_path: Path) -> None:
    path = tmp_path / "nested.json"
    _nested_file(path)

    document = json.loads(path.read_text(encoding="utf-8"))
    top, outer = document["Keys"]
    assert top["name"] == "top"
    assert outer["name"] == "outer"
    assert outer["Object"]["_typename"] == "TDirectory"
    assert outer["Object"]["name"] == "outer"
    assert outer["Object"]["title"] == "Outer directory"
    assert [node["name"] for node in outer["Keys"]] == ["a", "inner", "c"]
    inner = outer["Keys"][1]
    assert [node["name"] for node in inner["Keys"]] == ["b"]
    assert list(outer) == ["name", "cycle", "title", "created", "Object", "Keys"]


def test_subdirectories_are_linked_on_read(tmp_path: Path) -> None:
    path = tmp_path / "nested.json"
    _nested_file(path)

    with JsonFile(str(path), "read") as file:
        outer_key = file.get_key("outer")
        outer = file.get_directory("outer")
        assert outer is not None
        assert outer.seek_dir == outer_key.key_id
        assert file.find_key_dir(file, outer_key.key_id) is outer
        assert file.get("outer") is outer
        assert outer.title == "Outer directory"

        inner_key = outer.get_key("inner")
        inner = outer.get_directory("inner")
        assert inner is not None
        assert inner.seek_dir == inner_key.key_id
        assert inner.mother is outer
        assert [key.name for key in inner.keys] == ["b"]


def test_path_lookup_reads_nested_objects(tmp_path: Path) -> None:
    path = tmp_path / "nested.json"
    _nested_file(path)

    with JsonFile(str(path)) as file:
        assert file.get("top") == Point(x=1.0)
        assert file.get("outer/a") == Point(x=2.0)
        assert file.get("outer/inner/b") == Point(x=3.0)
        assert file.get("outer/missing") is None
        assert file.get("nowhere/b") is None
        assert file.get_directory("outer/inner").path == f"{file.name}:/outer/inner"


def test_walk_visits_every_key_depth_first(tmp_path: Path) -> None:
    path = tmp_path / "nested.json"
    _nested_file(path)

    with JsonFile(str(path)) as file:
        assert [key.name for _, key in file.walk()] == ["top", "outer", "a", "inner", "b", "c"]


def test_update_adds_to_existing_subdirectory(tmp_path: Path) -> None:
    path = tmp_path / "nested.json"
    _nested_file(path)

    with JsonFile(str(path), "update") as file:
        inner = file.get_directory("outer/inner")
        inner.write_object(Point(x=5.0), "b")

    with JsonFile(str(path)) as file:
        inner = file.get_directory("outer/inner")
        assert [(key.name, key.cycle) for key in inner.keys] == [("b", 1), ("b", 2)]
        assert file.get("outer/inner/b") == Point(x=5.0)
        assert [key.name for key in file.get_directory("outer").keys] == ["a", "inner", "c"]


def test_delete_subdirectory(tmp_path: Path) -> None:
    path = tmp_path / "nested.json"
    _nested_file(path)

    with JsonFile(str(path), "update") as file:
        outer = file.get_directory("outer")
        assert outer.delete("inner") == 1
        assert outer.get_directory("inner") is None
        assert outer.subdirectories == []

    document = json.loads(path.read_text(encoding="utf-8"))
    assert [node["name"] for node in document["Keys"][1]["Keys"]] == ["a", "c"]


def test_empty_subdirectory_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "empty_sub.json"
    with JsonFile(str(path), "recreate") as file:
        file.mkdir("empty")

    document = json.loads(path.read_text(encoding="utf-8"))
    assert document["Keys"][0]["Keys"] == []
    with JsonFile(str(path)) as file:
        empty = file.get_directory("empty")
        assert empty is not None
        assert empty.keys == []


def test_detached_directory_has_no_file() -> None:
    directory = Directory("loose")
    with pytest.raises(JsonFileUsageError, match="not attached"):
        directory.write_object(Point(), "p")


def test_close_releases_directories(tmp_path: Path) -> None:
    path = tmp_path / "nested.json"
    _nested_file(path)

    file = JsonFile(str(path))
    outer = file.get_directory("outer")
    file.close()

    assert file.subdirectories == []
    assert file.keys == []
    assert outer.keys == []
