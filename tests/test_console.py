from __future__ import annotations

import pytest
from pydantic import BaseModel

from jsonfile import JsonFile, MemoryStorage, register_class
from jsonfile.renderers import render_file


class Point(BaseModel):
    x: float = 0.0
    y: float = 0.0


@pytest.fixture(autouse=True)
def _register_models(_reset_state: None) -> None:
    register_class(Point)


def _build_file() -> JsonFile:
    file = JsonFile("render", "recreate", "Rendered", storage=MemoryStorage("render.json"))
    file.write_object(Point(x=1.0), "p", title="first point")
    sub = file.mkdir("sub")
    sub.write_object(Point(x=2.0), "q")
    return file


def test_render_file_minimal() -> None:
    with _build_file() as file:
        output = render_file(file, verbosity="minimal")

    assert "File: render.json - Rendered (2 keys)" in output
    assert "[Point] p;1" in output
    assert "[TDirectory] sub;1/" in output
    assert "[Point] q;1" in output
    assert "first point" not in output
    assert "created:" not in output


def test_render_file_standard_shows_titles() -> None:
    with _build_file() as file:
        output = render_file(file)

    assert 'title: "first point"' in output
    assert "created:" in output
    assert "object:" not in output


def test_render_file_full_shows_payloads() -> None:
    with _build_file() as file:
        output = render_file(file, verbosity="full")

    assert 'object: {"_typename": "Point", "x": 1.0, "y": 0.0}' in output


def test_render_file_truncates_large_payloads() -> None:
    with _build_file() as file:
        file.write_object(Point(x=1.0 / 3.0), "big")
        file.get_key("big").node["Object"]["padding"] = "x" * 500
        output = render_file(file, verbosity="full")

    assert "[truncated]" in output


def test_render_nested_keys_are_indented_under_directory() -> None:
    with _build_file() as file:
        lines = render_file(file, verbosity="minimal").splitlines()

    sub_line = next(line for line in lines if "sub;1/" in line)
    q_line = next(line for line in lines if "q;1" in line)
    assert q_line.index("[Point]") > sub_line.index("[TDirectory]")
