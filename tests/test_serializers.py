from __future__ import annotations

import pytest

from jsonfile.exceptions import JsonFileLoadError
from jsonfile.serializers import (
    document_from_json,
    document_to_json,
    value_from_json,
    value_to_json,
)


def test_document_text_is_indented_and_newline_terminated() -> None:
    text = document_to_json({"type": "ROOTfile", "Keys": []})

    assert text == '{\n   "type": "ROOTfile",\n   "Keys": []\n}\n'


def test_document_text_keeps_non_ascii() -> None:
    text = document_to_json({"title": "Größe µ"}, indent=None)

    assert "Größe µ" in text


def test_document_from_json_reports_position() -> None:
    with pytest.raises(JsonFileLoadError, match=r"parse error at line 2, column \d+"):
        document_from_json('{\n  "type": }')


def test_document_from_json_requires_object() -> None:
    with pytest.raises(JsonFileLoadError, match="File does not have a type."):
        document_from_json("[1, 2]")


def test_document_round_trip_preserves_order() -> None:
    root = {"type": "ROOTfile", "IOVersion": 1, "Keys": [{"name": "a", "cycle": 1}]}

    assert list(document_from_json(document_to_json(root))) == ["type", "IOVersion", "Keys"]


def test_value_text_is_compact() -> None:
    assert value_to_json({"_typename": "Point", "x": 1.0}) == '{"_typename":"Point","x":1.0}'


def test_value_from_json_raises_load_error() -> None:
    assert value_from_json("[1, 2]") == [1, 2]
    with pytest.raises(JsonFileLoadError, match="parse error"):
        value_from_json("{oops")


def test_non_finite_floats_are_refused() -> None:
    with pytest.raises(ValueError):
        document_to_json({"type": "ROOTfile", "value": float("nan")})
    with pytest.raises(ValueError):
        value_to_json([float("inf")])
