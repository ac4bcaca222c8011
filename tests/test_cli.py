from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import BaseModel

from jsonfile import JsonFile, register_class
from jsonfile.cli import main


class Point(BaseModel):
    x: float = 0.0
    y: float = 0.0


@pytest.fixture(autouse=True)
def _register_models(_reset_state: None) -> None:
    register_class(Point)


def _create_json_file(tmp_path: Path) -> Path:
    path = tmp_path / "data.json"
    with JsonFile(str(path), "recreate", "cli_test") as file:
        file.write_object(Point(x=1.0), "p")
        file.write_object(Point(x=2.0), "p")
        sub = file.mkdir("sub")
        sub.write_object(Point(y=3.0), "q")
    return path


def test_cli_inspect_prints_summary_and_tree(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    json_file = _create_json_file(tmp_path)
    exit_code = main(["inspect", str(json_file), "--verbosity", "minimal"])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert f"File: {json_file}" in captured.out
    assert "Title: cli_test" in captured.out
    assert "IO version: 1" in captured.out
    assert "Keys: 4" in captured.out
    assert "Directories: 1" in captured.out
    assert "  - Point: 3" in captured.out
    assert "[Point] p;2" in captured.out
    assert "[TDirectory] sub;1/" in captured.out


def test_cli_inspect_json_summary_output(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    json_file = _create_json_file(tmp_path)
    exit_code = main(["inspect", str(json_file), "--json"])

    captured = capsys.readouterr()
    payload = json.loads(captured.out)
    assert exit_code == 0
    assert payload["type"] == "ROOTfile"
    assert payload["title"] == "cli_test"
    assert payload["io_version"] == 1
    assert payload["key_count"] == 4
    assert payload["directory_count"] == 1
    assert payload["class_counts"] == {"Point": 3, "TDirectory": 1}
    assert payload["streamer_infos"] == ["Point", "TDirectory"]
    assert "catalog" not in payload


def test_cli_inspect_json_with_catalog(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    json_file = _create_json_file(tmp_path)
    exit_code = main(["inspect", str(json_file), "--json", "--catalog"])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert [entry["name"] for entry in payload["catalog"]] == ["Point", "TDirectory"]
    assert payload["catalog"][0]["elements"][0]["streamerelement"] == "TStreamerElement"


def test_cli_inspect_text_with_catalog(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    json_file = _create_json_file(tmp_path)
    exit_code = main(["inspect", str(json_file), "--catalog"])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert "Streamer infos:" in captured.out
    assert "  - Point v1" in captured.out
    assert "TStreamerElement x: Double_t" in captured.out


def test_cli_inspect_json_summary_output_to_file(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    json_file = _create_json_file(tmp_path)
    output_path = tmp_path / "out" / "summary.json"
    exit_code = main(["inspect", str(json_file), "--json", "--output", str(output_path)])

    captured = capsys.readouterr()
    payload = json.loads(output_path.read_text(encoding="utf-8"))
    assert exit_code == 0
    assert captured.out == ""
    assert payload["key_count"] == 4


def test_cli_output_without_json_raises_error(tmp_path: Path) -> None:
    json_file = _create_json_file(tmp_path)
    with pytest.raises(ValueError, match="--output is only supported when --json is provided"):
        main(["inspect", str(json_file), "--output", str(tmp_path / "summary.json")])


def test_cli_inspect_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.warns(UserWarning):
        exit_code = main(["inspect", str(tmp_path / "nope.json")])

    captured = capsys.readouterr()
    assert exit_code == 1
    assert "Error: File does not exist." in captured.err


def test_cli_inspect_foreign_json(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "foreign.json"
    path.write_text('{"type": "something else"}', encoding="utf-8")

    exit_code = main(["inspect", str(path)])

    captured = capsys.readouterr()
    assert exit_code == 1
    assert "Error: Not a ROOT File." in captured.err


def test_cli_does_not_modify_file(tmp_path: Path) -> None:
    json_file = _create_json_file(tmp_path)
    before = json_file.read_text(encoding="utf-8")

    assert main(["inspect", str(json_file), "--verbosity", "full"]) == 0
    assert json_file.read_text(encoding="utf-8") == before


def test_cli_ls_lists_top_level_keys(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    json_file = _create_json_file(tmp_path)
    exit_code = main(["ls", str(json_file)])

    lines = capsys.readouterr().out.splitlines()
    assert exit_code == 0
    assert lines[0].endswith("(3 keys)")
    assert lines[1:] == ["Point\tp;1\t", "Point\tp;2\t", "TDirectory\tsub;1\t"]


def test_cli_ls_lists_subdirectory(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    json_file = _create_json_file(tmp_path)
    exit_code = main(["ls", str(json_file), "sub"])

    lines = capsys.readouterr().out.splitlines()
    assert exit_code == 0
    assert lines[0] == f"{json_file}:/sub  (1 keys)"
    assert lines[1:] == ["Point\tq;1\t"]


def test_cli_ls_unknown_directory(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    json_file = _create_json_file(tmp_path)
    exit_code = main(["ls", str(json_file), "nowhere"])

    captured = capsys.readouterr()
    assert exit_code == 1
    assert "Error: no directory 'nowhere'" in captured.err


def test_cli_requires_a_command(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main([])

    assert excinfo.value.code == 2
    assert "COMMAND" in capsys.readouterr().err
