"""JSON text codec for whole documents."""

from __future__ import annotations

import json

from ..exceptions import JsonFileLoadError

DEFAULT_INDENT = 3


def document_to_json(root: dict[str, object], *, indent: int | None = DEFAULT_INDENT) -> str:
    return json.dumps(root, indent=indent, ensure_ascii=False, allow_nan=False) + "\n"


def document_from_json(payload: str) -> dict[str, object]:
    """Parse document text into the root JSON object.

    Raises ``JsonFileLoadError`` on malformed text, with the position of the
    first error in the message. A well-formed document whose top level is not
    an object has no ``type`` and is rejected the same way.
    """
    try:
        root = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise JsonFileLoadError(
            f"parse error at line {exc.lineno}, column {exc.colno}: {exc.msg}"
        ) from exc
    if not isinstance(root, dict):
        raise JsonFileLoadError("File does not have a type.")
    return root


def value_to_json(value: object) -> str:
    """Compact text of a single JSON value, as handed to the conversion service."""
    return json.dumps(value, ensure_ascii=False, allow_nan=False, separators=(",", ":"))


def value_from_json(payload: str) -> object:
    try:
        return json.loads(payload)
    except json.JSONDecodeError as exc:
        raise JsonFileLoadError(
            f"parse error at line {exc.lineno}, column {exc.colno}: {exc.msg}"
        ) from exc
