"""Serialization helpers."""

from .json import DEFAULT_INDENT, document_from_json, document_to_json, value_from_json, value_to_json

__all__ = [
    "DEFAULT_INDENT",
    "document_from_json",
    "document_to_json",
    "value_from_json",
    "value_to_json",
]
