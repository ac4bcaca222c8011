"""Public exception types for jsonfile."""

from __future__ import annotations


class JsonFileError(Exception):
    """Base class for all jsonfile exceptions."""


class JsonFileLoadError(JsonFileError):
    """Raised when a document cannot be parsed or is not a ROOT JSON file."""


class JsonFileVersionError(JsonFileLoadError):
    """Raised when a document was written with a newer format version."""


class JsonFileUsageError(JsonFileError):
    """Raised when a file is used in a way its mode does not allow."""


class JsonFileIOError(JsonFileUsageError):
    """Raised when writing the document to its storage fails."""
