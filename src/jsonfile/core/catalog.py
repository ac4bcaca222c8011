"""Schema catalog: the ``StreamerInfos`` section of a document."""

from __future__ import annotations

import warnings
from collections.abc import Iterable

from pydantic import ValidationError

from ..models import SchemaElement, SchemaEntry
from .reflection import ClassRegistry


def collect_schema_entries(registry: ClassRegistry, class_names: Iterable[str]) -> list[SchemaEntry]:
    """Layouts of the referenced classes plus the bases and member classes they need.

    Entries come out in first-reference order. Names the registry does not
    know are skipped with a warning.
    """
    ordered: list[str] = []
    pending = list(class_names)
    seen: set[str] = set()
    while pending:
        name = pending.pop(0)
        if name in seen:
            continue
        seen.add(name)
        handle = registry.get_class(name)
        if handle is None:
            warnings.warn(
                f"jsonfile: no layout known for class {name!r}, not stored in StreamerInfos",
                stacklevel=2,
            )
            continue
        ordered.append(name)
        pending.extend(handle.base_names)
        pending.extend(handle.member_class_names())

    entries = []
    for name in ordered:
        entry = registry.schema_entry(name)
        if entry is not None:
            entries.append(entry)
    return entries


def store_element(element: SchemaElement) -> dict[str, object]:
    return element.to_node()


def store_schema_entry(entry: SchemaEntry) -> dict[str, object]:
    node = entry.to_node()
    node["elements"] = [store_element(element) for element in entry.elements]
    return node


def read_schema_entries(nodes: object, registry: ClassRegistry | None = None) -> list[SchemaEntry]:
    """Rebuild schema entries from the stored catalog.

    A malformed entry, or one whose base class is neither in the catalog nor
    in ``registry``, is skipped with a warning; the rest are still returned.
    """
    if not isinstance(nodes, list):
        warnings.warn("jsonfile: StreamerInfos is not an array, ignored", stacklevel=2)
        return []

    stored_names = {node.get("name") for node in nodes if isinstance(node, dict)}
    entries: list[SchemaEntry] = []
    for index, node in enumerate(nodes):
        try:
            entry = SchemaEntry.model_validate(node)
        except ValidationError as exc:
            name = node.get("name", f"#{index}") if isinstance(node, dict) else f"#{index}"
            warnings.warn(
                f"jsonfile: skipping streamer info {name}: {_first_error(exc)}",
                stacklevel=2,
            )
            continue
        unknown = [
            base
            for base in entry.base_names
            if base not in stored_names and (registry is None or registry.get_class(base) is None)
        ]
        if unknown:
            warnings.warn(
                f"jsonfile: skipping streamer info {entry.name}: unknown base class {unknown[0]!r}",
                stacklevel=2,
            )
            continue
        entries.append(entry)
    return entries


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    error = errors[0]
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error.get('msg', '')}" if location else str(error.get("msg", ""))
