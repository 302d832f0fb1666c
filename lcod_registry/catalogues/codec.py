"""The two catalogue encodings, over one ``CatalogueEntry`` type.

``catalogues.json``::

    {"schema": "lcod-registry/catalogues@1", "catalogues": [{...}, ...]}

``catalogues.jsonl``::

    {"type": "manifest", "schema": "lcod-manifest/list@1"}
    {"id": ..., "kind": ..., "url": ..., "metadata": {"commit": ..., "checksum": ...}}
    ...

The structured form stores ``commit`` / ``checksum`` at the top level of an
entry, the line-delimited form inside ``metadata``.  Both decode to the
same in-memory entry so they can be compared directly.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from lcod_registry.errors import StructuralError
from lcod_registry.registry.models import CATALOGUES_SCHEMA, MANIFEST_LIST_SCHEMA, CatalogueEntry
from lcod_registry.utils.json_files import dumps, read_json

STRUCTURED_FILE = "catalogues.json"
LINES_FILE = "catalogues.jsonl"

_PINNED_KEYS = ("commit", "checksum")


# ---------------------------------------------------------------------------
# Structured JSON
# ---------------------------------------------------------------------------


def encode_structured(entries: list[CatalogueEntry]) -> str:
    payload = {
        "schema": CATALOGUES_SCHEMA,
        "catalogues": [_structured_record(e) for e in entries],
    }
    return dumps(payload)


def decode_structured(data: Any, source: str = STRUCTURED_FILE) -> list[CatalogueEntry]:
    """Decode a parsed ``catalogues.json`` document."""
    if not isinstance(data, dict) or not isinstance(data.get("catalogues"), list):
        raise StructuralError(f"{source}: catalogues array missing")
    entries = []
    for i, record in enumerate(data["catalogues"]):
        entries.append(_entry_from_record(record, f"{source}: catalogues[{i}]", pinned_in_metadata=False))
    return entries


def load_structured(path: str | Path) -> list[CatalogueEntry]:
    path = Path(path)
    return decode_structured(read_json(path), path.name)


# ---------------------------------------------------------------------------
# Line-delimited JSON
# ---------------------------------------------------------------------------


def encode_lines(entries: list[CatalogueEntry]) -> str:
    lines = [json.dumps({"type": "manifest", "schema": MANIFEST_LIST_SCHEMA}, ensure_ascii=False)]
    for entry in entries:
        lines.append(json.dumps(_line_record(entry), ensure_ascii=False))
    return "\n".join(lines) + "\n"


def decode_lines(text: str, source: str = LINES_FILE) -> list[CatalogueEntry]:
    """Decode the text of a ``catalogues.jsonl`` document.

    Blank lines are ignored.  The first record must be the manifest header.
    """
    records = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            records.append((lineno, json.loads(line)))
        except json.JSONDecodeError as e:
            raise StructuralError(f"{source}:{lineno}: invalid JSON: {e}") from e

    if not records:
        raise StructuralError(f"{source}: empty document")
    lineno, header = records[0]
    if not isinstance(header, dict) or header.get("type") != "manifest":
        raise StructuralError(f"{source}:{lineno}: first record must be a manifest header")
    if header.get("schema") != MANIFEST_LIST_SCHEMA:
        raise StructuralError(
            f"{source}:{lineno}: unsupported schema {header.get('schema')!r}"
        )

    return [
        _entry_from_record(record, f"{source}:{lineno}", pinned_in_metadata=True)
        for lineno, record in records[1:]
    ]


def load_lines(path: str | Path) -> list[CatalogueEntry]:
    path = Path(path)
    try:
        text = path.read_bytes().decode("utf-8")
    except UnicodeDecodeError as e:
        raise StructuralError(f"{path.name}: not valid UTF-8: {e}") from e
    return decode_lines(text, path.name)


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


def upsert_entry(entries: list[CatalogueEntry], entry: CatalogueEntry) -> list[CatalogueEntry]:
    """Replace the entry with the same id, or append *entry*."""
    result = list(entries)
    for i, existing in enumerate(result):
        if existing.id == entry.id:
            result[i] = entry
            return result
    result.append(entry)
    return result


def _structured_record(entry: CatalogueEntry) -> dict[str, Any]:
    record: dict[str, Any] = {"id": entry.id}
    if entry.description:
        record["description"] = entry.description
    record.update(
        {
            "kind": entry.kind,
            "url": entry.url,
            "commit": entry.commit,
            "checksum": entry.checksum,
            "priority": entry.priority,
            "metadata": dict(entry.metadata),
        }
    )
    return record


def _line_record(entry: CatalogueEntry) -> dict[str, Any]:
    record: dict[str, Any] = {"id": entry.id}
    if entry.description:
        record["description"] = entry.description
    record.update(
        {
            "kind": entry.kind,
            "url": entry.url,
            "priority": entry.priority,
            "metadata": {**entry.metadata, "commit": entry.commit, "checksum": entry.checksum},
        }
    )
    return record


def _entry_from_record(record: Any, where: str, pinned_in_metadata: bool) -> CatalogueEntry:
    if not isinstance(record, dict):
        raise StructuralError(f"{where}: catalogue entry must be an object")
    for key in ("id", "kind", "url"):
        if not isinstance(record.get(key), str):
            raise StructuralError(f"{where}: catalogue entry missing \"{key}\"")
    metadata = record.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise StructuralError(f"{where}: \"metadata\" must be an object")
    priority = record.get("priority", 0)
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise StructuralError(f"{where}: \"priority\" must be an integer")

    pinned_from = metadata if pinned_in_metadata else record
    return CatalogueEntry(
        id=record["id"],
        kind=record["kind"],
        url=record["url"],
        commit=str(pinned_from.get("commit") or ""),
        checksum=str(pinned_from.get("checksum") or ""),
        priority=priority,
        description=str(record.get("description", "")),
        metadata={k: v for k, v in metadata.items() if k not in _PINNED_KEYS},
    )
