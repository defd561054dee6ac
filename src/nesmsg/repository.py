"""JSON documents for editing messages outside the binary blob.

The document is versioned. The loader recognises version ``1``, the format
emitted by :func:`dump_entries`::

    {"version": 1, "messages": [
        {"id": 0, "source_header_id": 4096, "box_properties": "0000",
         "text": "Hello<NEWLINE>world"}
    ]}
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from .charset import DEFAULT_TABLE, ControlCodeTable
from .codec import MessageEntry
from .header_table import BOX_PROPERTIES_SIZE
from .markup import parse_markup, render_markup

DOCUMENT_VERSION = 1


def entry_to_dict(entry: MessageEntry, table: ControlCodeTable = DEFAULT_TABLE) -> dict[str, Any]:
    """Serialise ``entry`` to a JSON-friendly mapping."""

    payload: dict[str, Any] = {
        "id": entry.id,
        "source_header_id": entry.source_header_id,
        "box_properties": bytes(entry.box_properties).hex(),
        "text": render_markup(entry.tokens, table),
    }
    if entry.error is not None:
        payload["error"] = entry.error
    return payload


def entry_from_dict(
    payload: Mapping[str, Any] | Any,
    *,
    default_id: int,
    table: ControlCodeTable = DEFAULT_TABLE,
) -> MessageEntry:
    """Reconstruct a :class:`MessageEntry` from ``payload``."""

    if not isinstance(payload, Mapping):
        raise TypeError("message payload must be a mapping")

    try:
        box_properties = bytes.fromhex(str(payload.get("box_properties", "")))
    except ValueError as exc:
        raise ValueError(f"box_properties for message {default_id} is not hex") from exc
    if len(box_properties) != BOX_PROPERTIES_SIZE:
        raise ValueError(
            f"box_properties for message {default_id} must be {BOX_PROPERTIES_SIZE} bytes"
        )

    return MessageEntry(
        id=int(payload.get("id", default_id)),
        source_header_id=int(payload["source_header_id"]),
        box_properties=box_properties,
        tokens=parse_markup(str(payload.get("text", "")), table),
        error=None if payload.get("error") is None else str(payload["error"]),
    )


def dump_entries(
    entries: Iterable[MessageEntry], table: ControlCodeTable = DEFAULT_TABLE
) -> dict[str, Any]:
    return {
        "version": DOCUMENT_VERSION,
        "messages": [entry_to_dict(entry, table) for entry in entries],
    }


def load_entries(
    payload: Mapping[str, Any] | Any, table: ControlCodeTable = DEFAULT_TABLE
) -> list[MessageEntry]:
    """Convert a parsed document into entries in document order."""

    if not isinstance(payload, Mapping):
        raise TypeError("message document must be a mapping")
    version = payload.get("version")
    if not isinstance(version, int) or isinstance(version, bool):
        raise ValueError("message document version must be an integer")
    if version != DOCUMENT_VERSION:
        raise ValueError(f"unsupported message document version: {version}")

    messages = payload.get("messages", [])
    if not isinstance(messages, list):
        raise TypeError("message document 'messages' must be a list")

    entries = [
        entry_from_dict(message, default_id=index, table=table)
        for index, message in enumerate(messages)
    ]
    ids = [entry.id for entry in entries]
    if len(set(ids)) != len(ids):
        raise ValueError("message document repeats a message id")
    return entries


def save_document(
    entries: Iterable[MessageEntry],
    path: Path,
    table: ControlCodeTable = DEFAULT_TABLE,
) -> None:
    """Write ``entries`` to ``path``, replacing it atomically."""

    path.parent.mkdir(parents=True, exist_ok=True)
    payload = dump_entries(entries, table)
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            dir=str(path.parent),
            prefix=path.name,
            suffix=".tmp",
            encoding="utf-8",
            delete=False,
        ) as stream:
            temp_path = Path(stream.name)
            json.dump(payload, stream, ensure_ascii=False, indent=2)
            stream.write("\n")
            stream.flush()
            os.fsync(stream.fileno())
        os.replace(temp_path, path)
    except Exception:
        if temp_path is not None and temp_path.exists():
            temp_path.unlink()
        raise


def load_document(path: Path, table: ControlCodeTable = DEFAULT_TABLE) -> list[MessageEntry]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    return load_entries(payload, table)


__all__ = [
    "DOCUMENT_VERSION",
    "dump_entries",
    "entry_from_dict",
    "entry_to_dict",
    "load_document",
    "load_entries",
    "save_document",
]
