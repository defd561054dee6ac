from __future__ import annotations

import json
from pathlib import Path

import pytest

from nesmsg.codec import MessageEntry, decode, encode_many, load_default_sample
from nesmsg.repository import (
    DOCUMENT_VERSION,
    dump_entries,
    entry_from_dict,
    entry_to_dict,
    load_document,
    load_entries,
    save_document,
)
from nesmsg.tokens import Literal


def test_entry_to_dict_renders_markup() -> None:
    entry = load_default_sample()[1]

    payload = entry_to_dict(entry)

    assert payload == {
        "id": 1,
        "source_header_id": 0x0002,
        "box_properties": "2300",
        "text": "<COLOR:41>Red<COLOR:40> text",
    }


def test_save_and_load_document_preserves_entries(tmp_path: Path) -> None:
    entries = load_default_sample()
    path = tmp_path / "nested" / "messages.json"

    save_document(entries, path)
    restored = load_document(path)

    assert [(e.id, e.source_header_id, e.box_properties, e.tokens) for e in restored] == [
        (e.id, e.source_header_id, e.box_properties, e.tokens) for e in entries
    ]
    assert encode_many(restored) == encode_many(entries)
    assert not list(path.parent.glob("*.tmp"))


def test_load_document_applies_edits(tmp_path: Path) -> None:
    path = tmp_path / "messages.json"
    save_document(load_default_sample(), path)
    payload = json.loads(path.read_text(encoding="utf-8"))
    payload["messages"][3]["text"] = "Maybe<NEWLINE>Never"
    path.write_text(json.dumps(payload), encoding="utf-8")

    entries = load_document(path)

    assert decode(encode_many(entries))[3].tokens[0] == Literal("Maybe")


def test_load_entries_rejects_unknown_version() -> None:
    with pytest.raises(ValueError, match="unsupported"):
        load_entries({"version": DOCUMENT_VERSION + 1, "messages": []})


def test_load_entries_rejects_duplicate_ids() -> None:
    message = {"id": 3, "source_header_id": 1, "box_properties": "0000", "text": "A"}
    with pytest.raises(ValueError, match="repeats"):
        load_entries({"version": DOCUMENT_VERSION, "messages": [message, dict(message)]})


def test_entry_from_dict_validates_box_properties() -> None:
    with pytest.raises(ValueError, match="2 bytes"):
        entry_from_dict({"source_header_id": 1, "box_properties": "00"}, default_id=0)
    with pytest.raises(ValueError, match="not hex"):
        entry_from_dict({"source_header_id": 1, "box_properties": "zz00"}, default_id=0)


def test_entry_from_dict_defaults_id() -> None:
    entry = entry_from_dict({"source_header_id": 9, "box_properties": "0000"}, default_id=4)
    assert isinstance(entry, MessageEntry)
    assert entry.id == 4


def test_dump_entries_marks_partial_entries() -> None:
    entry = MessageEntry(id=0, source_header_id=1, box_properties=b"\x00\x00", error="broken")
    assert dump_entries([entry])["messages"][0]["error"] == "broken"


def test_partial_flag_survives_document_round_trip(tmp_path: Path) -> None:
    entries = [
        MessageEntry(id=0, source_header_id=1, box_properties=b"\x00\x00", tokens=[Literal("ok")]),
        MessageEntry(id=1, source_header_id=2, box_properties=b"\x00\x00", error="cut short"),
    ]
    path = tmp_path / "messages.json"

    save_document(entries, path)
    loaded = load_document(path)

    assert loaded[0].error is None
    assert loaded[1].error == "cut short"
    assert not loaded[1].is_valid
