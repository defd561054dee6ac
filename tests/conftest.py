"""Pytest configuration to ensure the nesmsg package is importable."""
from __future__ import annotations

import struct
import sys
from pathlib import Path
from typing import Iterable

import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
_root_str = str(_REPO_ROOT)
if _root_str not in sys.path:
    sys.path.insert(0, _root_str)

import sitecustomize  # noqa: F401,E402  # Ensure src/ is on sys.path via sitecustomize hook.

from nesmsg.charset import ControlCodeTable, ControlKind, ControlSpec  # noqa: E402


def build_blob(records: Iterable[tuple[int, bytes, int]], pool: bytes) -> bytes:
    """Assemble a header table (plus sentinel) followed by ``pool``."""

    table = b"".join(
        struct.pack(">H2sI", source_id, box, offset) for source_id, box, offset in records
    )
    return table + b"\xff\xff\x00\x00\x00\x00\x00\x00" + pool


@pytest.fixture
def tiny_table() -> ControlCodeTable:
    """Minimal table: ``A``-``C`` literals, End at 0x02, Color at 0x80."""

    return ControlCodeTable(
        controls={
            0x02: ControlSpec(0x02, ControlKind.END, 0, "END"),
            0x80: ControlSpec(0x80, ControlKind.COLOR, 1, "COLOR"),
        },
        charset={0x41: "A", 0x42: "B", 0x43: "C"},
    )


@pytest.fixture
def make_blob():
    return build_blob
