"""Fixed-stride header table at the start of a message blob.

Layout (all fields big-endian)::

    +0  u16  source header id
    +2  2B   box properties (type/position byte, reserved byte)
    +4  u32  pool offset, relative to the first byte after the sentinel

The table ends with a sentinel record whose id is ``0xFFFF``; the text pool
follows it immediately.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Final, Iterable, List, Tuple

from .errors import MalformedHeader

HEADER_STRUCT: Final[struct.Struct] = struct.Struct(">H2sI")
HEADER_STRIDE: Final[int] = HEADER_STRUCT.size
SENTINEL_ID: Final[int] = 0xFFFF
BOX_PROPERTIES_SIZE: Final[int] = 2
_SENTINEL: Final[bytes] = HEADER_STRUCT.pack(SENTINEL_ID, bytes(BOX_PROPERTIES_SIZE), 0)


@dataclass(frozen=True)
class HeaderRecord:
    """One decoded header table record."""

    source_header_id: int
    box_properties: bytes
    pool_offset: int

    @property
    def box_type(self) -> int:
        return self.box_properties[0] >> 4

    @property
    def box_position(self) -> int:
        return self.box_properties[0] & 0x0F


def read_header_table(buffer: bytes) -> Tuple[List[HeaderRecord], int]:
    """Return header records in file order and the offset where the pool starts."""

    if len(buffer) < HEADER_STRIDE:
        raise MalformedHeader(
            f"buffer holds {len(buffer)} byte(s); a header record needs {HEADER_STRIDE}"
        )

    records: List[HeaderRecord] = []
    position = 0
    while True:
        if position + HEADER_STRIDE > len(buffer):
            raise MalformedHeader(
                f"header table has no 0x{SENTINEL_ID:04X} sentinel before end of buffer"
            )
        source_id, box_properties, pool_offset = HEADER_STRUCT.unpack_from(buffer, position)
        position += HEADER_STRIDE
        if source_id == SENTINEL_ID:
            break
        records.append(HeaderRecord(source_id, box_properties, pool_offset))

    pool_start = position
    pool_length = len(buffer) - pool_start
    for index, record in enumerate(records):
        if record.pool_offset >= pool_length:
            raise MalformedHeader(
                f"record #{index} (id 0x{record.source_header_id:04X}) points to pool "
                f"offset 0x{record.pool_offset:X} outside a pool of {pool_length} byte(s)"
            )
    return records, pool_start


def write_header_table(records: Iterable[HeaderRecord]) -> bytes:
    """Emit the header table region, sentinel included."""

    chunks: List[bytes] = []
    for record in records:
        if record.source_header_id == SENTINEL_ID:
            raise MalformedHeader(
                f"message id 0x{SENTINEL_ID:04X} is reserved for the table sentinel"
            )
        if len(record.box_properties) != BOX_PROPERTIES_SIZE:
            raise MalformedHeader(
                f"box properties must be {BOX_PROPERTIES_SIZE} bytes, "
                f"got {len(record.box_properties)}"
            )
        try:
            chunks.append(
                HEADER_STRUCT.pack(
                    record.source_header_id, record.box_properties, record.pool_offset
                )
            )
        except struct.error as exc:
            raise MalformedHeader(
                f"record id {record.source_header_id!r} does not fit the header layout"
            ) from exc
    chunks.append(_SENTINEL)
    return b"".join(chunks)


__all__ = [
    "BOX_PROPERTIES_SIZE",
    "HEADER_STRIDE",
    "HeaderRecord",
    "SENTINEL_ID",
    "read_header_table",
    "write_header_table",
]
