"""Decode message blobs into editable entries and repack them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from importlib import resources
from typing import Final, Iterable, List, Optional, Sequence

from .charset import DEFAULT_TABLE, ControlCodeTable
from .errors import (
    CodecError,
    EncodeError,
    TruncatedOperand,
    UnterminatedMessage,
)
from .header_table import HeaderRecord, read_header_table, write_header_table
from .tokens import Token, decode_tokens, encode_tokens

LOGGER = logging.getLogger(__name__)

DEFAULT_SAMPLE_NAME: Final[str] = "nes_message_data_static"


@dataclass
class MessageEntry:
    """Editable message: header metadata plus its token sequence.

    ``id`` is the session-scoped identifier assigned at load time;
    ``source_header_id`` is the engine's message id from the header table.
    ``error`` is set only for best-effort entries decoded with ``strict=False``.
    """

    id: int
    source_header_id: int
    box_properties: bytes
    tokens: List[Token] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.error is None

    def header(self, pool_offset: int = 0) -> HeaderRecord:
        return HeaderRecord(self.source_header_id, bytes(self.box_properties), pool_offset)


def assemble_entry(
    session_id: int,
    record: HeaderRecord,
    buffer: bytes,
    pool_start: int,
    table: ControlCodeTable = DEFAULT_TABLE,
) -> MessageEntry:
    """Combine ``record`` with the tokens decoded at its pool offset."""

    tokens, _ = decode_tokens(buffer, pool_start + record.pool_offset, table)
    return MessageEntry(
        id=session_id,
        source_header_id=record.source_header_id,
        box_properties=record.box_properties,
        tokens=tokens,
    )


def _assemble_partial(
    session_id: int,
    record: HeaderRecord,
    buffer: bytes,
    pool_start: int,
    table: ControlCodeTable,
    error: CodecError,
) -> MessageEntry:
    # Decode what precedes the failure point; the encoder re-appends End.
    start = pool_start + record.pool_offset
    if isinstance(error, TruncatedOperand):
        stop = error.offset
    else:
        stop = len(buffer)
    tokens: List[Token] = []
    if stop > start:
        tokens, _ = decode_tokens(buffer[:stop] + bytes([table.end_opcode]), start, table)
        tokens.pop()
    return MessageEntry(
        id=session_id,
        source_header_id=record.source_header_id,
        box_properties=record.box_properties,
        tokens=tokens,
        error=str(error),
    )


def decode(
    buffer: bytes,
    *,
    table: ControlCodeTable = DEFAULT_TABLE,
    strict: bool = True,
) -> List[MessageEntry]:
    """Decode ``buffer`` into message entries in file order.

    With ``strict`` a record that fails to decode aborts the load. Otherwise the
    record becomes a partial entry flagged through ``MessageEntry.error``.
    """

    data = bytes(buffer)
    records, pool_start = read_header_table(data)
    entries: List[MessageEntry] = []
    for session_id, record in enumerate(records):
        try:
            entries.append(assemble_entry(session_id, record, data, pool_start, table))
        except (TruncatedOperand, UnterminatedMessage) as exc:
            if strict:
                raise
            LOGGER.warning(
                "Message 0x%04X decoded partially: %s", record.source_header_id, exc
            )
            entries.append(
                _assemble_partial(session_id, record, data, pool_start, table, exc)
            )
    LOGGER.debug("Decoded %d message(s) from %d byte(s)", len(entries), len(data))
    return entries


def _padding(length: int, alignment: int) -> int:
    remainder = length % alignment
    return 0 if remainder == 0 else alignment - remainder


def encode_many(
    entries: Iterable[MessageEntry],
    *,
    table: ControlCodeTable = DEFAULT_TABLE,
    pool_alignment: int = 1,
) -> bytes:
    """Repack ``entries`` in the given order into a header table plus pool."""

    if pool_alignment < 1:
        raise ValueError("pool_alignment must be at least 1")

    pool = bytearray()
    headers: List[HeaderRecord] = []
    for entry in entries:
        try:
            run = encode_tokens(entry.tokens, table)
        except EncodeError as exc:
            exc.entry_id = entry.id
            raise
        headers.append(entry.header(pool_offset=len(pool)))
        pool.extend(run)
        pool.extend(bytes(_padding(len(run), pool_alignment)))

    LOGGER.debug("Repacked %d message(s) into a %d byte pool", len(headers), len(pool))
    return write_header_table(headers) + bytes(pool)


def encode_one(
    entry: MessageEntry,
    *,
    table: ControlCodeTable = DEFAULT_TABLE,
    pool_alignment: int = 1,
) -> bytes:
    """Encode ``entry`` as a standalone single-record blob."""

    return encode_many([entry], table=table, pool_alignment=pool_alignment)


def read_default_sample() -> bytes:
    """Return the bytes of the bundled sample message blob."""

    sample = resources.files(__package__).joinpath("data").joinpath(DEFAULT_SAMPLE_NAME)
    return sample.read_bytes()


def load_default_sample(
    *,
    table: ControlCodeTable = DEFAULT_TABLE,
    strict: bool = True,
) -> List[MessageEntry]:
    """Decode the bundled sample message blob."""

    return decode(read_default_sample(), table=table, strict=strict)


def encode_order(entries: Sequence[MessageEntry], ids: Iterable[int]) -> List[MessageEntry]:
    """Return the entries whose session id is in ``ids``, keeping list order."""

    wanted = set(ids)
    return [entry for entry in entries if entry.id in wanted]


__all__ = [
    "DEFAULT_SAMPLE_NAME",
    "MessageEntry",
    "assemble_entry",
    "decode",
    "encode_many",
    "encode_one",
    "encode_order",
    "load_default_sample",
    "read_default_sample",
]
