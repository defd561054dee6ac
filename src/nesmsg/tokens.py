"""Token decoder and encoder for the message text pool."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple, Union

from .charset import DEFAULT_TABLE, ControlCodeTable, ControlKind
from .errors import (
    MisplacedEnd,
    OperandCountMismatch,
    TruncatedOperand,
    UnencodableCharacter,
    UnterminatedMessage,
)


@dataclass(frozen=True)
class Literal:
    """A run of printable characters."""

    text: str


@dataclass(frozen=True)
class ControlCode:
    """A control opcode and its operand bytes."""

    opcode: int
    kind: ControlKind
    operands: Tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "operands", tuple(int(value) for value in self.operands))
        for value in self.operands:
            if not 0 <= value <= 0xFF:
                raise ValueError(f"operand {value!r} is not a byte value")

    @property
    def is_end(self) -> bool:
        return self.kind is ControlKind.END


Token = Union[Literal, ControlCode]


def control(opcode: int, *operands: int, table: ControlCodeTable = DEFAULT_TABLE) -> ControlCode:
    """Build a :class:`ControlCode` whose kind is looked up in ``table``."""

    return ControlCode(opcode=opcode, kind=table.kind_of(opcode), operands=operands)


def decode_tokens(
    buffer: bytes,
    start: int,
    table: ControlCodeTable = DEFAULT_TABLE,
) -> tuple[List[Token], int]:
    """Decode one message starting at ``start``.

    Returns the tokens, End included, and the offset just past the End opcode.
    """

    tokens: List[Token] = []
    pending: List[str] = []

    def flush() -> None:
        if pending:
            tokens.append(Literal("".join(pending)))
            pending.clear()

    position = start
    length = len(buffer)
    while position < length:
        byte = buffer[position]
        char = table.char_for(byte)
        if char is not None:
            pending.append(char)
            position += 1
            continue

        flush()
        operand_length = table.operand_length(byte)
        available = length - position - 1
        if available < operand_length:
            raise TruncatedOperand(byte, position, operand_length, available)
        operands = tuple(buffer[position + 1 : position + 1 + operand_length])
        code = ControlCode(opcode=byte, kind=table.kind_of(byte), operands=operands)
        tokens.append(code)
        position += 1 + operand_length
        if code.is_end:
            return tokens, position

    raise UnterminatedMessage(start)


def encode_tokens(
    tokens: Sequence[Token],
    table: ControlCodeTable = DEFAULT_TABLE,
) -> bytes:
    """Encode ``tokens`` and terminate the run with the End opcode if needed."""

    output = bytearray()
    last = len(tokens) - 1
    for position, token in enumerate(tokens):
        if isinstance(token, Literal):
            for char in token.text:
                byte = table.byte_for(char)
                if byte is None:
                    raise UnencodableCharacter(char)
                output.append(byte)
            continue
        if token.is_end and position != last:
            raise MisplacedEnd(position)
        expected = table.operand_length(token.opcode)
        if len(token.operands) != expected:
            raise OperandCountMismatch(token.opcode, expected, len(token.operands))
        output.append(token.opcode)
        output.extend(token.operands)

    if not ends_with_end(tokens):
        output.append(table.end_opcode)
    return bytes(output)


def ends_with_end(tokens: Sequence[Token]) -> bool:
    return bool(tokens) and isinstance(tokens[-1], ControlCode) and tokens[-1].is_end


def literal_text(tokens: Sequence[Token]) -> str:
    """Return the concatenated literal text, ignoring control codes."""

    return "".join(token.text for token in tokens if isinstance(token, Literal))


__all__ = [
    "ControlCode",
    "Literal",
    "Token",
    "control",
    "decode_tokens",
    "encode_tokens",
    "ends_with_end",
    "literal_text",
]
