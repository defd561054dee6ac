"""Error kinds raised by the message codec."""

from __future__ import annotations


class CodecError(ValueError):
    """Base class for every decode or encode failure."""


class MalformedHeader(CodecError):
    """Raised when the header table cannot be parsed."""


class TruncatedOperand(CodecError):
    """Raised when an opcode's operands run past the end of the buffer."""

    def __init__(self, opcode: int, offset: int, expected: int, available: int) -> None:
        super().__init__(
            f"opcode 0x{opcode:02X} at offset 0x{offset:X} needs {expected} "
            f"operand byte(s) but only {available} remain"
        )
        self.opcode = opcode
        self.offset = offset
        self.expected = expected
        self.available = available


class UnterminatedMessage(CodecError):
    """Raised when the buffer ends before an End opcode is seen."""

    def __init__(self, start: int) -> None:
        super().__init__(f"message starting at offset 0x{start:X} has no End opcode")
        self.start = start


class EncodeError(CodecError):
    """Base class for edits the encoder cannot represent."""

    entry_id: int | None = None


class UnencodableCharacter(EncodeError):
    """Raised when literal text holds a character missing from the charset."""

    def __init__(self, char: str, entry_id: int | None = None) -> None:
        super().__init__(f"character {char!r} has no charset mapping")
        self.char = char
        self.entry_id = entry_id


class OperandCountMismatch(EncodeError):
    """Raised when a control code carries the wrong number of operands."""

    def __init__(
        self, opcode: int, expected: int, actual: int, entry_id: int | None = None
    ) -> None:
        super().__init__(
            f"opcode 0x{opcode:02X} takes {expected} operand(s), got {actual}"
        )
        self.opcode = opcode
        self.expected = expected
        self.actual = actual
        self.entry_id = entry_id


class MisplacedEnd(EncodeError):
    """Raised when an End control code is followed by more tokens."""

    def __init__(self, position: int, entry_id: int | None = None) -> None:
        super().__init__(
            f"End control at token {position} would hide the tokens after it"
        )
        self.position = position
        self.entry_id = entry_id


class MarkupError(ValueError):
    """Raised when message markup cannot be parsed into tokens."""


__all__ = [
    "CodecError",
    "EncodeError",
    "MalformedHeader",
    "MarkupError",
    "MisplacedEnd",
    "OperandCountMismatch",
    "TruncatedOperand",
    "UnencodableCharacter",
    "UnterminatedMessage",
]
