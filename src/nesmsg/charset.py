"""Charset and control-code lookup tables for message text pools."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Final, Iterable, Mapping


class ControlKind(Enum):
    """Semantic category of a control opcode."""

    LINE_BREAK = "line_break"
    COLOR = "color"
    SPEED = "speed"
    WAIT = "wait"
    BOX_TYPE = "box_type"
    END = "end"
    UNKNOWN = "unknown"
    SHIFT = "shift"
    JUMP = "jump"
    SOUND = "sound"
    ICON = "icon"
    CHOICE = "choice"
    VARIABLE = "variable"
    TEXT_MODE = "text_mode"


@dataclass(frozen=True)
class ControlSpec:
    """One control-code table row."""

    opcode: int
    kind: ControlKind
    operand_length: int
    name: str

    def __post_init__(self) -> None:
        if not 0 <= self.opcode <= 0xFF:
            raise ValueError(f"opcode {self.opcode!r} is not a byte value")
        if self.operand_length < 0:
            raise ValueError(f"opcode 0x{self.opcode:02X} has a negative operand length")
        if self.kind is ControlKind.UNKNOWN:
            raise ValueError("UNKNOWN is reserved for opcodes missing from the table")


@dataclass(frozen=True)
class ControlCodeTable:
    """Classify pool bytes as control opcodes or charset literals.

    A byte listed in ``controls`` is an opcode; a byte listed in ``charset`` is
    a literal character. Any other byte decodes as an ``UNKNOWN`` control with
    no operands so unrecognised data survives a round-trip.
    """

    controls: Mapping[int, ControlSpec]
    charset: Mapping[int, str]
    _by_char: Mapping[str, int] = field(init=False, repr=False, compare=False)
    _by_name: Mapping[str, ControlSpec] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        controls = dict(self.controls)
        charset = dict(self.charset)
        overlap = sorted(set(controls) & set(charset))
        if overlap:
            listed = ", ".join(f"0x{byte:02X}" for byte in overlap)
            raise ValueError(f"bytes mapped as both control and literal: {listed}")
        for opcode, spec in controls.items():
            if spec.opcode != opcode:
                raise ValueError(f"control row 0x{opcode:02X} holds opcode 0x{spec.opcode:02X}")
        if not any(spec.kind is ControlKind.END for spec in controls.values()):
            raise ValueError("control table must define an END opcode")

        by_char: dict[str, int] = {}
        for byte, char in sorted(charset.items()):
            if len(char) != 1:
                raise ValueError(f"charset byte 0x{byte:02X} must map to one character")
            if char in by_char:
                raise ValueError(
                    f"character {char!r} mapped by both 0x{by_char[char]:02X} and 0x{byte:02X}"
                )
            by_char[char] = byte
        by_name: dict[str, ControlSpec] = {}
        for spec in sorted(controls.values(), key=lambda row: row.opcode):
            name = spec.name.upper()
            if name in by_name:
                raise ValueError(
                    f"control name {name!r} used by both 0x{by_name[name].opcode:02X} "
                    f"and 0x{spec.opcode:02X}"
                )
            by_name[name] = spec

        object.__setattr__(self, "controls", MappingProxyType(controls))
        object.__setattr__(self, "charset", MappingProxyType(charset))
        object.__setattr__(self, "_by_char", MappingProxyType(by_char))
        object.__setattr__(self, "_by_name", MappingProxyType(by_name))

    @property
    def end_opcode(self) -> int:
        """Return the canonical End opcode (the lowest END row)."""

        return min(
            opcode
            for opcode, spec in self.controls.items()
            if spec.kind is ControlKind.END
        )

    def lookup(self, opcode: int) -> ControlSpec | None:
        return self.controls.get(opcode)

    def operand_length(self, opcode: int) -> int:
        """Return the declared operand length, ``0`` for unknown opcodes."""

        spec = self.controls.get(opcode)
        return spec.operand_length if spec is not None else 0

    def kind_of(self, opcode: int) -> ControlKind:
        spec = self.controls.get(opcode)
        return spec.kind if spec is not None else ControlKind.UNKNOWN

    def char_for(self, byte: int) -> str | None:
        return self.charset.get(byte)

    def byte_for(self, char: str) -> int | None:
        return self._by_char.get(char)

    def spec_by_name(self, name: str) -> ControlSpec | None:
        return self._by_name.get(name.upper())

    def with_overrides(
        self,
        *,
        controls: Iterable[ControlSpec] = (),
        charset: Mapping[int, str] | None = None,
    ) -> "ControlCodeTable":
        """Return a copy with ``controls`` and ``charset`` rows replacing ours."""

        merged_controls = dict(self.controls)
        merged_charset = dict(self.charset)
        for spec in controls:
            merged_charset.pop(spec.opcode, None)
            merged_controls[spec.opcode] = spec
        for byte, char in (charset or {}).items():
            merged_controls.pop(byte, None)
            merged_charset[byte] = char
        return ControlCodeTable(controls=merged_controls, charset=merged_charset)


def _spec(opcode: int, kind: ControlKind, operands: int, name: str) -> ControlSpec:
    return ControlSpec(opcode=opcode, kind=kind, operand_length=operands, name=name)


_DEFAULT_CONTROLS: Final[tuple[ControlSpec, ...]] = (
    _spec(0x01, ControlKind.LINE_BREAK, 0, "NEWLINE"),
    _spec(0x02, ControlKind.END, 0, "END"),
    _spec(0x04, ControlKind.WAIT, 0, "BOX_BREAK"),
    _spec(0x05, ControlKind.COLOR, 1, "COLOR"),
    _spec(0x06, ControlKind.SHIFT, 1, "SHIFT"),
    _spec(0x07, ControlKind.JUMP, 2, "TEXTID"),
    _spec(0x08, ControlKind.TEXT_MODE, 0, "QUICKTEXT_ENABLE"),
    _spec(0x09, ControlKind.TEXT_MODE, 0, "QUICKTEXT_DISABLE"),
    _spec(0x0A, ControlKind.WAIT, 0, "PERSISTENT"),
    _spec(0x0B, ControlKind.WAIT, 0, "EVENT"),
    _spec(0x0C, ControlKind.WAIT, 1, "BOX_BREAK_DELAYED"),
    _spec(0x0E, ControlKind.WAIT, 1, "FADE"),
    _spec(0x0F, ControlKind.VARIABLE, 0, "NAME"),
    _spec(0x10, ControlKind.TEXT_MODE, 0, "OCARINA"),
    _spec(0x12, ControlKind.SOUND, 2, "SFX"),
    _spec(0x13, ControlKind.ICON, 1, "ITEM_ICON"),
    _spec(0x14, ControlKind.SPEED, 1, "TEXT_SPEED"),
    _spec(0x15, ControlKind.BOX_TYPE, 3, "BACKGROUND"),
    _spec(0x16, ControlKind.VARIABLE, 0, "MARATHON_TIME"),
    _spec(0x17, ControlKind.VARIABLE, 0, "RACE_TIME"),
    _spec(0x18, ControlKind.VARIABLE, 0, "POINTS"),
    _spec(0x19, ControlKind.VARIABLE, 0, "TOKENS"),
    _spec(0x1A, ControlKind.TEXT_MODE, 0, "UNSKIPPABLE"),
    _spec(0x1B, ControlKind.CHOICE, 0, "TWO_CHOICE"),
    _spec(0x1C, ControlKind.CHOICE, 0, "THREE_CHOICE"),
    _spec(0x1D, ControlKind.VARIABLE, 0, "FISH_INFO"),
    _spec(0x1E, ControlKind.VARIABLE, 1, "HIGHSCORE"),
    _spec(0x1F, ControlKind.VARIABLE, 0, "TIME"),
)

# 0x7F-0x9E accented Latin letters, 0x9F-0xAB controller button glyphs.
_EXTENDED_GLYPHS: Final[str] = (
    "‾ÀîÂÄÇÈÉÊËÏÔÖÙÛÜß"
    "àáâäçèéêëïôöùûü"
    "ⒶⒷⒸⓁⓇⓏ↑↓←→▾✜✥"
)


def _build_default_charset() -> dict[int, str]:
    charset = {code: chr(code) for code in range(0x20, 0x7F)}
    for offset, glyph in enumerate(_EXTENDED_GLYPHS):
        charset[0x7F + offset] = glyph
    return charset


DEFAULT_TABLE: Final[ControlCodeTable] = ControlCodeTable(
    controls={spec.opcode: spec for spec in _DEFAULT_CONTROLS},
    charset=_build_default_charset(),
)


__all__ = [
    "ControlCodeTable",
    "ControlKind",
    "ControlSpec",
    "DEFAULT_TABLE",
]
