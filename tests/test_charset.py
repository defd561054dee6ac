from __future__ import annotations

import pytest

from nesmsg.charset import DEFAULT_TABLE, ControlCodeTable, ControlKind, ControlSpec


def test_default_table_classifies_ascii_and_controls() -> None:
    assert DEFAULT_TABLE.char_for(0x41) == "A"
    assert DEFAULT_TABLE.byte_for("A") == 0x41
    assert DEFAULT_TABLE.kind_of(0x01) is ControlKind.LINE_BREAK
    assert DEFAULT_TABLE.kind_of(0x05) is ControlKind.COLOR
    assert DEFAULT_TABLE.operand_length(0x15) == 3
    assert DEFAULT_TABLE.end_opcode == 0x02


@pytest.mark.parametrize(
    "byte, expected",
    [
        (0x7F, "‾"),
        (0x80, "À"),
        (0x9E, "ü"),
        (0x9F, "Ⓐ"),
        (0xAB, "✥"),
    ],
)
def test_default_table_extended_glyphs(byte: int, expected: str) -> None:
    assert DEFAULT_TABLE.char_for(byte) == expected
    assert DEFAULT_TABLE.byte_for(expected) == byte


def test_unlisted_bytes_are_unknown_without_operands() -> None:
    assert DEFAULT_TABLE.lookup(0x11) is None
    assert DEFAULT_TABLE.kind_of(0x11) is ControlKind.UNKNOWN
    assert DEFAULT_TABLE.operand_length(0x11) == 0
    assert DEFAULT_TABLE.char_for(0xF0) is None


def test_spec_by_name_is_case_insensitive() -> None:
    spec = DEFAULT_TABLE.spec_by_name("color")
    assert spec is not None
    assert spec.opcode == 0x05


def test_table_rejects_byte_mapped_twice() -> None:
    with pytest.raises(ValueError, match="both control and literal"):
        ControlCodeTable(
            controls={0x02: ControlSpec(0x02, ControlKind.END, 0, "END")},
            charset={0x02: "x"},
        )


def test_table_requires_end_opcode() -> None:
    with pytest.raises(ValueError, match="END"):
        ControlCodeTable(
            controls={0x01: ControlSpec(0x01, ControlKind.LINE_BREAK, 0, "NEWLINE")},
            charset={0x41: "A"},
        )


def test_with_overrides_moves_byte_from_charset_to_controls() -> None:
    table = DEFAULT_TABLE.with_overrides(
        controls=[ControlSpec(0x80, ControlKind.COLOR, 1, "TINT")],
        charset={0x11: "♪"},
    )

    assert table.kind_of(0x80) is ControlKind.COLOR
    assert table.char_for(0x80) is None
    assert table.char_for(0x11) == "♪"
    assert DEFAULT_TABLE.char_for(0x80) == "À"


def test_table_rejects_duplicate_control_name() -> None:
    with pytest.raises(ValueError, match="control name 'COLOR'"):
        DEFAULT_TABLE.with_overrides(controls=[ControlSpec(0x80, ControlKind.COLOR, 1, "color")])


def test_table_rejects_character_mapped_by_two_bytes() -> None:
    with pytest.raises(ValueError, match="mapped by both 0x41 and 0xB0"):
        DEFAULT_TABLE.with_overrides(charset={0xB0: "A"})
