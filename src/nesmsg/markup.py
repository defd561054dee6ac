"""Editable text markup for token sequences.

Literal text is written as-is. Control codes are written as ``<NAME>`` or
``<NAME:05>`` with space-separated hex operands (``<SFX:28 5F>``). Bytes
missing from both the control table and the charset are written as ``<?XX>``.
A literal ``<`` is doubled. The trailing End opcode is omitted; the encoder
re-appends it.
"""
from __future__ import annotations

import re
from typing import Final, List, Sequence

from .charset import DEFAULT_TABLE, ControlCodeTable, ControlKind
from .errors import MarkupError
from .tokens import ControlCode, Literal, Token

_TAG_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"<(?:\?(?P<raw>[0-9A-Fa-f]{2})|(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::(?P<operands>[^>]*))?)>"
)
_HEX_BYTE: Final[re.Pattern[str]] = re.compile(r"[0-9A-Fa-f]{1,2}")


def render_control(code: ControlCode, table: ControlCodeTable = DEFAULT_TABLE) -> str:
    spec = table.lookup(code.opcode)
    if spec is None:
        label = f"?{code.opcode:02X}"
    else:
        label = spec.name
    if code.operands:
        return f"<{label}:{' '.join(f'{value:02X}' for value in code.operands)}>"
    return f"<{label}>"


def render_markup(tokens: Sequence[Token], table: ControlCodeTable = DEFAULT_TABLE) -> str:
    """Render ``tokens`` as markup text."""

    items = list(tokens)
    if items and isinstance(items[-1], ControlCode) and items[-1].is_end:
        items.pop()
    parts: List[str] = []
    for token in items:
        if isinstance(token, Literal):
            parts.append(token.text.replace("<", "<<"))
        else:
            parts.append(render_control(token, table))
    return "".join(parts)


def _parse_operands(text: str | None, tag: str) -> tuple[int, ...]:
    if text is None:
        return ()
    values: List[int] = []
    for item in text.split():
        if not _HEX_BYTE.fullmatch(item):
            raise MarkupError(f"operand {item!r} in {tag} is not a hex byte")
        values.append(int(item, 16))
    return tuple(values)


def parse_markup(text: str, table: ControlCodeTable = DEFAULT_TABLE) -> List[Token]:
    """Parse markup ``text`` into tokens, terminated by the End opcode."""

    tokens: List[Token] = []
    pending: List[str] = []

    def flush() -> None:
        if pending:
            tokens.append(Literal("".join(pending)))
            pending.clear()

    position = 0
    while position < len(text):
        char = text[position]
        if char != "<":
            pending.append(char)
            position += 1
            continue
        if text.startswith("<<", position):
            pending.append("<")
            position += 2
            continue
        match = _TAG_PATTERN.match(text, position)
        if match is None:
            raise MarkupError(f"malformed control tag at column {position}")
        tag = match.group(0)
        if match.group("raw") is not None:
            opcode = int(match.group("raw"), 16)
            if table.char_for(opcode) is not None:
                raise MarkupError(f"{tag} is a literal character; type it as text")
            if table.lookup(opcode) is not None:
                raise MarkupError(f"{tag} is a named control code; use its name")
            kind = table.kind_of(opcode)
            operands: tuple[int, ...] = ()
        else:
            spec = table.spec_by_name(match.group("name"))
            if spec is None:
                raise MarkupError(f"unknown control code {tag}")
            opcode, kind = spec.opcode, spec.kind
            operands = _parse_operands(match.group("operands"), tag)
        flush()
        tokens.append(ControlCode(opcode=opcode, kind=kind, operands=operands))
        position = match.end()

    flush()
    if not tokens or not (isinstance(tokens[-1], ControlCode) and tokens[-1].is_end):
        end = table.end_opcode
        tokens.append(ControlCode(opcode=end, kind=ControlKind.END))
    return tokens


__all__ = ["parse_markup", "render_control", "render_markup"]
