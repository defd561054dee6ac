"""TOML configuration for the codec and the editor session.

Example::

    [codec]
    pool_alignment = 4
    strict = false

    [export]
    default_filename = "messages.bin"

    [[controls]]
    opcode = "0x80"
    kind = "color"
    operands = 1
    name = "TINT"

    [charset]
    "0xB0" = "♪"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping

import tomllib

from .charset import DEFAULT_TABLE, ControlCodeTable, ControlKind, ControlSpec

LOGGER = logging.getLogger(__name__)

DEFAULT_EXPORT_FILENAME = "messages.bin"


class ConfigError(ValueError):
    """Raised when a codec configuration file fails validation."""


@dataclass(frozen=True)
class CodecConfig:
    """Resolved codec and export settings."""

    table: ControlCodeTable = DEFAULT_TABLE
    pool_alignment: int = 1
    strict: bool = True
    default_filename: str = DEFAULT_EXPORT_FILENAME
    source: Path | None = field(default=None, compare=False)


DEFAULT_CONFIG = CodecConfig()


def load_codec_config(config_path: Path) -> CodecConfig:
    """Parse and validate the configuration at ``config_path``."""

    try:
        with config_path.open("rb") as stream:
            raw_data = tomllib.load(stream)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"{config_path}: {exc}") from exc

    config = parse_codec_config(raw_data, source=config_path)
    LOGGER.debug("Loaded codec configuration from %s", config_path)
    return config


def parse_codec_config(data: Mapping[str, Any], *, source: Path | None = None) -> CodecConfig:
    """Build a :class:`CodecConfig` from already-parsed TOML ``data``."""

    codec = _section(data, "codec")
    export = _section(data, "export")

    pool_alignment = codec.get("pool_alignment", 1)
    if isinstance(pool_alignment, bool) or not isinstance(pool_alignment, int):
        raise ConfigError("[codec] pool_alignment must be an integer")
    if pool_alignment < 1:
        raise ConfigError("[codec] pool_alignment must be at least 1")

    strict = codec.get("strict", True)
    if not isinstance(strict, bool):
        raise ConfigError("[codec] strict must be a boolean")

    default_filename = export.get("default_filename", DEFAULT_EXPORT_FILENAME)
    if not isinstance(default_filename, str) or not default_filename.strip():
        raise ConfigError("[export] default_filename must be a non-empty string")

    controls = _parse_controls(data.get("controls", []))
    charset = _parse_charset(data.get("charset", {}))
    table = DEFAULT_TABLE
    if controls or charset:
        try:
            table = DEFAULT_TABLE.with_overrides(controls=controls, charset=charset)
        except ValueError as exc:
            raise ConfigError(f"control table override rejected: {exc}") from exc

    return CodecConfig(
        table=table,
        pool_alignment=pool_alignment,
        strict=strict,
        default_filename=default_filename,
        source=source,
    )


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, Mapping):
        raise ConfigError(f"[{name}] section must be a mapping")
    return section


def _coerce_byte(raw: Any, what: str) -> int:
    if isinstance(raw, bool):
        raise ConfigError(f"{what} must be a byte value")
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str):
        try:
            value = int(raw.strip(), 0)
        except ValueError as exc:
            raise ConfigError(f"{what} {raw!r} is not a number") from exc
    else:
        raise ConfigError(f"{what} must be an integer or a numeric string")
    if not 0 <= value <= 0xFF:
        raise ConfigError(f"{what} {raw!r} outside 0x00-0xFF")
    return value


def _coerce_kind(raw: Any, index: int) -> ControlKind:
    if not isinstance(raw, str):
        raise ConfigError(f"control entry #{index} kind must be a string")
    try:
        kind = ControlKind(raw.strip().lower())
    except ValueError as exc:
        choices = ", ".join(kind.value for kind in ControlKind if kind is not ControlKind.UNKNOWN)
        raise ConfigError(
            f"control entry #{index} kind {raw!r} is not one of: {choices}"
        ) from exc
    if kind is ControlKind.UNKNOWN:
        raise ConfigError(f"control entry #{index} cannot declare kind 'unknown'")
    return kind


def _parse_controls(entries: Any) -> List[ControlSpec]:
    if not isinstance(entries, list):
        raise ConfigError("[[controls]] must be an array of tables")

    specs: List[ControlSpec] = []
    seen: set[int] = set()
    for index, entry in enumerate(entries, start=1):
        if not isinstance(entry, Mapping):
            raise ConfigError(
                f"control entry #{index} must be a mapping, received {type(entry)!r}"
            )
        opcode = _coerce_byte(entry.get("opcode"), f"control entry #{index} opcode")
        if opcode in seen:
            raise ConfigError(f"opcode 0x{opcode:02X} defined multiple times")
        seen.add(opcode)
        kind = _coerce_kind(entry.get("kind"), index)
        operands = entry.get("operands", 0)
        if isinstance(operands, bool) or not isinstance(operands, int) or operands < 0:
            raise ConfigError(f"control entry #{index} operands must be a non-negative integer")
        name = entry.get("name", f"{kind.name}_{opcode:02X}")
        if not isinstance(name, str) or not name.strip():
            raise ConfigError(f"control entry #{index} name must be a non-empty string")
        specs.append(
            ControlSpec(opcode=opcode, kind=kind, operand_length=operands, name=name.strip().upper())
        )
    return specs


def _parse_charset(entries: Any) -> Dict[int, str]:
    if not isinstance(entries, Mapping):
        raise ConfigError("[charset] must be a table of byte = character pairs")

    charset: Dict[int, str] = {}
    for key, char in entries.items():
        byte = _coerce_byte(key, "charset byte")
        if not isinstance(char, str) or len(char) != 1:
            raise ConfigError(f"charset byte 0x{byte:02X} must map to a single character")
        charset[byte] = char
    return charset


__all__ = [
    "CodecConfig",
    "ConfigError",
    "DEFAULT_CONFIG",
    "DEFAULT_EXPORT_FILENAME",
    "load_codec_config",
    "parse_codec_config",
]
