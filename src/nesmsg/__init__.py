"""Decode, edit and repack engine message tables."""
from __future__ import annotations

from .charset import DEFAULT_TABLE, ControlCodeTable, ControlKind, ControlSpec
from .codec import (
    DEFAULT_SAMPLE_NAME,
    MessageEntry,
    decode,
    encode_many,
    encode_one,
    load_default_sample,
)
from .codec_config import CodecConfig, ConfigError, load_codec_config
from .errors import (
    CodecError,
    EncodeError,
    MalformedHeader,
    MarkupError,
    MisplacedEnd,
    OperandCountMismatch,
    TruncatedOperand,
    UnencodableCharacter,
    UnterminatedMessage,
)
from .header_table import HeaderRecord
from .markup import parse_markup, render_markup
from .session import EditorSession, ExportFailure, ExportResult
from .tokens import ControlCode, Literal, Token

__all__ = [
    "CodecConfig",
    "CodecError",
    "ConfigError",
    "ControlCode",
    "ControlCodeTable",
    "ControlKind",
    "ControlSpec",
    "DEFAULT_SAMPLE_NAME",
    "DEFAULT_TABLE",
    "EditorSession",
    "EncodeError",
    "ExportFailure",
    "ExportResult",
    "HeaderRecord",
    "Literal",
    "MalformedHeader",
    "MarkupError",
    "MessageEntry",
    "MisplacedEnd",
    "OperandCountMismatch",
    "Token",
    "TruncatedOperand",
    "UnencodableCharacter",
    "UnterminatedMessage",
    "decode",
    "encode_many",
    "encode_one",
    "load_codec_config",
    "load_default_sample",
    "parse_markup",
    "render_markup",
]
