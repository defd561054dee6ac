"""Command-line front end for inspecting and repacking message blobs."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Sequence

from .codec import encode_many, read_default_sample
from .codec_config import DEFAULT_CONFIG, CodecConfig, ConfigError, load_codec_config
from .errors import CodecError, MarkupError
from .markup import render_markup
from .repository import load_document, save_document
from .session import EditorSession, SessionError
from .tokens import literal_text

LOGGER = logging.getLogger(__name__)

_PREVIEW_WIDTH = 48


def _parse_ids(value: str) -> List[int]:
    ids: List[int] = []
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        if "-" in item:
            first_text, last_text = item.split("-", 1)
            try:
                first, last = int(first_text, 0), int(last_text, 0)
            except ValueError as exc:
                raise argparse.ArgumentTypeError(f"invalid id range {item!r}") from exc
            ids.extend(range(first, last + 1))
            continue
        try:
            ids.append(int(item, 0))
        except ValueError as exc:
            raise argparse.ArgumentTypeError(f"invalid id {item!r}") from exc
    if not ids:
        raise argparse.ArgumentTypeError("expected at least one message id")
    return ids


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Return parsed arguments for the message CLI."""

    parser = argparse.ArgumentParser(prog="nesmsg", description=__doc__)
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a TOML file with codec and control-table settings",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    def add_source(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            "source",
            type=Path,
            nargs="?",
            default=None,
            help="Message blob to read (defaults to the bundled sample)",
        )

    list_parser = commands.add_parser("list", help="List decoded messages")
    add_source(list_parser)

    show_parser = commands.add_parser("show", help="Print one message as markup")
    add_source(show_parser)
    show_parser.add_argument("--id", type=int, required=True, help="Session message id")

    export_parser = commands.add_parser("export", help="Repack messages into a new blob")
    add_source(export_parser)
    export_parser.add_argument(
        "--ids",
        type=_parse_ids,
        default=None,
        help="Comma-separated session ids or ranges to export (default: all)",
    )
    export_parser.add_argument("-o", "--output", type=Path, default=None, help="Output file")

    dump_parser = commands.add_parser("dump-json", help="Write messages to a JSON document")
    add_source(dump_parser)
    dump_parser.add_argument("-o", "--output", type=Path, required=True, help="JSON file")

    apply_parser = commands.add_parser("apply-json", help="Build a blob from a JSON document")
    apply_parser.add_argument("document", type=Path, help="JSON document to encode")
    apply_parser.add_argument("-o", "--output", type=Path, required=True, help="Output file")

    verify_parser = commands.add_parser(
        "verify", help="Check that decoding and re-encoding reproduces the blob"
    )
    add_source(verify_parser)

    return parser.parse_args(argv)


def _load_config(args: argparse.Namespace) -> CodecConfig:
    if args.config is None:
        return DEFAULT_CONFIG
    return load_codec_config(args.config)


def _open_session(args: argparse.Namespace, config: CodecConfig) -> EditorSession:
    session = EditorSession(config=config)
    if args.source is None:
        if not session.load_default_sample():
            raise CodecError("bundled sample could not be loaded")
    else:
        session.load_file(args.source)
    return session


def _preview(text: str) -> str:
    flattened = text.replace("\n", " ")
    if len(flattened) <= _PREVIEW_WIDTH:
        return flattened
    return flattened[: _PREVIEW_WIDTH - 3] + "..."


def _cmd_list(args: argparse.Namespace, config: CodecConfig) -> int:
    session = _open_session(args, config)
    print(f"{len(session.entries)} message(s) in {session.filename}")
    for entry in session.entries:
        flag = " !" if not entry.is_valid else ""
        print(
            f"{entry.id:5d}  0x{entry.source_header_id:04X}  "
            f"{bytes(entry.box_properties).hex()}  "
            f"{_preview(literal_text(entry.tokens))}{flag}"
        )
    return 0


def _cmd_show(args: argparse.Namespace, config: CodecConfig) -> int:
    session = _open_session(args, config)
    entry = session.select(args.id)
    print(f"id: {entry.id}")
    print(f"source id: 0x{entry.source_header_id:04X}")
    print(f"box properties: {bytes(entry.box_properties).hex()}")
    if entry.error is not None:
        print(f"error: {entry.error}")
    print(render_markup(entry.tokens, config.table))
    return 0


def _cmd_export(args: argparse.Namespace, config: CodecConfig) -> int:
    session = _open_session(args, config)
    if args.ids is None:
        result = session.export_all()
    else:
        for entry_id in args.ids:
            session.get(entry_id)
            session.export_selection.add(entry_id)
        result = session.export_selected()
    if result is None:
        print("error: no message could be exported; nothing written", file=sys.stderr)
        return 1
    output = args.output or Path(result.filename)
    output.write_bytes(result.data)
    for failure in result.failures:
        print(
            f"skipped message {failure.entry_id} (0x{failure.source_header_id:04X}): "
            f"{failure.reason}",
            file=sys.stderr,
        )
    print(f"wrote {len(result.exported_ids)} message(s) to {output}")
    return 0 if result.ok else 1


def _cmd_dump_json(args: argparse.Namespace, config: CodecConfig) -> int:
    session = _open_session(args, config)
    save_document(session.entries, args.output, config.table)
    print(f"wrote {len(session.entries)} message(s) to {args.output}")
    return 0


def _cmd_apply_json(args: argparse.Namespace, config: CodecConfig) -> int:
    entries = load_document(args.document, config.table)
    for entry in entries:
        if entry.error is not None:
            print(
                f"warning: message {entry.id} was partially decoded: {entry.error}",
                file=sys.stderr,
            )
    data = encode_many(entries, table=config.table, pool_alignment=config.pool_alignment)
    args.output.write_bytes(data)
    print(f"wrote {len(entries)} message(s) to {args.output}")
    return 0


def _cmd_verify(args: argparse.Namespace, config: CodecConfig) -> int:
    session = _open_session(args, config)
    if args.source is not None:
        original = args.source.read_bytes()
    else:
        original = read_default_sample()
    repacked = encode_many(
        session.entries, table=config.table, pool_alignment=config.pool_alignment
    )
    if repacked == original:
        print(f"PASS: {len(session.entries)} message(s) round-trip byte-identically")
        return 0
    mismatch = next(
        (index for index, (a, b) in enumerate(zip(original, repacked)) if a != b),
        min(len(original), len(repacked)),
    )
    print(
        f"FAIL: repacked blob differs at offset 0x{mismatch:X} "
        f"({len(original)} -> {len(repacked)} bytes)",
        file=sys.stderr,
    )
    return 1


COMMANDS: Dict[str, Callable[[argparse.Namespace, CodecConfig], int]] = {
    "list": _cmd_list,
    "show": _cmd_show,
    "export": _cmd_export,
    "dump-json": _cmd_dump_json,
    "apply-json": _cmd_apply_json,
    "verify": _cmd_verify,
}


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level))

    try:
        config = _load_config(args)
        return COMMANDS[args.command](args, config)
    except (CodecError, ConfigError, MarkupError, SessionError, OSError, TypeError, ValueError) as exc:
        LOGGER.debug("Command %s failed", args.command, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
