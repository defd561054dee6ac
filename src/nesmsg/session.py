"""Editor session state: loaded messages, selection and export checklist."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .codec import (
    DEFAULT_SAMPLE_NAME,
    MessageEntry,
    decode,
    encode_many,
    read_default_sample,
)
from .codec_config import DEFAULT_CONFIG, CodecConfig
from .errors import CodecError, EncodeError
from .markup import parse_markup, render_markup
from .tokens import Token, encode_tokens

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportFailure:
    """An entry left out of an export because it could not be encoded."""

    entry_id: int
    source_header_id: int
    reason: str


@dataclass(frozen=True)
class ExportResult:
    """Outcome of exporting the selected entries."""

    data: bytes
    filename: str
    exported_ids: tuple[int, ...]
    failures: tuple[ExportFailure, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures


class SessionError(LookupError):
    """Raised when a session operation references an unknown entry."""


@dataclass
class EditorSession:
    """Own the loaded entries and the state the editing surface works on.

    Loading replaces every entry, clears the export checklist and selects the
    first entry. A failed load leaves the previous state untouched.
    """

    config: CodecConfig = DEFAULT_CONFIG
    entries: List[MessageEntry] = field(default_factory=list)
    filename: str = ""
    selected_id: Optional[int] = None
    export_selection: set[int] = field(default_factory=set)
    _index: Dict[int, MessageEntry] = field(init=False, default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        self._reindex()

    # Loading ----------------------------------------------------------

    def load_bytes(self, data: bytes, name: str) -> List[MessageEntry]:
        entries = decode(data, table=self.config.table, strict=self.config.strict)
        self.entries = entries
        self.filename = name
        self.export_selection = set()
        self.selected_id = entries[0].id if entries else None
        self._reindex()
        LOGGER.info("Loaded %d message(s) from %s", len(entries), name)
        return entries

    def load_file(self, path: Path) -> List[MessageEntry]:
        data = Path(path).read_bytes()
        return self.load_bytes(data, Path(path).name)

    def load_default_sample(self) -> bool:
        """Load the bundled sample; failures are logged and leave the session as is."""

        try:
            self.load_bytes(read_default_sample(), DEFAULT_SAMPLE_NAME)
        except (OSError, CodecError) as exc:
            LOGGER.error("Failed to load default message data: %s", exc)
            return False
        return True

    # Selection --------------------------------------------------------

    def get(self, entry_id: int) -> MessageEntry:
        try:
            return self._index[entry_id]
        except KeyError as exc:
            raise SessionError(f"message {entry_id} is not loaded") from exc

    def find_by_source_id(self, source_header_id: int) -> List[MessageEntry]:
        return [entry for entry in self.entries if entry.source_header_id == source_header_id]

    @property
    def selected(self) -> Optional[MessageEntry]:
        if self.selected_id is None:
            return None
        return self._index.get(self.selected_id)

    def select(self, entry_id: int) -> MessageEntry:
        entry = self.get(entry_id)
        self.selected_id = entry_id
        return entry

    def toggle_export(self, entry_id: int) -> bool:
        """Flip ``entry_id`` in the export checklist and return its new state."""

        self.get(entry_id)
        if entry_id in self.export_selection:
            self.export_selection.discard(entry_id)
            return False
        self.export_selection.add(entry_id)
        return True

    def clear_export_selection(self) -> None:
        self.export_selection.clear()

    # Editing ----------------------------------------------------------

    def update_entry(self, entry_id: int, tokens: Sequence[Token]) -> MessageEntry:
        """Replace an entry's tokens in place and mark it for export.

        Editing a partially decoded entry clears its error flag.
        """

        entry = self.get(entry_id)
        entry.tokens = list(tokens)
        entry.error = None
        self.export_selection.add(entry_id)
        return entry

    def set_markup(self, entry_id: int, text: str) -> MessageEntry:
        return self.update_entry(entry_id, parse_markup(text, self.config.table))

    def markup(self, entry_id: int) -> str:
        return render_markup(self.get(entry_id).tokens, self.config.table)

    # Export -----------------------------------------------------------

    def export_filename(self) -> str:
        return self.filename or self.config.default_filename

    def export_entries(self, entries: Iterable[MessageEntry]) -> Optional[ExportResult]:
        """Encode ``entries`` in order, leaving out the ones that cannot be exported.

        Partially decoded entries that were never edited are reported as
        failures along with entries that fail to encode. Returns ``None`` when
        no entry is left to write.
        """

        exportable: List[MessageEntry] = []
        failures: List[ExportFailure] = []
        for entry in entries:
            if entry.error is not None:
                reason = f"partially decoded: {entry.error}"
                LOGGER.warning("Skipping message %d in export: %s", entry.id, reason)
                failures.append(ExportFailure(entry.id, entry.source_header_id, reason))
                continue
            try:
                encode_tokens(entry.tokens, self.config.table)
            except EncodeError as exc:
                LOGGER.warning("Skipping message %d in export: %s", entry.id, exc)
                failures.append(ExportFailure(entry.id, entry.source_header_id, str(exc)))
                continue
            exportable.append(entry)

        if not exportable:
            LOGGER.error("Nothing to export: all %d message(s) failed", len(failures))
            return None

        data = encode_many(
            exportable,
            table=self.config.table,
            pool_alignment=self.config.pool_alignment,
        )
        return ExportResult(
            data=data,
            filename=self.export_filename(),
            exported_ids=tuple(entry.id for entry in exportable),
            failures=tuple(failures),
        )

    def export_selected(self) -> Optional[ExportResult]:
        """Export the checklist in list order; ``None`` when nothing is selected."""

        chosen = [entry for entry in self.entries if entry.id in self.export_selection]
        if not chosen:
            return None
        return self.export_entries(chosen)

    def export_all(self) -> Optional[ExportResult]:
        return self.export_entries(self.entries)

    # Internal helpers -------------------------------------------------

    def _reindex(self) -> None:
        self._index = {entry.id: entry for entry in self.entries}


__all__ = [
    "EditorSession",
    "ExportFailure",
    "ExportResult",
    "SessionError",
]
