"""Append-only JSONL transcript log.

The legacy store: every session is one ``<session_id>.jsonl`` file whose
first line is a ``"session"`` header and whose following lines are
``"message"`` entries chained through ``parent_id``.  Logs can also live
purely in memory, which is what the tests use.

Classes
-------
- TranscriptLog  — open, append to, and read a transcript log
"""
from __future__ import annotations

import logging
from pathlib import Path
from uuid import uuid4

from pydantic import ValidationError

from agent_transcript_bridge.transcript.message import TranscriptEntry, TranscriptMessage

logger = logging.getLogger(__name__)


class TranscriptLog:
    """An append-only transcript of one session.

    Entries are kept in append order.  When the log is file-backed each
    append writes exactly one line; the file (and its parent directory) is
    created on the first write.

    Use the ``open`` and ``in_memory`` constructors rather than calling
    ``__init__`` directly.

    Parameters
    ----------
    session_id:
        Identifier of the session this log records.
    path:
        JSONL file backing the log, or None for an in-memory log.
    entries:
        Entries already present (header first).
    header:
        Whether to start an empty log with a ``"session"`` header.  False
        when the backing file already has content, even if none of it
        could be read.
    """

    def __init__(
        self,
        session_id: str,
        path: Path | None = None,
        entries: list[TranscriptEntry] | None = None,
        header: bool = True,
    ) -> None:
        self._session_id = session_id
        self._path = path
        self._entries: list[TranscriptEntry] = list(entries or [])
        if not self._entries and header:
            self._entries.append(TranscriptEntry(type="session", session_id=session_id))
        self._flushed = len(entries or [])

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def open(cls, path: str | Path) -> TranscriptLog:
        """Open the log stored at ``path``.

        A missing file is not an error: the returned log is empty and the
        file is created on the first append.  The session id is taken from
        the header line, falling back to the file stem.  Lines that are not
        valid entries are skipped; a file with content never gets a second
        header, even when none of its lines could be read.

        Parameters
        ----------
        path:
            Location of the ``.jsonl`` file.

        Returns
        -------
        TranscriptLog
        """
        file_path = Path(path)
        entries: list[TranscriptEntry] = []
        has_content = False
        if file_path.exists():
            with file_path.open(encoding="utf-8") as handle:
                for line_number, line in enumerate(handle, start=1):
                    if not line.strip():
                        continue
                    has_content = True
                    try:
                        entries.append(TranscriptEntry.model_validate_json(line))
                    except ValidationError:
                        logger.warning(
                            "TranscriptLog: skipping malformed line %d in %s",
                            line_number,
                            file_path,
                        )
        session_id = file_path.stem
        if entries and entries[0].type == "session" and entries[0].session_id:
            session_id = entries[0].session_id
        return cls(
            session_id=session_id, path=file_path, entries=entries, header=not has_content
        )

    @classmethod
    def in_memory(cls, session_id: str | None = None) -> TranscriptLog:
        """Return a log that is never written to disk."""
        return cls(session_id=session_id or str(uuid4()))

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def session_id(self) -> str:
        """The session this log records."""
        return self._session_id

    @property
    def path(self) -> Path | None:
        """The backing file, or None for in-memory logs."""
        return self._path

    @property
    def leaf_id(self) -> str | None:
        """Id of the most recently appended entry, or None for an empty log."""
        return self._entries[-1].id if self._entries else None

    # ------------------------------------------------------------------
    # Append / read
    # ------------------------------------------------------------------

    def append_message(self, message: TranscriptMessage) -> str:
        """Append ``message`` after the current leaf and return its entry id.

        Raises
        ------
        OSError
            If the backing file cannot be written.  The in-memory entry
            list is left unchanged in that case.
        """
        entry = TranscriptEntry(type="message", parent_id=self.leaf_id, message=message)
        self._write([*self._entries[self._flushed :], entry])
        self._entries.append(entry)
        self._flushed = len(self._entries)
        return entry.id

    def get_entries(self) -> list[TranscriptEntry]:
        """Return a copy of all entries in append order (header first)."""
        return list(self._entries)

    def messages(self) -> list[TranscriptMessage]:
        """Return the messages of all ``"message"`` entries in order."""
        return [
            entry.message
            for entry in self._entries
            if entry.type == "message" and entry.message is not None
        ]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _write(self, pending: list[TranscriptEntry]) -> None:
        """Append ``pending`` entries to the backing file, if any."""
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as handle:
            for entry in pending:
                handle.write(entry.to_json() + "\n")

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        where = str(self._path) if self._path is not None else "memory"
        return (
            f"TranscriptLog(session_id={self._session_id!r}, "
            f"entries={len(self._entries)}, path={where!r})"
        )


__all__ = ["TranscriptLog"]
