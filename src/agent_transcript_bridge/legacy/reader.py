"""Legacy transcript reader.

Resolves a session id to its ``.jsonl`` file under a transcript directory
and returns the messages it holds.

Classes
-------
- LegacyTranscriptReader  — read a session's messages from the legacy store
"""
from __future__ import annotations

import os
from pathlib import Path

from agent_transcript_bridge.legacy.log import TranscriptLog
from agent_transcript_bridge.transcript.message import TranscriptMessage

_DEFAULT_TRANSCRIPT_DIR: Path = Path.home() / ".agent-transcripts"
_FILE_EXTENSION = ".jsonl"


class LegacyTranscriptReader:
    """Reads session transcripts stored as ``<transcript_dir>/<session_id>.jsonl``.

    Parameters
    ----------
    transcript_dir:
        Directory holding transcript files.  Defaults to
        ``~/.agent-transcripts/``.  Never created by the reader.
    """

    def __init__(self, transcript_dir: str | Path | None = None) -> None:
        self._transcript_dir: Path = (
            Path(transcript_dir) if transcript_dir is not None else _DEFAULT_TRANSCRIPT_DIR
        )

    @property
    def transcript_dir(self) -> Path:
        return self._transcript_dir

    def path_for(self, session_id: str) -> Path:
        """Return the transcript file path for ``session_id``."""
        # Guard against path traversal attacks.
        safe_name = os.path.basename(session_id)
        return self._transcript_dir / f"{safe_name}{_FILE_EXTENSION}"

    def open(self, session_id: str) -> TranscriptLog:
        """Open (without creating) the log for ``session_id``."""
        return TranscriptLog.open(self.path_for(session_id))

    def read(self, session_id: str) -> list[TranscriptMessage]:
        """Return the messages recorded for ``session_id``.

        Returns
        -------
        list[TranscriptMessage]
            Messages in append order.  Empty when the session has no file.
        """
        path = self.path_for(session_id)
        if not path.exists():
            return []
        return TranscriptLog.open(path).messages()

    def __call__(self, session_id: str) -> list[TranscriptMessage]:
        return self.read(session_id)

    def __repr__(self) -> str:
        return f"LegacyTranscriptReader(transcript_dir={str(self._transcript_dir)!r})"


__all__ = ["LegacyTranscriptReader"]
