"""Legacy transcript store subpackage.

The always-available, file-backed, append-only transcript log.

Public surface
--------------
- TranscriptLog          — open / append / read one session's JSONL log
- LegacyTranscriptReader — resolve a session id to its messages on disk
"""
from __future__ import annotations

from agent_transcript_bridge.legacy.log import TranscriptLog
from agent_transcript_bridge.legacy.reader import LegacyTranscriptReader

__all__ = ["LegacyTranscriptReader", "TranscriptLog"]
