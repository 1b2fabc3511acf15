"""Transcript data model subpackage.

Public surface
--------------
- TranscriptMessage — one immutable conversation turn
- TranscriptEntry   — one line of the legacy JSONL log
"""
from __future__ import annotations

from agent_transcript_bridge.transcript.message import TranscriptEntry, TranscriptMessage

__all__ = ["TranscriptEntry", "TranscriptMessage"]
