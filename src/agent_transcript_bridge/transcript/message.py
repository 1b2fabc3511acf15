"""Transcript domain models.

All types are Pydantic BaseModel subclasses so that transcript lines can be
validated on read and serialised back to JSON unchanged.

Classes
-------
- TranscriptMessage  — one conversation turn (user, assistant, toolResult, ...)
- TranscriptEntry    — one line of the legacy JSONL transcript log
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, Field

EntryType = Literal["session", "message"]


def now_ms() -> int:
    """Return the current UTC time in epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


class TranscriptMessage(BaseModel):
    """A single immutable transcript turn.

    The model is deliberately permissive: backends may attach provenance
    keys this package does not know about, and those keys survive a
    dump/validate round trip untouched.

    Parameters
    ----------
    role:
        Message role such as ``"user"``, ``"assistant"``, ``"toolResult"``
        or ``"system"``.
    content:
        Either plain text or a list of content blocks.  Blocks are dicts
        with a ``"type"`` key (``"text"``, ``"toolCall"``, ...).
    timestamp:
        Epoch milliseconds at which the turn was produced.
    tool_call_id:
        For ``toolResult`` messages, the id of the tool call answered.
    tool_name:
        For ``toolResult`` messages, the name of the tool that ran.
    is_error:
        For ``toolResult`` messages, whether the tool reported a failure.
    stop_reason:
        Stop reason reported for assistant turns.
    usage:
        Token and cost accounting for assistant turns.
    api, provider, model:
        Where an assistant turn came from.
    """

    role: str
    content: str | list[dict[str, Any]] = Field(default_factory=list)
    timestamp: int | None = None
    tool_call_id: str | None = None
    tool_name: str | None = None
    is_error: bool | None = None
    stop_reason: str | None = None
    usage: dict[str, Any] | None = None
    api: str | None = None
    provider: str | None = None
    model: str | None = None

    model_config = {"frozen": True, "extra": "allow"}

    def tool_calls(self) -> list[dict[str, Any]]:
        """Return the ``toolCall`` content blocks of an assistant message."""
        if self.role != "assistant" or isinstance(self.content, str):
            return []
        return [block for block in self.content if block.get("type") == "toolCall"]

    def text(self) -> str:
        """Return the text of the message, joining text blocks with newlines."""
        if isinstance(self.content, str):
            return self.content
        return "\n".join(
            str(block.get("text", ""))
            for block in self.content
            if block.get("type") == "text"
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a plain dict, omitting unset optional fields."""
        return self.model_dump(exclude_none=True)


class TranscriptEntry(BaseModel):
    """One line of a legacy transcript log.

    The first entry of every log is a ``"session"`` header carrying the
    session id.  Every following ``"message"`` entry points at the entry
    written before it through ``parent_id``.
    """

    type: EntryType
    id: str = Field(default_factory=lambda: uuid4().hex[:8])
    parent_id: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    session_id: str | None = None
    message: TranscriptMessage | None = None

    def to_json(self) -> str:
        """Serialise to a single JSON line (no trailing newline)."""
        return self.model_dump_json(exclude_none=True)


__all__ = ["EntryType", "TranscriptEntry", "TranscriptMessage", "now_ms"]
