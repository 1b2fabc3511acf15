"""agent-transcript-bridge — Transcript persistence with an optional enhanced backend.

Writes and reads of conversation transcripts go to an optional,
write-ahead-logged memory backend when it is installed and ready, and to
the always-available JSONL transcript log otherwise.  Callers never see
which one served them.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import agent_transcript_bridge
>>> agent_transcript_bridge.__version__
'0.1.0'
"""
from __future__ import annotations

# Facade
from agent_transcript_bridge.bridge import (
    BackendStatus,
    TranscriptBridge,
    get_default_bridge,
    install_write_guard,
    read_session_messages,
    reset_default_bridge,
)
from agent_transcript_bridge.config import BridgeConfig

# Delegation
from agent_transcript_bridge.delegation.guard import WriteGuard
from agent_transcript_bridge.delegation.inject import (
    AbortMeta,
    InjectedAppendResult,
    append_injected_assistant_message,
)
from agent_transcript_bridge.delegation.probe import BackendProbe, Capability, ProbeResult
from agent_transcript_bridge.delegation.read_router import ReadRouter
from agent_transcript_bridge.delegation.write_router import (
    Backend,
    TranscriptWriteError,
    WriteOutcome,
    WriteRouter,
)

# Enhanced backend
from agent_transcript_bridge.enhanced.loader import LoadState, PluginLoadCache
from agent_transcript_bridge.enhanced.protocol import BackendFactory, BackendInstance

# Legacy store
from agent_transcript_bridge.legacy.log import TranscriptLog
from agent_transcript_bridge.legacy.reader import LegacyTranscriptReader

# Transcript model
from agent_transcript_bridge.transcript.message import TranscriptEntry, TranscriptMessage

__version__: str = "0.1.0"

__all__ = [
    "__version__",
    # Facade
    "BackendStatus",
    "BridgeConfig",
    "TranscriptBridge",
    "get_default_bridge",
    "install_write_guard",
    "read_session_messages",
    "reset_default_bridge",
    # Delegation
    "AbortMeta",
    "Backend",
    "BackendProbe",
    "Capability",
    "InjectedAppendResult",
    "ProbeResult",
    "ReadRouter",
    "TranscriptWriteError",
    "WriteGuard",
    "WriteOutcome",
    "WriteRouter",
    "append_injected_assistant_message",
    # Enhanced backend
    "BackendFactory",
    "BackendInstance",
    "LoadState",
    "PluginLoadCache",
    # Legacy store
    "LegacyTranscriptReader",
    "TranscriptLog",
    # Transcript model
    "TranscriptEntry",
    "TranscriptMessage",
]
