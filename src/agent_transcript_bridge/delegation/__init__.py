"""Backend delegation subpackage.

Decides, per call, whether a transcript write or read is served by the
optional enhanced backend or by the legacy log.

Public surface
--------------
- BackendProbe         — tagged capability check for a namespace
- Capability           — ABSENT / NOT_READY / READY
- ProbeResult          — capability plus the ready instance
- WriteRouter          — route one write to exactly one backend
- WriteOutcome         — result of a routed write
- TranscriptWriteError — legacy append failure
- ReadRouter           — enhanced-first read with legacy fallback
- WriteGuard           — routed append installed on a log
- install_write_guard  — install a WriteGuard
- append_injected_assistant_message — gateway-injected assistant turns
"""
from __future__ import annotations

from agent_transcript_bridge.delegation.guard import WriteGuard, install_write_guard
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

__all__ = [
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
    "install_write_guard",
]
