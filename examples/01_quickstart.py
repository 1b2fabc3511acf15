#!/usr/bin/env python3
"""Example: Quickstart — agent-transcript-bridge

Minimal working example: guard a session's transcript log, append a tool
exchange, flush an unanswered tool call, and read the transcript back.
Without the optional ``aeon_memory`` package everything lands in the
JSONL log under a temporary directory.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install agent-transcript-bridge
"""
from __future__ import annotations

import tempfile

import agent_transcript_bridge
from agent_transcript_bridge import BridgeConfig, TranscriptBridge, TranscriptMessage


def main() -> None:
    print(f"agent-transcript-bridge version: {agent_transcript_bridge.__version__}")

    with tempfile.TemporaryDirectory() as transcript_dir:
        bridge = TranscriptBridge(BridgeConfig(transcript_dir=transcript_dir))
        print(f"Backend: {bridge.status().to_dict()}")

        # Step 1: Guard the session's log so appends are routed
        log = bridge.open_transcript("session-001")
        guard = bridge.install_write_guard(log)

        # Step 2: Record a user turn and an assistant tool call
        log.append_message(TranscriptMessage(role="user", content="What is in notes.txt?"))
        log.append_message(
            TranscriptMessage(
                role="assistant",
                content=[{"type": "toolCall", "id": "call_1", "name": "read", "arguments": {}}],
                stop_reason="toolUse",
            )
        )
        print(f"Pending tool calls: {guard.pending_tool_call_ids()}")

        # Step 3: The run ends before the tool answered
        outcomes = guard.flush_pending_tool_results()
        print(f"Placeholders written: {len(outcomes)} ({outcomes[0].backend.value})")

        # Step 4: A gateway notice, then read everything back
        bridge.inject_assistant_message("session-001", "Run stopped by operator", label="gateway")
        for message in bridge.read_session_messages("session-001"):
            if isinstance(message, TranscriptMessage):
                print(f"  {message.role:<10} {message.text()!r}")
            else:
                print(f"  {message}")


if __name__ == "__main__":
    main()
