"""Unit tests for agent_transcript_bridge.delegation.inject."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from agent_transcript_bridge.delegation.inject import (
    INJECTED_API,
    INJECTED_MODEL,
    INJECTED_PROVIDER,
    AbortMeta,
    append_injected_assistant_message,
    build_injected_message,
)
from agent_transcript_bridge.delegation.probe import BackendProbe
from agent_transcript_bridge.enhanced.loader import PluginLoadCache
from agent_transcript_bridge.legacy.log import TranscriptLog
from agent_transcript_bridge.transcript.message import TranscriptMessage
from conftest import FakeInstance


# ---------------------------------------------------------------------------
# build_injected_message
# ---------------------------------------------------------------------------


class TestBuildInjectedMessage:
    def test_provenance_fields(self) -> None:
        message = build_injected_message("Gateway restarted", now=1_700_000_000_000)
        assert message.role == "assistant"
        assert message.api == INJECTED_API
        assert message.provider == INJECTED_PROVIDER
        assert message.model == INJECTED_MODEL
        assert message.stop_reason == "stop"
        assert message.timestamp == 1_700_000_000_000

    def test_zero_usage(self) -> None:
        usage = build_injected_message("x").usage
        assert usage is not None
        assert usage["total_tokens"] == 0
        assert usage["cost"]["total"] == 0

    def test_text_without_label(self) -> None:
        assert build_injected_message("plain").text() == "plain"

    def test_label_prefix(self) -> None:
        message = build_injected_message("Run stopped", label="stop")
        assert message.text() == "[stop]\n\nRun stopped"

    def test_timestamp_defaults_to_now(self) -> None:
        assert build_injected_message("x").timestamp is not None

    def test_idempotency_key_and_abort_meta(self) -> None:
        message = build_injected_message(
            "aborted",
            idempotency_key="key-1",
            abort_meta=AbortMeta(origin="stop-command", run_id="run-9"),
        )
        data = message.to_dict()
        assert data["idempotency_key"] == "key-1"
        assert data["abort"] == {"aborted": True, "origin": "stop-command", "run_id": "run-9"}

    def test_optional_extras_omitted(self) -> None:
        data = build_injected_message("x").to_dict()
        assert "idempotency_key" not in data
        assert "abort" not in data


# ---------------------------------------------------------------------------
# append_injected_assistant_message
# ---------------------------------------------------------------------------


class TestAppendInjectedAssistantMessage:
    def test_legacy_append_joins_parent_chain(
        self, tmp_path: Path, absent_cache: PluginLoadCache
    ) -> None:
        path = tmp_path / "s1.jsonl"
        log = TranscriptLog.open(path)
        leaf = log.append_message(TranscriptMessage(role="user", content="hi"))

        result = append_injected_assistant_message(
            path, "notice", session_id="s1", probe=BackendProbe(absent_cache)
        )
        assert result.ok is True
        reopened = TranscriptLog.open(path)
        last = reopened.get_entries()[-1]
        assert last.id == result.message_id
        assert last.parent_id == leaf
        assert last.message is not None and last.message.model == INJECTED_MODEL

    def test_default_probe_never_loads_a_backend(self, tmp_path: Path) -> None:
        path = tmp_path / "s1.jsonl"
        result = append_injected_assistant_message(path, "notice", session_id="s1")
        assert result.ok is True
        lines = path.read_text(encoding="utf-8").splitlines()
        assert json.loads(lines[-1])["message"]["provider"] == INJECTED_PROVIDER

    def test_ready_backend_receives_message(
        self, tmp_path: Path, loaded_cache: PluginLoadCache, fake_instance: FakeInstance
    ) -> None:
        path = tmp_path / "s1.jsonl"
        result = append_injected_assistant_message(
            path, "notice", label="gateway", session_id="s1", probe=BackendProbe(loaded_cache)
        )
        assert result.ok is True
        assert result.message_id is not None and result.message_id.startswith("enhanced-s1-")
        assert len(fake_instance.saved) == 1
        assert fake_instance.saved[0][1] is result.message
        assert not path.exists()

    def test_without_session_id_stays_legacy(
        self, tmp_path: Path, loaded_cache: PluginLoadCache, fake_instance: FakeInstance
    ) -> None:
        path = tmp_path / "s1.jsonl"
        result = append_injected_assistant_message(
            path, "notice", probe=BackendProbe(loaded_cache)
        )
        assert result.ok is True
        assert fake_instance.saved == []
        assert path.exists()

    def test_write_failure_is_reported(
        self, tmp_path: Path, absent_cache: PluginLoadCache
    ) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        result = append_injected_assistant_message(
            blocker / "s1.jsonl", "notice", probe=BackendProbe(absent_cache)
        )
        assert result.ok is False
        assert result.error
        assert result.message_id is None

    def test_unreadable_transcript_is_reported(
        self, tmp_path: Path, absent_cache: PluginLoadCache
    ) -> None:
        directory = tmp_path / "s1.jsonl"
        directory.mkdir()
        result = append_injected_assistant_message(
            directory, "notice", probe=BackendProbe(absent_cache)
        )
        assert result.ok is False
        assert result.error


class TestAbortMeta:
    @pytest.mark.parametrize("origin", ["rpc", "stop-command"])
    def test_to_dict(self, origin: str) -> None:
        assert AbortMeta(origin=origin, run_id="r1").to_dict() == {  # type: ignore[arg-type]
            "aborted": True,
            "origin": origin,
            "run_id": "r1",
        }
