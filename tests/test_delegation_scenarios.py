"""End-to-end delegation scenarios through the public API.

The backend module is installed (or blocked) by patching ``sys.modules``,
so the real import path of the default bridge is exercised.  Legacy
transcripts land in the per-test directory set by the autouse fixture in
conftest.
"""
from __future__ import annotations

import sys
from typing import Any

import pytest

import agent_transcript_bridge as atb
from agent_transcript_bridge.transcript.message import TranscriptMessage
from conftest import FakeFactory, FakeInstance, make_module


def _assistant_with_tool_call(call_id: str = "call_1") -> TranscriptMessage:
    return TranscriptMessage(
        role="assistant",
        content=[
            {"type": "text", "text": "Let me check."},
            {"type": "toolCall", "id": call_id, "name": "read", "arguments": {"path": "a.txt"}},
        ],
        stop_reason="toolUse",
    )


def _tool_result(call_id: str = "call_1") -> TranscriptMessage:
    return TranscriptMessage(
        role="toolResult",
        tool_call_id=call_id,
        tool_name="read",
        content=[{"type": "text", "text": "file contents"}],
        is_error=False,
    )


def _assistant_text(text: str = "Hi there!") -> TranscriptMessage:
    return TranscriptMessage(
        role="assistant", content=[{"type": "text", "text": text}], stop_reason="stop"
    )


def _legacy_roles(session_id: str) -> list[str]:
    log = atb.TranscriptLog.open(atb.get_default_bridge().transcript_path(session_id))
    return [entry.message.role for entry in log.get_entries() if entry.type == "message" and entry.message]


@pytest.fixture()
def backend_absent(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(sys.modules, "aeon_memory", None)


@pytest.fixture()
def install_backend(monkeypatch: pytest.MonkeyPatch) -> Any:
    def _install(instance: FakeInstance) -> FakeFactory:
        factory = FakeFactory(instance)
        monkeypatch.setitem(sys.modules, "aeon_memory", make_module(factory))
        return factory

    return _install


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


class TestScenarios:
    def test_absent_module_keeps_tool_exchange_in_legacy_order(self, backend_absent: None) -> None:
        log = atb.get_default_bridge().open_transcript("s1")
        atb.install_write_guard(log)
        log.append_message(_assistant_with_tool_call())
        log.append_message(_tool_result())
        assert _legacy_roles("s1") == ["assistant", "toolResult"]

    def test_available_backend_takes_the_write(self, install_backend: Any) -> None:
        instance = FakeInstance()
        install_backend(instance)
        log = atb.get_default_bridge().open_transcript("s1")
        atb.install_write_guard(log)
        message = _assistant_text()
        log.append_message(message)
        assert instance.saved == [("s1", message)]
        assert _legacy_roles("s1") == []

    def test_unavailable_backend_leaves_write_in_legacy(self, install_backend: Any) -> None:
        instance = FakeInstance(available=False)
        install_backend(instance)
        log = atb.get_default_bridge().open_transcript("s1")
        atb.install_write_guard(log)
        log.append_message(_assistant_text())
        assert instance.saved == []
        assert _legacy_roles("s1") == ["assistant"]

    def test_read_with_no_data_anywhere_is_empty(self, install_backend: Any) -> None:
        install_backend(FakeInstance())
        assert atb.read_session_messages("nonexistent-session", "main") == []

    def test_flush_records_placeholder_for_unanswered_call(self, backend_absent: None) -> None:
        log = atb.get_default_bridge().open_transcript("s1")
        guard = atb.install_write_guard(log)
        log.append_message(_assistant_with_tool_call())
        guard.flush_pending_tool_results()
        assert _legacy_roles("s1") == ["assistant", "toolResult"]
        placeholder = atb.TranscriptLog.open(atb.get_default_bridge().transcript_path("s1")).messages()[-1]
        assert placeholder.tool_call_id == "call_1"
        assert placeholder.is_error is True


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


class TestRoutingProperties:
    @pytest.mark.parametrize("available", [True, False, None])
    def test_writes_without_session_id_land_in_legacy_in_order(
        self, install_backend: Any, backend_absent: None, available: bool | None
    ) -> None:
        instance = FakeInstance(available=bool(available))
        if available is not None:
            install_backend(instance)
        bridge = atb.get_default_bridge()
        log = bridge.open_transcript("s1")
        # An empty session id disables enhanced routing for this guard.
        bridge.install_write_guard(log, session_id="")
        texts = [f"turn {i}" for i in range(5)]
        for text in texts:
            log.append_message(_assistant_text(text))
        assert [m.text() for m in atb.TranscriptLog.open(bridge.transcript_path("s1")).messages()] == texts
        assert instance.saved == []

    def test_enhanced_read_wins_over_legacy(self, install_backend: Any) -> None:
        enhanced = [{"role": "user", "content": "Hello"}, {"role": "assistant", "content": "Hi there!"}]
        install_backend(FakeInstance(transcripts={"s1": enhanced}))
        atb.get_default_bridge().open_transcript("s1").append_message(_assistant_text("legacy"))
        assert atb.read_session_messages("s1") == enhanced

    def test_empty_enhanced_read_falls_back_to_legacy(self, install_backend: Any) -> None:
        instance = FakeInstance(transcripts={"s1": []})
        install_backend(instance)
        atb.get_default_bridge().open_transcript("s1").append_message(_assistant_text("legacy"))
        messages = atb.read_session_messages("s1")
        assert [m.text() for m in messages] == ["legacy"]
        assert instance.transcript_requests == ["s1"]

    def test_read_is_idempotent(self, backend_absent: None) -> None:
        atb.get_default_bridge().open_transcript("s1").append_message(_assistant_text("once"))
        assert atb.read_session_messages("s1") == atb.read_session_messages("s1")


# ---------------------------------------------------------------------------
# Loading race
# ---------------------------------------------------------------------------


class TestPendingLoad:
    @pytest.mark.asyncio
    async def test_write_during_pending_load_is_legacy(self, install_backend: Any) -> None:
        instance = FakeInstance()
        install_backend(instance)
        bridge = atb.get_default_bridge()
        log = bridge.open_transcript("s1")
        atb.install_write_guard(log)
        assert bridge.cache.state is atb.LoadState.ATTEMPTED

        log.append_message(_assistant_text("during load"))
        await bridge.wait_for_backend()
        log.append_message(_assistant_text("after load"))

        assert _legacy_roles("s1") == ["assistant"]
        assert [m.text() for _, m in instance.saved] == ["after load"]

    @pytest.mark.asyncio
    async def test_failed_load_never_surfaces(self, monkeypatch: pytest.MonkeyPatch) -> None:
        class Exploding:
            def __getattr__(self, name: str) -> Any:
                raise RuntimeError("backend init failed")

        monkeypatch.setitem(sys.modules, "aeon_memory", Exploding())
        bridge = atb.get_default_bridge()
        log = bridge.open_transcript("s1")
        atb.install_write_guard(log)
        assert await bridge.wait_for_backend() is None
        log.append_message(_assistant_text("still persisted"))
        assert _legacy_roles("s1") == ["assistant"]
