"""Gateway-injected assistant messages.

Lets a gateway drop an assistant message into a session transcript (a
notice, an abort marker) that was not produced by a model.  The message
is shaped like a normal assistant turn so it joins the transcript's
parent chain, but its provenance fields mark it as injected.

Classes
-------
- AbortMeta             — describes the run an injected message aborted
- InjectedAppendResult  — outcome of an injection

Functions
---------
- build_injected_message            — construct the injected message
- append_injected_assistant_message — build, then route it
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from agent_transcript_bridge.delegation.probe import BackendProbe
from agent_transcript_bridge.delegation.write_router import WriteRouter
from agent_transcript_bridge.enhanced.loader import PluginLoadCache
from agent_transcript_bridge.legacy.log import TranscriptLog
from agent_transcript_bridge.transcript.message import TranscriptMessage, now_ms

logger = logging.getLogger(__name__)

INJECTED_API = "openai-responses"
INJECTED_PROVIDER = "gateway"
INJECTED_MODEL = "gateway-injected"


@dataclass(frozen=True)
class AbortMeta:
    """The run an injected message reports as aborted."""

    origin: Literal["rpc", "stop-command"]
    run_id: str

    def to_dict(self) -> dict[str, Any]:
        return {"aborted": True, "origin": self.origin, "run_id": self.run_id}


@dataclass
class InjectedAppendResult:
    ok: bool
    message_id: str | None = None
    message: TranscriptMessage | None = None
    error: str | None = None


def _zero_usage() -> dict[str, Any]:
    return {
        "input": 0,
        "output": 0,
        "cache_read": 0,
        "cache_write": 0,
        "total_tokens": 0,
        "cost": {
            "input": 0,
            "output": 0,
            "cache_read": 0,
            "cache_write": 0,
            "total": 0,
        },
    }


def build_injected_message(
    message: str,
    *,
    label: str | None = None,
    idempotency_key: str | None = None,
    abort_meta: AbortMeta | None = None,
    now: int | None = None,
) -> TranscriptMessage:
    """Return an assistant message carrying ``message`` and injected provenance.

    A ``label`` is rendered as a ``[label]`` line above the text.
    """
    prefix = f"[{label}]\n\n" if label else ""
    extra: dict[str, Any] = {}
    if idempotency_key:
        extra["idempotency_key"] = idempotency_key
    if abort_meta is not None:
        extra["abort"] = abort_meta.to_dict()
    return TranscriptMessage(
        role="assistant",
        content=[{"type": "text", "text": f"{prefix}{message}"}],
        timestamp=now if now is not None else now_ms(),
        # Stored as a normal "stop" turn even though no model produced it.
        stop_reason="stop",
        usage=_zero_usage(),
        api=INJECTED_API,
        provider=INJECTED_PROVIDER,
        model=INJECTED_MODEL,
        **extra,
    )


def append_injected_assistant_message(
    transcript_path: str | Path,
    message: str,
    *,
    label: str | None = None,
    idempotency_key: str | None = None,
    abort_meta: AbortMeta | None = None,
    now: int | None = None,
    session_id: str | None = None,
    namespace: str = "main",
    probe: BackendProbe | None = None,
) -> InjectedAppendResult:
    """Append an injected assistant message to a session transcript.

    The legacy log at ``transcript_path`` is opened so a legacy write is
    attached to the current leaf.  With a ``session_id`` and a ready
    enhanced backend the message goes to the backend instead.

    Parameters
    ----------
    transcript_path:
        The session's legacy ``.jsonl`` file.
    message:
        Text of the injected message.
    label, idempotency_key, abort_meta, now:
        See ``build_injected_message``.
    session_id:
        Session id for the enhanced backend; None keeps the write legacy.
    namespace:
        Backend namespace to probe.
    probe:
        Capability probe to consult.  Without one no backend is ever
        loaded, so the write is legacy.

    Returns
    -------
    InjectedAppendResult
        ``ok=False`` with ``error`` set if anything failed.  Never raises.
    """
    body = build_injected_message(
        message,
        label=label,
        idempotency_key=idempotency_key,
        abort_meta=abort_meta,
        now=now,
    )
    try:
        log = TranscriptLog.open(transcript_path)
        router = WriteRouter(probe or BackendProbe(PluginLoadCache()), log.append_message)
        outcome = router.route_write(namespace, session_id, body)
    except Exception as exc:
        logger.warning("append_injected_assistant_message: %s failed: %s", transcript_path, exc)
        return InjectedAppendResult(ok=False, error=str(exc) or type(exc).__name__)
    if not outcome.ok:
        return InjectedAppendResult(ok=False, message=body, error=outcome.error)
    return InjectedAppendResult(ok=True, message_id=outcome.message_id, message=body)


__all__ = [
    "AbortMeta",
    "InjectedAppendResult",
    "append_injected_assistant_message",
    "build_injected_message",
]
