"""Write guard for a transcript log.

``install_write_guard`` replaces a log's ``append_message`` with a routed
version, so every message the caller appends goes through the
``WriteRouter``.  The guard also keeps track of tool calls that have not
been answered yet and can record a synthetic error result for each of
them, through the same routing, when the caller flushes.

Classes
-------
- WriteGuard  — routed append plus pending tool-call bookkeeping

Functions
---------
- install_write_guard  — wrap a log and return its guard
"""
from __future__ import annotations

import logging

from agent_transcript_bridge.delegation.probe import BackendProbe
from agent_transcript_bridge.delegation.write_router import WriteOutcome, WriteRouter
from agent_transcript_bridge.legacy.log import TranscriptLog
from agent_transcript_bridge.transcript.message import TranscriptMessage, now_ms

logger = logging.getLogger(__name__)

MISSING_RESULT_TEXT = "No result was recorded for this tool call."


def synthetic_tool_result(tool_call_id: str, tool_name: str) -> TranscriptMessage:
    """Build the placeholder ``toolResult`` for an unanswered tool call."""
    return TranscriptMessage(
        role="toolResult",
        tool_call_id=tool_call_id,
        tool_name=tool_name,
        content=[{"type": "text", "text": MISSING_RESULT_TEXT}],
        is_error=True,
        timestamp=now_ms(),
    )


class WriteGuard:
    """Routed append for one transcript log.

    Created by ``install_write_guard``; not meant to be constructed
    directly.

    Parameters
    ----------
    log:
        The guarded log.
    router:
        Router whose legacy append is the log's original method.
    session_id:
        Session id passed to the enhanced backend, or None to keep every
        write in the legacy log.
    namespace:
        Backend namespace probed on each write.
    flush_on_new_turn:
        When True, a message other than a ``toolResult`` arriving while tool
        calls are pending first records placeholders for them.
    """

    def __init__(
        self,
        log: TranscriptLog,
        router: WriteRouter,
        session_id: str | None,
        namespace: str,
        flush_on_new_turn: bool = True,
    ) -> None:
        self._log = log
        self._router = router
        self._session_id = session_id
        self._namespace = namespace
        self.flush_on_new_turn = flush_on_new_turn
        # Insertion order is call order.
        self._pending: dict[str, str] = {}
        self._installed = False

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def router(self) -> WriteRouter:
        return self._router

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def installed(self) -> bool:
        return self._installed

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def append(self, message: TranscriptMessage) -> str:
        """Route ``message`` and return the id of the stored entry.

        Raises
        ------
        TranscriptWriteError
            If the message (or a placeholder flushed ahead of it) could not
            be written to the legacy log.
        """
        if message.role != "toolResult" and self._pending and self.flush_on_new_turn:
            for outcome in self.flush_pending_tool_results():
                outcome.raise_for_error()

        message_id = self._write(message).raise_for_error()

        # A call stays pending until its result is actually stored.
        if message.role == "toolResult" and message.tool_call_id is not None:
            self._pending.pop(message.tool_call_id, None)
        for call in message.tool_calls():
            call_id = call.get("id")
            if call_id:
                self._pending[str(call_id)] = str(call.get("name", ""))
        return message_id

    def flush_pending_tool_results(self) -> list[WriteOutcome]:
        """Record a synthetic error result for every unanswered tool call.

        Placeholders are written in the order the calls were made and are
        routed exactly like any other message.  A call whose placeholder
        could not be written stays pending, so a later flush retries it.

        Returns
        -------
        list[WriteOutcome]
            One outcome per placeholder.  Empty when nothing was pending.
        """
        outcomes: list[WriteOutcome] = []
        for call_id, tool_name in list(self._pending.items()):
            logger.debug(
                "WriteGuard: recording placeholder result for tool call %r (%s)",
                call_id,
                tool_name,
            )
            outcome = self._write(synthetic_tool_result(call_id, tool_name))
            if outcome.ok:
                self._pending.pop(call_id, None)
            outcomes.append(outcome)
        return outcomes

    def pending_tool_call_ids(self) -> list[str]:
        """Return ids of tool calls still waiting for a result, in call order."""
        return list(self._pending)

    def uninstall(self) -> None:
        """Restore the log's original ``append_message``.

        Pending tool calls are kept; flush them first if they matter.
        """
        if not self._installed:
            return
        vars(self._log).pop("append_message", None)
        self._installed = False
        logger.debug("WriteGuard: uninstalled from %r", self._log)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _install(self) -> None:
        self._log.append_message = self.append  # type: ignore[method-assign]
        self._installed = True

    def _write(self, message: TranscriptMessage) -> WriteOutcome:
        return self._router.route_write(self._namespace, self._session_id, message)

    def __repr__(self) -> str:
        return (
            f"WriteGuard(session_id={self._session_id!r}, namespace={self._namespace!r}, "
            f"pending={len(self._pending)})"
        )


def install_write_guard(
    log: TranscriptLog,
    *,
    probe: BackendProbe,
    session_id: str | None = None,
    namespace: str = "main",
    flush_on_new_turn: bool = True,
) -> WriteGuard:
    """Route every future ``log.append_message`` call through a ``WriteRouter``.

    Parameters
    ----------
    log:
        The legacy log to guard.  Its current ``append_message`` becomes
        the router's legacy append.
    probe:
        Capability probe deciding between the backends on each write.
    session_id:
        Session id for the enhanced backend.  Defaults to ``log.session_id``.
    namespace:
        Backend namespace to probe.
    flush_on_new_turn:
        See ``WriteGuard``.

    Returns
    -------
    WriteGuard

    Raises
    ------
    ValueError
        If ``log`` already has a guard installed.
    """
    if isinstance(getattr(log.append_message, "__self__", None), WriteGuard):
        raise ValueError(f"{log!r} already has a write guard installed.")
    router = WriteRouter(probe, log.append_message)
    guard = WriteGuard(
        log,
        router,
        session_id=session_id if session_id is not None else log.session_id,
        namespace=namespace,
        flush_on_new_turn=flush_on_new_turn,
    )
    guard._install()
    logger.debug("install_write_guard: guarding %r", log)
    return guard


__all__ = [
    "MISSING_RESULT_TEXT",
    "WriteGuard",
    "install_write_guard",
    "synthetic_tool_result",
]
