"""Write delegation router.

Sends each outbound transcript message to exactly one backend: the
enhanced backend's ``save_turn`` when a session id is known and the probe
reports a ready instance, the legacy log's append otherwise.

Classes
-------
- Backend              — which backend stored a message
- WriteOutcome         — result of one routed write
- TranscriptWriteError — raised for a failed legacy append
- WriteRouter          — route a single write
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable
from uuid import uuid4

from agent_transcript_bridge.delegation.probe import BackendProbe
from agent_transcript_bridge.transcript.message import TranscriptMessage, now_ms

logger = logging.getLogger(__name__)

LegacyAppend = Callable[[TranscriptMessage], str]


class Backend(str, Enum):
    ENHANCED = "enhanced"
    LEGACY = "legacy"


class TranscriptWriteError(RuntimeError):
    """Raised when a message could not be written to the legacy log."""

    def __init__(self, message: str, session_id: str | None = None) -> None:
        self.session_id = session_id
        super().__init__(message)


@dataclass
class WriteOutcome:
    """Result of one routed write.

    Parameters
    ----------
    ok:
        True when the message was stored.
    message_id:
        Identifier of the stored entry.  Enhanced ids are synthesised and
        do not follow the legacy id scheme.
    backend:
        The backend that stored (or failed to store) the message.
    message:
        The message that was routed.
    error:
        Failure description when ``ok`` is False.
    cause:
        The exception behind ``error``.
    """

    ok: bool
    backend: Backend
    message: TranscriptMessage
    message_id: str | None = None
    error: str | None = None
    cause: BaseException | None = None

    def raise_for_error(self) -> str:
        """Return ``message_id``, raising ``TranscriptWriteError`` on failure."""
        if not self.ok:
            raise TranscriptWriteError(self.error or "transcript write failed") from self.cause
        if self.message_id is None:
            raise TranscriptWriteError("legacy append returned no message id")
        return self.message_id


class WriteRouter:
    """Route transcript writes to the enhanced backend or the legacy log.

    Parameters
    ----------
    probe:
        Capability probe consulted on every write.
    legacy_append:
        The legacy log's own append operation.  Receives the message and
        returns the id of the appended entry.
    """

    def __init__(self, probe: BackendProbe, legacy_append: LegacyAppend) -> None:
        self._probe = probe
        self._legacy_append = legacy_append

    @property
    def probe(self) -> BackendProbe:
        return self._probe

    def route_write(
        self,
        namespace: str,
        session_id: str | None,
        message: TranscriptMessage,
    ) -> WriteOutcome:
        """Store ``message`` in exactly one backend.

        Writes without a ``session_id`` always go to the legacy log.  Other
        writes go to the enhanced backend when the probe returns a ready
        instance for ``namespace``.  Nothing is mirrored to the legacy log
        in that case.

        Parameters
        ----------
        namespace:
            Backend namespace to probe (for example ``"main"``).
        session_id:
            Session the message belongs to, or None.
        message:
            The message to store.  Passed through unchanged.

        Returns
        -------
        WriteOutcome
            ``ok=False`` only when the legacy append raised.
        """
        if session_id:
            instance = self._probe.probe(namespace)
            if instance is not None:
                try:
                    instance.save_turn(session_id, message)
                except Exception:
                    logger.warning(
                        "WriteRouter: save_turn failed for session %r; writing to legacy log",
                        session_id,
                        exc_info=True,
                    )
                else:
                    message_id = f"enhanced-{session_id}-{now_ms()}-{uuid4().hex[:6]}"
                    logger.debug(
                        "WriteRouter: %s message for %r stored in enhanced backend",
                        message.role,
                        session_id,
                    )
                    return WriteOutcome(
                        ok=True,
                        backend=Backend.ENHANCED,
                        message=message,
                        message_id=message_id,
                    )
        return self._append_legacy(session_id, message)

    def _append_legacy(self, session_id: str | None, message: TranscriptMessage) -> WriteOutcome:
        try:
            message_id = self._legacy_append(message)
        except Exception as exc:
            logger.debug("WriteRouter: legacy append failed for %r: %s", session_id, exc)
            return WriteOutcome(
                ok=False,
                backend=Backend.LEGACY,
                message=message,
                error=str(exc) or type(exc).__name__,
                cause=exc,
            )
        logger.debug("WriteRouter: %s message for %r appended to legacy log", message.role, session_id)
        return WriteOutcome(ok=True, backend=Backend.LEGACY, message=message, message_id=message_id)


__all__ = [
    "Backend",
    "LegacyAppend",
    "TranscriptWriteError",
    "WriteOutcome",
    "WriteRouter",
]
