"""Read delegation router.

Asks the enhanced backend for a session's transcript first and falls back
to the legacy log whenever that yields nothing.

Classes
-------
- ReadRouter  — route a transcript read
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Sequence

from agent_transcript_bridge.delegation.probe import BackendProbe

logger = logging.getLogger(__name__)

LegacyRead = Callable[[str], Sequence[Any]]


class ReadRouter:
    """Route transcript reads between the enhanced backend and the legacy log.

    Parameters
    ----------
    probe:
        Capability probe consulted on every read.
    legacy_reader:
        Returns the legacy messages of a session (empty for unknown ones).
    """

    def __init__(self, probe: BackendProbe, legacy_reader: LegacyRead) -> None:
        self._probe = probe
        self._legacy_reader = legacy_reader

    def route_read(self, namespace: str, session_id: str) -> list[Any]:
        """Return the transcript of ``session_id``.

        A non-empty enhanced transcript is returned as is.  An empty one is
        indistinguishable from "no data" and, like a missing, unready or
        failing backend, falls through to a real legacy read.
        """
        instance = self._probe.probe(namespace)
        if instance is not None:
            try:
                transcript = list(instance.get_transcript(session_id) or [])
            except Exception:
                logger.warning(
                    "ReadRouter: get_transcript failed for %r; reading legacy log",
                    session_id,
                    exc_info=True,
                )
                transcript = []
            if transcript:
                logger.debug(
                    "ReadRouter: %d turns for %r from enhanced backend",
                    len(transcript),
                    session_id,
                )
                return transcript

        messages = list(self._legacy_reader(session_id))
        logger.debug("ReadRouter: %d messages for %r from legacy log", len(messages), session_id)
        return messages


__all__ = ["LegacyRead", "ReadRouter"]
