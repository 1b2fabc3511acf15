"""Structural interface of the optional enhanced memory backend.

The enhanced backend is a separately installed package.  Nothing here
depends on it: these protocols only describe the narrow surface the
delegation layer calls through.

Classes
-------
- BackendInstance  — a namespace-scoped handle that saves and returns turns
- BackendFactory   — the exported singleton factory handing out instances
"""
from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable


@runtime_checkable
class BackendInstance(Protocol):
    """A handle to one namespace of the enhanced backend.

    Instances are created, pooled, and destroyed by the backend itself; the
    delegation layer only queries and calls through them.
    """

    def is_available(self) -> bool:
        """Return True when the instance is ready to accept turns."""
        ...

    def save_turn(self, session_id: str, message: Any) -> None:
        """Durably record ``message`` as the next turn of ``session_id``."""
        ...

    def get_transcript(self, session_id: str) -> Sequence[Any]:
        """Return every recorded turn of ``session_id`` in order."""
        ...


@runtime_checkable
class BackendFactory(Protocol):
    """Namespace-keyed singleton factory exported by the backend module."""

    def get_instance(self, namespace: str) -> BackendInstance | None:
        """Return the instance serving ``namespace``, or None."""
        ...


__all__ = ["BackendFactory", "BackendInstance"]
