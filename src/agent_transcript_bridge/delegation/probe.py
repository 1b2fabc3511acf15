"""Backend capability probe.

Answers one question for the routers: is there a usable enhanced backend
instance for this namespace right now?  The three ways the answer can be
"no" (backend absent or still loading, no instance, instance not ready)
are reported as a tagged result, and collapse to None for callers that
only need the instance.

Classes
-------
- Capability    — tag of a probe result
- ProbeResult   — tag plus the instance when one is ready
- BackendProbe  — probe the cached factory for a namespace
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from agent_transcript_bridge.enhanced.loader import PluginLoadCache
from agent_transcript_bridge.enhanced.protocol import BackendInstance

logger = logging.getLogger(__name__)


class Capability(str, Enum):
    """What the enhanced backend can do for a namespace at probe time."""

    ABSENT = "absent"
    NOT_READY = "not_ready"
    READY = "ready"


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of probing one namespace.

    ``instance`` is set only when ``capability`` is ``READY``.
    """

    capability: Capability
    instance: BackendInstance | None = None

    @property
    def ready(self) -> bool:
        return self.capability is Capability.READY


_ABSENT = ProbeResult(Capability.ABSENT)
_NOT_READY = ProbeResult(Capability.NOT_READY)


class BackendProbe:
    """Probe the cached backend factory without ever loading it.

    Parameters
    ----------
    cache:
        The load cache whose factory reference is peeked.
    """

    def __init__(self, cache: PluginLoadCache) -> None:
        self._cache = cache

    @property
    def cache(self) -> PluginLoadCache:
        return self._cache

    def check(self, namespace: str) -> ProbeResult:
        """Return the tagged capability of the backend for ``namespace``.

        Never raises: failures inside the backend are logged and reported
        as ``ABSENT`` (factory failed) or ``NOT_READY`` (availability check
        failed).
        """
        factory = self._cache.peek()
        if factory is None:
            return _ABSENT

        try:
            instance = factory.get_instance(namespace)
        except Exception:
            logger.warning(
                "BackendProbe: get_instance(%r) raised; treating backend as absent",
                namespace,
                exc_info=True,
            )
            return _ABSENT
        if instance is None:
            return _ABSENT

        try:
            available = bool(instance.is_available())
        except Exception:
            logger.warning(
                "BackendProbe: is_available() raised for %r; treating backend as not ready",
                namespace,
                exc_info=True,
            )
            return _NOT_READY
        if not available:
            return _NOT_READY
        return ProbeResult(Capability.READY, instance)

    def probe(self, namespace: str) -> BackendInstance | None:
        """Return a ready instance for ``namespace``, or None."""
        return self.check(namespace).instance

    def __repr__(self) -> str:
        return f"BackendProbe(cache={self._cache!r})"


__all__ = ["BackendProbe", "Capability", "ProbeResult"]
