"""Transcript bridge facade.

``TranscriptBridge`` is the primary entry point: it owns the plugin load
cache, the capability probe built on it, and the legacy reader, and wires
them into the write guard and read router.  Every public operation first
triggers a background load of the enhanced backend, then serves the call
with whatever the probe reports at that moment.

The module-level ``install_write_guard`` and ``read_session_messages``
delegate to one lazily created process default bridge configured from the
environment.  ``reset_default_bridge`` discards it; it exists for test
harnesses.

Classes
-------
- BackendStatus     — snapshot of the backend's load state and capability
- TranscriptBridge  — facade over load cache, probe, routers and logs
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from agent_transcript_bridge.config import BridgeConfig
from agent_transcript_bridge.delegation.guard import WriteGuard
from agent_transcript_bridge.delegation.guard import install_write_guard as _guard_log
from agent_transcript_bridge.delegation.inject import (
    AbortMeta,
    InjectedAppendResult,
    append_injected_assistant_message,
)
from agent_transcript_bridge.delegation.probe import BackendProbe, Capability
from agent_transcript_bridge.delegation.read_router import ReadRouter
from agent_transcript_bridge.enhanced.loader import LoadState, PluginLoadCache
from agent_transcript_bridge.enhanced.protocol import BackendFactory
from agent_transcript_bridge.legacy.log import TranscriptLog
from agent_transcript_bridge.legacy.reader import LegacyTranscriptReader

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BackendStatus:
    """Point-in-time view of the enhanced backend for one namespace."""

    module_name: str
    load_state: LoadState
    namespace: str
    capability: Capability

    def to_dict(self) -> dict[str, str]:
        return {
            "module_name": self.module_name,
            "load_state": self.load_state.value,
            "namespace": self.namespace,
            "capability": self.capability.value,
        }


class TranscriptBridge:
    """Persist and read transcripts through whichever backend is usable.

    Parameters
    ----------
    config:
        Bridge configuration.  Defaults to ``BridgeConfig()``.
    cache:
        Load cache to use.  Defaults to a new cache for the configured
        backend module; pass one in to share it between bridges.
    """

    def __init__(
        self,
        config: BridgeConfig | None = None,
        cache: PluginLoadCache | None = None,
    ) -> None:
        self._config = config or BridgeConfig()
        self._cache = cache or PluginLoadCache(
            module_name=self._config.backend_module,
            export_name=self._config.backend_export,
        )
        self._probe = BackendProbe(self._cache)
        self._reader = LegacyTranscriptReader(self._config.transcript_dir)
        self._read_router = ReadRouter(self._probe, self._reader)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> BridgeConfig:
        return self._config

    @property
    def cache(self) -> PluginLoadCache:
        return self._cache

    @property
    def probe(self) -> BackendProbe:
        return self._probe

    # ------------------------------------------------------------------
    # Legacy logs
    # ------------------------------------------------------------------

    def transcript_path(self, session_id: str) -> Path:
        """Return the legacy transcript file of ``session_id``."""
        return self._reader.path_for(session_id)

    def open_transcript(self, session_id: str) -> TranscriptLog:
        """Open the legacy log of ``session_id`` (created on first append)."""
        return self._reader.open(session_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def install_write_guard(
        self,
        log: TranscriptLog,
        session_id: str | None = None,
        namespace: str | None = None,
        *,
        flush_on_new_turn: bool = True,
    ) -> WriteGuard:
        """Route every future append on ``log`` through the bridge.

        Parameters
        ----------
        log:
            Legacy log to guard.
        session_id:
            Session id for the enhanced backend.  Defaults to
            ``log.session_id``.
        namespace:
            Backend namespace.  Defaults to ``config.namespace``.
        flush_on_new_turn:
            See ``WriteGuard``.

        Returns
        -------
        WriteGuard
        """
        self._cache.trigger_load()
        return _guard_log(
            log,
            probe=self._probe,
            session_id=session_id,
            namespace=namespace or self._config.namespace,
            flush_on_new_turn=flush_on_new_turn,
        )

    def inject_assistant_message(
        self,
        session_id: str,
        message: str,
        *,
        label: str | None = None,
        idempotency_key: str | None = None,
        abort_meta: AbortMeta | None = None,
        now: int | None = None,
    ) -> InjectedAppendResult:
        """Append a gateway-injected assistant message to ``session_id``."""
        self._cache.trigger_load()
        return append_injected_assistant_message(
            self.transcript_path(session_id),
            message,
            label=label,
            idempotency_key=idempotency_key,
            abort_meta=abort_meta,
            now=now,
            session_id=session_id,
            namespace=self._config.namespace,
            probe=self._probe,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def read_session_messages(self, session_id: str, namespace: str | None = None) -> list[Any]:
        """Return the transcript of ``session_id`` from the best available backend."""
        self._cache.trigger_load()
        return self._read_router.route_read(namespace or self._config.namespace, session_id)

    # ------------------------------------------------------------------
    # Backend lifecycle
    # ------------------------------------------------------------------

    async def wait_for_backend(self) -> BackendFactory | None:
        """Start the backend load if needed and wait until it has resolved."""
        return await self._cache.load_async()

    def status(self, namespace: str | None = None) -> BackendStatus:
        """Return the backend's load state and capability without loading it."""
        ns = namespace or self._config.namespace
        return BackendStatus(
            module_name=self._cache.module_name,
            load_state=self._cache.state,
            namespace=ns,
            capability=self._probe.check(ns).capability,
        )

    def __repr__(self) -> str:
        return (
            f"TranscriptBridge(module={self._config.backend_module!r}, "
            f"transcript_dir={str(self._config.transcript_dir)!r})"
        )


# ---------------------------------------------------------------------------
# Process default
# ---------------------------------------------------------------------------

_default_bridge: TranscriptBridge | None = None


def get_default_bridge() -> TranscriptBridge:
    """Return the process default bridge, creating it from the environment."""
    global _default_bridge
    if _default_bridge is None:
        _default_bridge = TranscriptBridge(BridgeConfig.from_env())
        logger.debug("Created default %r", _default_bridge)
    return _default_bridge


def reset_default_bridge() -> None:
    """Discard the process default bridge and its load attempt.  Tests only."""
    global _default_bridge
    if _default_bridge is not None:
        _default_bridge.cache.reset_for_testing()
    _default_bridge = None


def install_write_guard(
    log: TranscriptLog,
    session_id: str | None = None,
    namespace: str | None = None,
) -> WriteGuard:
    """``TranscriptBridge.install_write_guard`` on the default bridge."""
    return get_default_bridge().install_write_guard(log, session_id, namespace)


def read_session_messages(session_id: str, namespace: str | None = None) -> list[Any]:
    """``TranscriptBridge.read_session_messages`` on the default bridge."""
    return get_default_bridge().read_session_messages(session_id, namespace)


__all__ = [
    "BackendStatus",
    "TranscriptBridge",
    "get_default_bridge",
    "install_write_guard",
    "read_session_messages",
    "reset_default_bridge",
]
