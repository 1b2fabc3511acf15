"""Optional enhanced memory backend subpackage.

Nothing in here requires the backend package to be installed.

Public surface
--------------
- BackendFactory   — protocol of the factory the backend module exports
- BackendInstance  — protocol of a namespace-scoped backend handle
- LoadState        — progress of the single load attempt
- PluginLoadCache  — memoized loader for the backend factory
"""
from __future__ import annotations

from agent_transcript_bridge.enhanced.loader import LoadState, PluginLoadCache
from agent_transcript_bridge.enhanced.protocol import BackendFactory, BackendInstance

__all__ = ["BackendFactory", "BackendInstance", "LoadState", "PluginLoadCache"]
