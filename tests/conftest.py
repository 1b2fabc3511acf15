"""Shared fixtures: fake enhanced backends and caches wired to them."""
from __future__ import annotations

import types
from typing import Any, Callable

import pytest

from agent_transcript_bridge.bridge import reset_default_bridge
from agent_transcript_bridge.enhanced.loader import PluginLoadCache


class FakeInstance:
    """In-memory stand-in for an enhanced backend instance."""

    def __init__(
        self,
        available: bool = True,
        transcripts: dict[str, list[Any]] | None = None,
    ) -> None:
        self.available = available
        self.transcripts: dict[str, list[Any]] = transcripts or {}
        self.saved: list[tuple[str, Any]] = []
        self.transcript_requests: list[str] = []

    def is_available(self) -> bool:
        return self.available

    def save_turn(self, session_id: str, message: Any) -> None:
        self.saved.append((session_id, message))

    def get_transcript(self, session_id: str) -> list[Any]:
        self.transcript_requests.append(session_id)
        return self.transcripts.get(session_id, [])


class FakeFactory:
    def __init__(self, instance: Any) -> None:
        self.instance = instance
        self.namespaces: list[str] = []

    def get_instance(self, namespace: str) -> Any:
        self.namespaces.append(namespace)
        return self.instance


def make_module(factory: Any, export_name: str = "AeonMemory") -> types.ModuleType:
    module = types.ModuleType("aeon_memory")
    setattr(module, export_name, factory)
    return module


class CountingImporter:
    """Importer returning a fixed module (or raising) and counting calls."""

    def __init__(self, module: types.ModuleType | None = None, error: BaseException | None = None) -> None:
        self.module = module
        self.error = error
        self.calls: list[str] = []

    def __call__(self, name: str) -> types.ModuleType:
        self.calls.append(name)
        if self.error is not None:
            raise self.error
        if self.module is None:
            raise ModuleNotFoundError(f"No module named {name!r}", name=name)
        return self.module


@pytest.fixture()
def fake_instance() -> FakeInstance:
    return FakeInstance()


@pytest.fixture()
def fake_factory(fake_instance: FakeInstance) -> FakeFactory:
    return FakeFactory(fake_instance)


@pytest.fixture()
def make_cache() -> Callable[..., PluginLoadCache]:
    """Build a cache whose importer yields ``factory`` (or nothing)."""

    def _make(factory: Any = None, error: BaseException | None = None) -> PluginLoadCache:
        module = make_module(factory) if factory is not None else None
        return PluginLoadCache(importer=CountingImporter(module=module, error=error))

    return _make


@pytest.fixture()
def loaded_cache(fake_factory: FakeFactory) -> PluginLoadCache:
    """A cache that has already resolved ``fake_factory``."""
    cache = PluginLoadCache(importer=CountingImporter(module=make_module(fake_factory)))
    cache.ensure_loaded()
    return cache


@pytest.fixture()
def absent_cache() -> PluginLoadCache:
    """A cache that has resolved to "backend not installed"."""
    cache = PluginLoadCache(importer=CountingImporter())
    cache.ensure_loaded()
    return cache


@pytest.fixture(autouse=True)
def _isolate_default_bridge(tmp_path: Any, monkeypatch: pytest.MonkeyPatch) -> Any:
    monkeypatch.setenv("TRANSCRIPT_BRIDGE_TRANSCRIPT_DIR", str(tmp_path / "default-transcripts"))
    reset_default_bridge()
    yield
    reset_default_bridge()
