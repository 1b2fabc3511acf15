"""Benchmark: Write routing latency — per-append p50/p99.

Measures the per-call latency of a guarded ``append_message`` against an
in-memory transcript log, once with no enhanced backend and once with a
ready in-process backend.
"""
from __future__ import annotations

import json
import time
import types
from pathlib import Path
from typing import Any

from agent_transcript_bridge import BackendProbe, PluginLoadCache, TranscriptLog, TranscriptMessage
from agent_transcript_bridge.delegation.guard import install_write_guard

_WARMUP: int = 200
_ITERATIONS: int = 5_000


class _NullBackend:
    def is_available(self) -> bool:
        return True

    def save_turn(self, session_id: str, message: Any) -> None:
        pass

    def get_transcript(self, session_id: str) -> list[Any]:
        return []


class _NullFactory:
    def get_instance(self, namespace: str) -> _NullBackend:
        return _NullBackend()


def _cache(enhanced: bool) -> PluginLoadCache:
    module = types.ModuleType("bench_backend")
    module.AeonMemory = _NullFactory()  # type: ignore[attr-defined]

    def importer(name: str) -> types.ModuleType:
        if not enhanced:
            raise ModuleNotFoundError(f"No module named {name!r}", name=name)
        return module

    cache = PluginLoadCache(importer=importer)
    cache.ensure_loaded()
    return cache


def bench_route_latency(enhanced: bool) -> dict[str, object]:
    """Benchmark guarded append latency.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms, p50_latency_ms, p99_latency_ms.
    """
    log = TranscriptLog.in_memory("bench")
    install_write_guard(log, probe=BackendProbe(_cache(enhanced)))
    message = TranscriptMessage(role="assistant", content=[{"type": "text", "text": "ok"}])

    for _ in range(_WARMUP):
        log.append_message(message)

    latencies_ms: list[float] = []
    for _ in range(_ITERATIONS):
        t0 = time.perf_counter()
        log.append_message(message)
        latencies_ms.append((time.perf_counter() - t0) * 1000)

    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)
    total = sum(latencies_ms) / 1000
    operation = "route_enhanced" if enhanced else "route_legacy"

    result: dict[str, object] = {
        "operation": operation,
        "iterations": _ITERATIONS,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_ITERATIONS / total, 1),
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p50_latency_ms": round(sorted_lats[n // 2], 4),
        "p99_latency_ms": round(sorted_lats[min(int(n * 0.99), n - 1)], 4),
    }
    print(
        f"[bench_route_latency] {operation}: "
        f"p99={result['p99_latency_ms']:.4f}ms  "
        f"mean={result['avg_latency_ms']:.4f}ms"
    )
    return result


def run_benchmark() -> list[dict[str, object]]:
    """Entry point returning both benchmark result dicts."""
    return [bench_route_latency(enhanced=False), bench_route_latency(enhanced=True)]


if __name__ == "__main__":
    results = run_benchmark()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "route_latency_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(results, fh, indent=2)
    print(f"Results saved to {output_path}")
