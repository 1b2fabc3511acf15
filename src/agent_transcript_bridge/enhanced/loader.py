"""Memoized loader for the optional enhanced memory backend.

The enhanced backend is an optional package resolved by module name at
runtime.  ``PluginLoadCache`` owns the single load attempt and the single
cached reference to the factory the module exports.  Four ways to reach
that reference are offered, differing only in when they block:

* ``ensure_loaded()`` imports synchronously on first use.
* ``load_async()`` imports off the event loop and can be awaited.
* ``trigger_load()`` starts ``load_async``'s work without anyone awaiting
  it.  A done-callback owned by the cache consumes the task outcome, so a
  failed or cancelled load can never surface as an unobserved task
  exception.
* ``peek()`` never loads anything.

Whichever strategy runs first performs the one load of the cache's
lifetime; every later call, through any strategy, only observes its
result.  Failures of any kind are normalised to "no factory" (None).

Classes
-------
- LoadState        — progress of the single load attempt
- PluginLoadCache  — owns the load attempt and its cached result
"""
from __future__ import annotations

import asyncio
import functools
import importlib
import logging
import threading
from enum import Enum
from types import ModuleType
from typing import Callable

from agent_transcript_bridge.enhanced.protocol import BackendFactory

logger = logging.getLogger(__name__)

DEFAULT_BACKEND_MODULE = "aeon_memory"
DEFAULT_BACKEND_EXPORT = "AeonMemory"

Importer = Callable[[str], ModuleType]


class LoadState(str, Enum):
    """Progress of the cache's single load attempt.

    States only move forward, except that a background load cancelled
    before its import started goes back to ``NOT_ATTEMPTED``, as does
    ``PluginLoadCache.reset_for_testing``.
    """

    NOT_ATTEMPTED = "not_attempted"
    ATTEMPTED = "attempted"
    RESOLVED = "resolved"


class PluginLoadCache:
    """Owns the load attempt for the enhanced backend's factory.

    Parameters
    ----------
    module_name:
        Importable name of the backend package.
    export_name:
        Attribute of that module holding the namespace-keyed factory.
    importer:
        Callable used to import ``module_name``.  Defaults to
        ``importlib.import_module``; tests substitute their own.
    """

    def __init__(
        self,
        module_name: str = DEFAULT_BACKEND_MODULE,
        export_name: str = DEFAULT_BACKEND_EXPORT,
        importer: Importer | None = None,
    ) -> None:
        self._module_name = module_name
        self._export_name = export_name
        self._importer: Importer = importer or importlib.import_module
        self._state = LoadState.NOT_ATTEMPTED
        self._factory: BackendFactory | None = None
        self._task: asyncio.Task[None] | None = None
        # Background attempt in flight, claimed by its worker thread once it runs.
        self._lock = threading.Lock()
        self._attempt: object | None = None
        self._attempt_started = False

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def module_name(self) -> str:
        return self._module_name

    @property
    def export_name(self) -> str:
        return self._export_name

    @property
    def state(self) -> LoadState:
        """Current progress of the load attempt."""
        return self._state

    # ------------------------------------------------------------------
    # Loading strategies
    # ------------------------------------------------------------------

    def ensure_loaded(self) -> BackendFactory | None:
        """Resolve the factory synchronously on first call.

        Later calls return the cached reference immediately, including
        while an asynchronous load started elsewhere is still running (the
        reference is None until that load records its result).

        Returns
        -------
        BackendFactory | None
            The backend factory, or None when the backend is unavailable.
        """
        if self._state is not LoadState.NOT_ATTEMPTED:
            return self._factory
        self._state = LoadState.ATTEMPTED
        self._record(self._resolve())
        return self._factory

    async def load_async(self) -> BackendFactory | None:
        """Resolve the factory without blocking the event loop.

        The first call starts the load; a caller arriving while that load
        is still running waits for the same load.  Cancelling a waiting
        caller never cancels the load itself.

        Returns
        -------
        BackendFactory | None
            The backend factory, or None when the backend is unavailable.
        """
        if self._state is LoadState.NOT_ATTEMPTED:
            self._start_task(asyncio.get_running_loop())
        task = self._task
        if (
            task is not None
            and not task.done()
            and task.get_loop() is asyncio.get_running_loop()
        ):
            await asyncio.wait({task})
        return self._factory

    def trigger_load(self) -> None:
        """Start loading without waiting for the result.

        Inside a running event loop the load runs as a background task and
        the factory becomes visible to ``peek`` once it completes.  With no
        running loop there is no later tick to defer to, so the load is
        resolved synchronously through ``ensure_loaded``.

        If the task is cancelled before its import starts (for example when
        ``asyncio.run`` shuts the loop down), the cache returns to
        ``NOT_ATTEMPTED`` and the next strategy used performs the load.  An
        import that has already started always records its result.
        """
        if self._state is not LoadState.NOT_ATTEMPTED:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.ensure_loaded()
            return
        self._start_task(loop)

    def peek(self) -> BackendFactory | None:
        """Return the cached factory (or None) without loading anything."""
        return self._factory

    def reset_for_testing(self) -> None:
        """Forget the load attempt.  Test harnesses only."""
        with self._lock:
            self._attempt = None
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        self._state = LoadState.NOT_ATTEMPTED
        self._factory = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _start_task(self, loop: asyncio.AbstractEventLoop) -> None:
        self._state = LoadState.ATTEMPTED
        attempt = object()
        with self._lock:
            self._attempt = attempt
            self._attempt_started = False
        task = loop.create_task(
            self._load_in_background(attempt),
            name=f"load-enhanced-backend:{self._module_name}",
        )
        # The cache keeps the only strong reference and is the task's sole consumer.
        task.add_done_callback(functools.partial(self._consume_outcome, attempt))
        self._task = task

    async def _load_in_background(self, attempt: object) -> None:
        try:
            await asyncio.to_thread(self._run_attempt, attempt)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.error(
                "PluginLoadCache: background load of %r could not be started",
                self._module_name,
                exc_info=True,
            )

    def _run_attempt(self, attempt: object) -> None:
        """Worker-thread body.  Once started, records its own outcome."""
        with self._lock:
            if self._attempt is not attempt:
                return
            self._attempt_started = True
        factory = self._resolve()
        with self._lock:
            if self._attempt is attempt:
                self._attempt = None
                self._record(factory)

    def _consume_outcome(self, attempt: object, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            logger.debug("PluginLoadCache: load task for %r was cancelled", self._module_name)
        else:
            exc = task.exception()
            if exc is not None:
                logger.error(
                    "PluginLoadCache: load of %r ended abnormally",
                    self._module_name,
                    exc_info=exc,
                )
        with self._lock:
            if self._attempt is not attempt or self._attempt_started:
                # Recorded already, superseded, or the worker will record it.
                return
            self._attempt = None
        # The import never ran, so the next strategy to be used performs it.
        self._state = LoadState.NOT_ATTEMPTED
        if self._task is task:
            self._task = None
        logger.debug("PluginLoadCache: load of %r did not run; will retry", self._module_name)

    def _resolve(self) -> BackendFactory | None:
        """Import the backend module and return its factory export, or None."""
        try:
            module = self._importer(self._module_name)
            factory = getattr(module, self._export_name, None)
        except ModuleNotFoundError as exc:
            missing = exc.name or ""
            if missing and (
                self._module_name == missing
                or self._module_name.startswith(f"{missing}.")
            ):
                logger.debug(
                    "PluginLoadCache: %r is not installed; using legacy transcripts",
                    self._module_name,
                )
            else:
                logger.error(
                    "PluginLoadCache: %r failed to import", self._module_name, exc_info=True
                )
            return None
        except Exception:
            logger.error(
                "PluginLoadCache: %r raised while loading", self._module_name, exc_info=True
            )
            return None

        if factory is None:
            logger.debug(
                "PluginLoadCache: %r has no %r export", self._module_name, self._export_name
            )
        return factory

    def _record(self, factory: BackendFactory | None) -> None:
        self._factory = factory
        self._state = LoadState.RESOLVED
        logger.debug(
            "PluginLoadCache: %r resolved (%s)",
            self._module_name,
            "available" if factory is not None else "absent",
        )

    def __repr__(self) -> str:
        return (
            f"PluginLoadCache(module={self._module_name!r}, "
            f"export={self._export_name!r}, state={self._state.value!r})"
        )


__all__ = [
    "DEFAULT_BACKEND_EXPORT",
    "DEFAULT_BACKEND_MODULE",
    "Importer",
    "LoadState",
    "PluginLoadCache",
]
