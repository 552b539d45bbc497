"""Interactive session controller — coalescing recomputation of the views.

Owns the current ``SessionParameters`` and recomputes waveform, spectrogram,
periodogram and measurements whenever they change, with at most one
computation in flight. The state machine::

    IDLE ──(update)──→ COMPUTING ──(done, not stale)──→ IDLE  + publish
                          │   ↑
                          └───┘ (done while stale: rerun with newest params)
    COMPUTING ──(pipeline error)──→ ERROR ──(update)──→ COMPUTING

An update that arrives while COMPUTING only marks the session STALE (and,
by default, asks the running computation to stop at its next frame batch).
When the computation ends, a stale session immediately recomputes from the
newest parameters; everything in between is dropped. Only results computed
from the current parameters are ever published, and a failure never
replaces the last good result.

UI event delivery stays outside: callers invoke ``update()`` from any thread
and receive results through the ``on_result`` / ``on_error`` callbacks,
which run on the controller's worker thread.

Usage::

    from infrastructure.session_controller import SessionController

    with SessionController(params, on_result=renderer.draw) as session:
        session.refresh()
        session.update(window_length=2048)
        session.update(trim_range=(0.5, 1.5))
        session.wait_idle(timeout=5.0)
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Any

from core.config import DEFAULT_CONFIG, AnalysisConfig
from core.session.types import SessionParameters, SessionState
from core.spectral.errors import ComputationCancelled
from core.spectral.pipeline import AnalysisViews, analyze
from infrastructure.cache import ResultCache
from infrastructure.metrics import (
    LatencyTimer,
    record_cache_hit,
    record_cache_miss,
    record_coalesced_update,
    record_computation,
)

logger = logging.getLogger(__name__)

ComputeFn = Callable[..., AnalysisViews]
"""``compute(params, config, *, cancel_event)`` → AnalysisViews."""


@dataclass
class SessionStats:
    """Runtime statistics for a session controller instance."""

    updates: int = 0
    computations: int = 0
    published: int = 0
    superseded: int = 0  # finished, but parameters had moved on
    cancelled: int = 0  # stopped early because parameters had moved on
    errors: int = 0
    cache_hits: int = 0


class SessionController:
    """Thread-safe owner of one interactive analysis session.

    Args:
        parameters: Initial, fully valid parameter set.
        config: Analysis tuning (hop, overlap, workers, debounce, cache).
        on_result: Called with every published ``AnalysisViews``.
        on_error: Called with the exception of every failed computation.
        compute: Pipeline function; defaults to ``core.spectral.pipeline.analyze``.
        cache: Result cache; defaults to a ``ResultCache`` sized from config.
        cancel_superseded: Ask an in-flight computation to stop when the
            parameters change (default True). When False it runs to
            completion and its result is discarded.
        name: Label for logs and the worker thread.
    """

    def __init__(
        self,
        parameters: SessionParameters,
        *,
        config: AnalysisConfig = DEFAULT_CONFIG,
        on_result: Callable[[AnalysisViews], Any] | None = None,
        on_error: Callable[[Exception], Any] | None = None,
        compute: ComputeFn | None = None,
        cache: ResultCache | None = None,
        cancel_superseded: bool = True,
        name: str = "session",
    ) -> None:
        """Initialize the controller in IDLE state; nothing is computed yet."""
        self.name = name
        self._config = config
        self._compute: ComputeFn = compute or analyze
        self._on_result = on_result
        self._on_error = on_error
        self._cache = (
            cache
            if cache is not None
            else ResultCache(max_size=config.cache_size, ttl_seconds=config.cache_ttl_seconds)
        )
        self._cancel_superseded = cancel_superseded

        self._params = parameters
        self._state = SessionState.IDLE
        self._stale = False
        self._latest: AnalysisViews | None = None
        self._last_error: Exception | None = None
        self._cancel: threading.Event | None = None
        self._closed = False
        self._busy = False  # COMPUTING, or still delivering the last result
        self._lock = threading.Lock()
        self._changed = threading.Condition(self._lock)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"{name}-compute")
        self.stats = SessionStats()

        logger.info(
            "SessionController '%s' initialized (%s, window=%d, debounce=%.3fs)",
            name,
            parameters.source,
            parameters.window_length,
            config.debounce_seconds,
        )

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        """Current state (thread-safe read)."""
        with self._lock:
            return self._state

    @property
    def is_stale(self) -> bool:
        """True while a computation runs on parameters that have since changed."""
        with self._lock:
            return self._stale

    @property
    def parameters(self) -> SessionParameters:
        """Most recently accepted parameter set."""
        with self._lock:
            return self._params

    @property
    def latest(self) -> AnalysisViews | None:
        """Last published result; survives later failures."""
        with self._lock:
            return self._latest

    @property
    def last_error(self) -> Exception | None:
        """Exception of the most recent failed computation, cleared on success."""
        with self._lock:
            return self._last_error

    # ------------------------------------------------------------------
    # Parameter mutation
    # ------------------------------------------------------------------

    def update(self, **changes: Any) -> SessionParameters:
        """Change one or more parameters and schedule a recomputation.

        The new set is validated as a whole before it is accepted; on
        failure the session keeps its current parameters and state.

        Args:
            **changes: ``SessionParameters`` field values
                (e.g. ``window_length=2048``, ``trim_range=(0.0, 1.0)``).

        Returns:
            The accepted parameter set.

        Raises:
            InvalidInputError / RangeError: The resulting set is invalid.
            RuntimeError: The controller has been closed.
        """
        with self._lock:
            self._ensure_open()
            params = replace(self._params, **changes) if changes else self._params
            self._params = params
            self.stats.updates += 1
            self._schedule_locked()
        return params

    def refresh(self) -> None:
        """Recompute the views for the current parameters."""
        self.update()

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError(f"SessionController '{self.name}' is closed")

    def _schedule_locked(self) -> None:
        """Start a computation or mark the running one stale. Lock must be held."""
        if self._state is SessionState.COMPUTING:
            if not self._stale:
                logger.debug("SessionController '%s': marked stale", self.name)
            self._stale = True
            record_coalesced_update()
            if self._cancel_superseded and self._cancel is not None:
                self._cancel.set()
            return
        self._state = SessionState.COMPUTING
        self._stale = False
        self._busy = True
        self._executor.submit(self._run)

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _run(self) -> None:
        """Compute until the result matches the newest parameters."""
        while True:
            if self._config.debounce_seconds > 0:
                time.sleep(self._config.debounce_seconds)

            with self._lock:
                params = self._params
                self._stale = False
                cancel = threading.Event()
                self._cancel = cancel
                self.stats.computations += 1

            views, error, cancelled, elapsed = self._compute_views(params, cancel)

            with self._lock:
                self._cancel = None
                if self._closed:
                    self._state = SessionState.IDLE
                    self._busy = False
                    self._changed.notify_all()
                    return
                if self._stale:
                    if cancelled:
                        self.stats.cancelled += 1
                        outcome = "cancelled"
                    else:
                        self.stats.superseded += 1
                        outcome = "superseded"
                    record_computation(outcome=outcome, latency_seconds=elapsed)
                    logger.debug("SessionController '%s': %s, recomputing", self.name, outcome)
                    continue

                if error is not None:
                    self._state = SessionState.ERROR
                    self._last_error = error
                    self.stats.errors += 1
                    callback: Callable[[Any], Any] | None = self._on_error
                    payload: Any = error
                    record_computation(outcome="error", latency_seconds=elapsed)
                    logger.warning(
                        "SessionController '%s': computation failed, keeping last result: %s",
                        self.name,
                        error,
                    )
                else:
                    self._state = SessionState.IDLE
                    self._latest = views
                    self._last_error = None
                    self.stats.published += 1
                    callback = self._on_result
                    payload = views
                    record_computation(outcome="published", latency_seconds=elapsed)

            self._notify(callback, payload)
            with self._lock:
                if self._state is not SessionState.COMPUTING:
                    self._busy = False
                self._changed.notify_all()
            return

    def _compute_views(
        self, params: SessionParameters, cancel: threading.Event
    ) -> tuple[AnalysisViews | None, Exception | None, bool, float | None]:
        """Run (or fetch from cache) the pipeline for one snapshot.

        Returns:
            (views, error, cancelled, elapsed_seconds) — elapsed is None on
            a cache hit.
        """
        key = params.cache_key()
        cached = self._cache.get(key)
        if cached is not None:
            record_cache_hit()
            with self._lock:
                self.stats.cache_hits += 1
            views = replace(cached, parameters=params, color_scheme=params.color_scheme)
            return views, None, False, None

        record_cache_miss()
        views: AnalysisViews | None = None
        error: Exception | None = None
        cancelled = False
        with LatencyTimer() as timer:
            try:
                views = self._compute(params, self._config, cancel_event=cancel)
            except ComputationCancelled:
                cancelled = True
            except Exception as exc:  # noqa: BLE001
                error = exc
        if views is not None:
            self._cache.put(key, views)
        return views, error, cancelled, timer.elapsed

    def _notify(self, callback: Callable[[Any], Any] | None, payload: Any) -> None:
        """Invoke a listener outside the lock; listener failures are logged only."""
        if callback is None:
            return
        try:
            callback(payload)
        except Exception:  # noqa: BLE001
            logger.exception("SessionController '%s': listener raised", self.name)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until no computation is running and listeners have been called.

        Returns:
            True if the session settled within ``timeout``.
        """
        with self._changed:
            return self._changed.wait_for(lambda: not self._busy, timeout)

    def close(self) -> None:
        """Cancel any in-flight work and stop the worker thread."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            if self._cancel is not None:
                self._cancel.set()
        self._executor.shutdown(wait=True)
        logger.info("SessionController '%s' closed", self.name)

    def __enter__(self) -> SessionController:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def status(self) -> dict[str, Any]:
        """Return a snapshot of the controller status.

        Returns:
            Dict with state, stale flag, parameters summary and stats.
        """
        with self._lock:
            params = self._params
            return {
                "name": self.name,
                "state": self._state.value,
                "stale": self._stale,
                "has_result": self._latest is not None,
                "last_error": str(self._last_error) if self._last_error else None,
                "parameters": {
                    "trim_range": params.trim_range,
                    "window_length": params.window_length,
                    "window_kind": params.window_kind.value,
                    "channel": params.channel,
                },
                "stats": {
                    "updates": self.stats.updates,
                    "computations": self.stats.computations,
                    "published": self.stats.published,
                    "superseded": self.stats.superseded,
                    "cancelled": self.stats.cancelled,
                    "errors": self.stats.errors,
                    "cache_hits": self.stats.cache_hits,
                },
            }
