"""Prometheus metrics for the spectral analysis engine.

Counts what the interactive session controller does with each parameter
update, so a dashboard shows how much work slider motion really causes.

Metrics:
    spectral_computations_total        Counter by outcome
                                       (published/superseded/cancelled/error)
    spectral_compute_seconds           Histogram of pipeline wall-clock time
    spectral_cache_hits_total          Result cache hits
    spectral_cache_misses_total        Result cache misses
    spectral_updates_coalesced_total   Parameter updates folded into a newer one

Usage::

    from infrastructure.metrics import LatencyTimer, record_computation

    with LatencyTimer() as t:
        views = analyze(params)
    record_computation(outcome="published", latency_seconds=t.elapsed)
"""

from __future__ import annotations

import logging
import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

OUTCOMES: tuple[str, ...] = ("published", "superseded", "cancelled", "error")

_REGISTRY = CollectorRegistry()

computations_total = Counter(
    "spectral_computations_total",
    "Session computations by outcome",
    ["outcome"],
    registry=_REGISTRY,
)

compute_seconds = Histogram(
    "spectral_compute_seconds",
    "Wall-clock time of one analysis pipeline run in seconds",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
    registry=_REGISTRY,
)

cache_hits_total = Counter(
    "spectral_cache_hits_total",
    "Session result cache hits",
    registry=_REGISTRY,
)

cache_misses_total = Counter(
    "spectral_cache_misses_total",
    "Session result cache misses",
    registry=_REGISTRY,
)

updates_coalesced_total = Counter(
    "spectral_updates_coalesced_total",
    "Parameter updates that arrived while computing and were folded into a newer one",
    registry=_REGISTRY,
)

logger.debug("Spectral metrics registry initialized")


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def record_computation(*, outcome: str, latency_seconds: float | None = None) -> None:
    """Record a finished (or abandoned) pipeline run.

    Args:
        outcome: One of ``OUTCOMES``.
        latency_seconds: Wall-clock duration; omitted for runs that never
            reached the pipeline.

    Raises:
        ValueError: Unknown outcome.
    """
    if outcome not in OUTCOMES:
        raise ValueError(f"Unknown outcome {outcome!r}. Valid: {list(OUTCOMES)}")
    computations_total.labels(outcome=outcome).inc()
    if latency_seconds is not None:
        compute_seconds.observe(latency_seconds)


def record_cache_hit() -> None:
    """Increment result cache hit counter."""
    cache_hits_total.inc()


def record_cache_miss() -> None:
    """Increment result cache miss counter."""
    cache_misses_total.inc()


def record_coalesced_update() -> None:
    """Increment the coalesced-update counter."""
    updates_coalesced_total.inc()


def get_metrics_response() -> tuple[bytes, str]:
    """Generate Prometheus text exposition format.

    Returns:
        Tuple of (body_bytes, content_type_string) for an external exporter.
    """
    return generate_latest(_REGISTRY), CONTENT_TYPE_LATEST


class LatencyTimer:
    """Context manager for measuring latency.

    Usage::

        with LatencyTimer() as t:
            result = analyze(params)
        record_computation(outcome="published", latency_seconds=t.elapsed)
    """

    def __init__(self) -> None:
        """Initialize timer."""
        self._start: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> LatencyTimer:
        """Start timing."""
        self._start = time.perf_counter()
        return self

    def __exit__(self, *_: object) -> None:
        """Stop timing and record elapsed."""
        self.elapsed = time.perf_counter() - self._start
