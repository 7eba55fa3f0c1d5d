"""Prometheus metrics for byoc-reconciler.

Per-attempt and per-outcome counters for the poll engine, so a dashboard
can reconstruct how long reconciliations spend waiting on the control
plane without reading logs.

Usage::

    from byoc_reconciler.observability.metrics import POLL_ATTEMPTS_TOTAL

    POLL_ATTEMPTS_TOTAL.labels(operation="create_project", result="transient").inc()
"""

from __future__ import annotations

from prometheus_client import (
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
)

# ---------------------------------------------------------------------------
# Poll engine metrics
# ---------------------------------------------------------------------------

POLL_ATTEMPTS_TOTAL = Counter(
    "byoc_poll_attempts_total",
    "Probe invocations by operation and probe result.",
    labelnames=["operation", "result"],
    registry=REGISTRY,
)

POLL_OUTCOMES_TOTAL = Counter(
    "byoc_poll_outcomes_total",
    "Finished polls by operation and terminal outcome.",
    labelnames=["operation", "outcome"],
    registry=REGISTRY,
)

POLL_DURATION_SECONDS = Histogram(
    "byoc_poll_duration_seconds",
    "Wall-clock time spent in one poll call.",
    labelnames=["operation"],
    buckets=(1.0, 5.0, 15.0, 30.0, 60.0, 300.0, 900.0, 1800.0, 3600.0, 7200.0),
    registry=REGISTRY,
)


def metrics_text() -> tuple[bytes, str]:
    """Generate Prometheus exposition text and content-type header."""
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
