"""Prometheus metrics definitions for ossmultipart.

All metrics use the ``ossmultipart_`` prefix. They are registered in the
global prometheus_client registry only when ``init_metrics()`` is called;
until then the module-level references stay ``None`` and recording is a
no-op.
"""

from __future__ import annotations

from prometheus_client import Counter

_initialized: bool = False

# Transaction operations (labels: operation, status)
operations_total: Counter | None = None

# Request body bytes handed to the transport for part uploads
bytes_sent_total: Counter | None = None


def init_metrics() -> None:
    """Create and register all Prometheus metrics. Safe to call repeatedly."""
    global _initialized
    global operations_total, bytes_sent_total

    if _initialized:
        return

    operations_total = Counter(
        "ossmultipart_operations_total",
        "Total multipart transaction operations by type and outcome",
        ["operation", "status"],
    )

    bytes_sent_total = Counter(
        "ossmultipart_bytes_sent_total",
        "Total part bytes sent to the service",
    )

    _initialized = True


def record_operation(operation: str, status: str) -> None:
    """Count one finished operation; ``status`` is "ok" or an error code."""
    if operations_total is not None:
        operations_total.labels(operation=operation, status=status).inc()


def record_bytes_sent(count: int) -> None:
    if bytes_sent_total is not None:
        bytes_sent_total.inc(count)
