"""Metrics collector - Prometheus counters, gauges, histograms.

- ``tonwatch_transactions_total`` counter-vec (kind: SELL / BUY / NONE / ERROR)
- ``tonwatch_notifications_total`` counter-vec (outcome: delivered / failed)
- ``tonwatch_dispatch_seconds`` histogram
- ``tonwatch_cursor_lt`` gauge
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

if TYPE_CHECKING:
    from collections.abc import Iterator

_PREFIX = "tonwatch"


class WatcherMetrics:
    """Prometheus metrics for the observer and notification fan-out.

    Each instance owns its registry unless one is passed in; expose it with
    ``prometheus_client.start_http_server(port, registry=metrics.registry)``.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()

        self._transactions = Counter(
            f"{_PREFIX}_transactions",
            "Transactions processed by the observer",
            ("kind",),
            registry=self._registry,
        )
        self._notifications = Counter(
            f"{_PREFIX}_notifications",
            "Notification delivery attempts",
            ("outcome",),
            registry=self._registry,
        )
        self._dispatch = Histogram(
            f"{_PREFIX}_dispatch_seconds",
            "Duration of a notification fan-out to all recipients",
            registry=self._registry,
        )
        self._cursor_lt = Gauge(
            f"{_PREFIX}_cursor_lt",
            "Logical time of the last processed transaction",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._registry

    def record_transaction(self, kind: str) -> None:
        self._transactions.labels(kind=kind).inc()

    def record_delivery(self, *, ok: bool) -> None:
        self._notifications.labels(outcome="delivered" if ok else "failed").inc()

    def set_cursor(self, lt: int) -> None:
        self._cursor_lt.set(lt)

    @contextmanager
    def track_dispatch(self) -> Iterator[None]:
        """Track the duration of one fan-out."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._dispatch.observe(time.monotonic() - start)
