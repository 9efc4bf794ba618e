"""Metrics - Prometheus metrics collection and exposure."""

from __future__ import annotations

from ton_watcher.metrics.collector import WatcherMetrics

__all__ = ["WatcherMetrics"]
