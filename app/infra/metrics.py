# app/infra/metrics.py
from __future__ import annotations
from collections import defaultdict
from threading import Lock
from typing import Dict
from dataclasses import dataclass, field
from app.infra.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class Counter:
    """Simple counter metric"""
    value: int = 0

    def inc(self, amount: int = 1) -> None:
        self.value += amount


@dataclass
class Histogram:
    """Track distribution of values (e.g., provider latencies)"""
    values: list[float] = field(default_factory=list)
    max_samples: int = 5000

    def observe(self, value: float) -> None:
        self.values.append(value)
        if len(self.values) > self.max_samples:
            del self.values[: len(self.values) - self.max_samples]

    def get_stats(self) -> dict:
        if not self.values:
            return {"count": 0, "min": 0, "max": 0, "avg": 0, "p95": 0, "p99": 0}

        sorted_values = sorted(self.values)
        count = len(sorted_values)

        def percentile(p: float) -> float:
            idx = int(count * p)
            return sorted_values[min(idx, count - 1)]

        return {
            "count": count,
            "min": sorted_values[0],
            "max": sorted_values[-1],
            "avg": sum(sorted_values) / count,
            "p95": percentile(0.95),
            "p99": percentile(0.99),
        }


class MetricsCollector:
    """
    Lightweight metrics collection.

    One collector is created per application instance and handed to the
    components that report into it.
    """

    def __init__(self):
        self._counters: Dict[str, Counter] = defaultdict(Counter)
        self._histograms: Dict[str, Histogram] = defaultdict(Histogram)
        self._lock = Lock()

    def inc_counter(self, name: str, amount: int = 1, labels: dict | None = None) -> None:
        """Increment a counter metric"""
        key = self._make_key(name, labels)
        with self._lock:
            self._counters[key].inc(amount)

    def observe_histogram(self, name: str, value: float, labels: dict | None = None) -> None:
        """Add a value to histogram"""
        key = self._make_key(name, labels)
        with self._lock:
            self._histograms[key].observe(value)

    def get_metrics(self) -> dict:
        """Get all current metrics"""
        with self._lock:
            counters = {k: v.value for k, v in self._counters.items()}
            histograms = {k: v.get_stats() for k, v in self._histograms.items()}

        return {
            "counters": counters,
            "histograms": histograms,
        }

    def reset(self) -> None:
        """Reset all metrics"""
        with self._lock:
            self._counters.clear()
            self._histograms.clear()
        logger.info("Metrics reset")

    @staticmethod
    def _make_key(name: str, labels: dict | None) -> str:
        """Create a metric key from name and labels"""
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"


class ResolverMetrics:
    """Resolution-level metrics on top of a collector"""

    def __init__(self, collector: MetricsCollector | None = None):
        self.collector = collector or MetricsCollector()

    def provider_attempt(self, provider: str, outcome: str, latency_seconds: float) -> None:
        self.collector.inc_counter(
            "provider_attempts_total", labels={"provider": provider, "outcome": outcome}
        )
        self.collector.observe_histogram(
            "provider_latency_seconds", latency_seconds, labels={"provider": provider}
        )

    def resolution(self, platform: str, status: str) -> None:
        self.collector.inc_counter(
            "resolutions_total", labels={"platform": platform, "status": status}
        )

    def profile_fallback(self) -> None:
        self.collector.inc_counter("profile_placeholders_total")
