"""Metrics collector: Prometheus counters, gauges, histograms.

Exposed series:
- ``wallet_auth_attempts_total`` counter-vec (outcome: success or a reject reason)
- ``wallet_auth_nonces_issued_total`` counter
- ``wallet_auth_authenticate_histogram``
- ``wallet_auth_stats_total`` gauge-vec (accounts, wallets, revoked_wallets)
- ``wallet_auth_cron_histogram``
- ``wallet_auth_cron_last_execution_gauge``
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

if TYPE_CHECKING:
    from collections.abc import Iterator


_PREFIX = "wallet_auth"

_STAT_LABELS = ("entity",)


class MetricsCollector:
    """Low-level Prometheus collector that owns the registry.

    Use :class:`EngineMetrics` for the high-level tracking interface.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._registry

    def gauge(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Gauge:
        """Register and return a Gauge."""
        return Gauge(name, doc, labels, registry=self._registry)

    def histogram(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Histogram:
        """Register and return a Histogram."""
        return Histogram(name, doc, labels, registry=self._registry)

    def counter(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Counter:
        """Register and return a Counter."""
        return Counter(name, doc, labels, registry=self._registry)


class EngineMetrics:
    """High-level metrics for the sign-in engine.

    All histograms track operation duration in seconds.
    """

    def __init__(self, collector: MetricsCollector | None = None) -> None:
        self._collector = collector or MetricsCollector()

        self._stats = self._collector.gauge(
            f"{_PREFIX}_stats_total",
            "Entity counts in the wallet auth engine",
            _STAT_LABELS,
        )

        # prometheus_client appends "_total" to counter names itself.
        self._attempts = self._collector.counter(
            f"{_PREFIX}_attempts",
            "Authentication attempts by outcome",
            ("outcome",),
        )
        self._nonces_issued = self._collector.counter(
            f"{_PREFIX}_nonces_issued",
            "Nonces issued to wallets",
        )
        self._authenticate = self._collector.histogram(
            f"{_PREFIX}_authenticate_histogram",
            "Duration of authentication attempts",
        )

        # Cron metrics
        self._cron_histogram = self._collector.histogram(
            f"{_PREFIX}_cron_histogram",
            "Duration of cron job executions",
            ("job_name",),
        )
        self._cron_last = self._collector.gauge(
            f"{_PREFIX}_cron_last_execution_gauge",
            "Timestamp of last cron execution",
            ("job_name",),
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._collector.registry

    # -- Stat setters --

    def set_account_count(self, count: int) -> None:
        """Set the current number of accounts."""
        self._stats.labels(entity="accounts").set(count)

    def set_wallet_count(self, count: int) -> None:
        """Set the current number of bound wallets."""
        self._stats.labels(entity="wallets").set(count)

    def set_revoked_wallet_count(self, count: int) -> None:
        """Set the current number of revoked wallets."""
        self._stats.labels(entity="revoked_wallets").set(count)

    # -- Event counters --

    def record_attempt(self, outcome: str) -> None:
        """Count one authentication attempt with its outcome."""
        self._attempts.labels(outcome=outcome).inc()

    def record_nonce_issued(self) -> None:
        """Count one issued nonce."""
        self._nonces_issued.inc()

    # -- Operation trackers (context managers) --

    @contextmanager
    def track_authenticate(self) -> Iterator[None]:
        """Track the duration of an authentication attempt."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._authenticate.observe(time.monotonic() - start)

    @contextmanager
    def track_cron(self, job_name: str) -> Iterator[None]:
        """Track the duration of a cron job and record last execution time."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._cron_histogram.labels(job_name=job_name).observe(time.monotonic() - start)
            self._cron_last.labels(job_name=job_name).set(time.time())
