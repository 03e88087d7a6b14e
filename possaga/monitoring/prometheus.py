# ============================================
# FILE: possaga/monitoring/prometheus.py
# ============================================

"""
Prometheus metrics integration for possaga.

Quick Start:
    >>> from possaga.monitoring.prometheus import PrometheusMetrics, start_metrics_server
    >>>
    >>> start_metrics_server(port=8000)
    >>> config = OrchestratorConfig(metrics=PrometheusMetrics())
    >>> orchestrator = TransactionOrchestrator(inventory, payment, config=config)
"""

import logging

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram, start_http_server

from possaga.types import Outcome

logger = logging.getLogger(__name__)


class PrometheusMetrics:
    """
    Prometheus-compatible metrics collector for transactions.

    Exposes the following metrics:
        - pos_transaction_total: Counter of terminal outcomes by status and reason
        - pos_compensation_total: Counter of inventory releases by result
        - pos_transaction_duration_seconds: Histogram of transaction durations
        - pos_transaction_inflight: Gauge of attempts currently executing
        - pos_idempotent_replay_total: Counter of duplicate submissions answered from the store
    """

    def __init__(self, prefix: str = "pos", registry: CollectorRegistry | None = None):
        """
        Initialize Prometheus metrics.

        Args:
            prefix: Metric name prefix (default: "pos")
            registry: Collector registry (default: the global prometheus_client registry)
        """
        self._prefix = prefix
        registry = registry if registry is not None else REGISTRY

        self._transaction_total = Counter(
            f"{prefix}_transaction_total",
            "Total terminal transaction outcomes",
            ["status", "reason"],
            registry=registry,
        )

        self._compensation_total = Counter(
            f"{prefix}_compensation_total",
            "Total inventory releases attempted after a failed charge",
            ["result"],
            registry=registry,
        )

        self._duration = Histogram(
            f"{prefix}_transaction_duration_seconds",
            "Transaction duration in seconds",
            ["status"],
            buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
            registry=registry,
        )

        self._inflight = Gauge(
            f"{prefix}_transaction_inflight",
            "Number of transactions currently executing",
            registry=registry,
        )

        self._replay_total = Counter(
            f"{prefix}_idempotent_replay_total",
            "Duplicate submissions answered with a retained outcome",
            registry=registry,
        )

    def record_outcome(self, outcome: Outcome) -> None:
        """Record a freshly produced terminal outcome."""
        status = outcome.status.value
        reason = outcome.reason.value if outcome.reason else "none"
        self._transaction_total.labels(status=status, reason=reason).inc()
        self._duration.labels(status=status).observe(outcome.duration)

    def record_compensation(self, applied: bool) -> None:
        self._compensation_total.labels(result="released" if applied else "failed").inc()

    def record_replay(self) -> None:
        self._replay_total.inc()

    def set_inflight(self, count: int) -> None:
        self._inflight.set(count)


def start_metrics_server(port: int = 8000, addr: str = "0.0.0.0") -> None:
    """
    Start a Prometheus HTTP metrics server.

    Args:
        port: Port to listen on (default: 8000)
        addr: Address to bind to (default: 0.0.0.0 for all interfaces)
    """
    start_http_server(port, addr)
    logger.info(f"Prometheus metrics server started on port {port}")
