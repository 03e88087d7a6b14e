"""
OrchestratorConfig - Unified configuration for the transaction orchestrator.

Wires together everything the orchestrator needs besides the two
capabilities (which are passed to the orchestrator directly):

- Outcome store and retention window (idempotent replay)
- Compensation alert sink (operator channel)
- Metrics collector

Example:
    >>> from datetime import timedelta
    >>> from possaga import OrchestratorConfig, TransactionOrchestrator
    >>> from possaga.storage import create_outcome_store
    >>>
    >>> config = OrchestratorConfig(
    ...     idempotency_retention_window=timedelta(hours=6),
    ...     outcome_store=create_outcome_store("redis", redis_url="redis://cache:6379/2"),
    ...     compensation_alert_sink=PagerSink(),
    ... )
    >>> orchestrator = TransactionOrchestrator(inventory, payment, config=config)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import timedelta
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from possaga.monitoring.alerts import CompensationAlertSink
    from possaga.storage.base import OutcomeStore

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_WINDOW = timedelta(hours=24)


@dataclass
class OrchestratorConfig:
    """
    Configuration for TransactionOrchestrator.

    Attributes:
        idempotency_retention_window: How long a terminal outcome is retained
            and replayed for a duplicate order identifier
        compensation_alert_sink: Where failed releases are reported
            (defaults to LoggingAlertSink)
        outcome_store: Backend for the idempotency map
            (defaults to InMemoryOutcomeStore)
        metrics: True for in-process TransactionMetrics, False to disable,
            or a collector instance (e.g. PrometheusMetrics)
    """

    idempotency_retention_window: timedelta = DEFAULT_RETENTION_WINDOW
    compensation_alert_sink: CompensationAlertSink | None = None
    outcome_store: OutcomeStore | None = None
    metrics: bool | Any = True

    _metrics_collector: Any = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.idempotency_retention_window, timedelta):
            msg = "idempotency_retention_window must be a timedelta"
            raise TypeError(msg)
        if self.idempotency_retention_window <= timedelta(0):
            msg = f"idempotency_retention_window must be positive, got {self.idempotency_retention_window}"
            raise ValueError(msg)

        if self.outcome_store is None:
            from possaga.storage.backends.memory import InMemoryOutcomeStore

            self.outcome_store = InMemoryOutcomeStore()
            logger.debug("Using default InMemoryOutcomeStore")

        if self.compensation_alert_sink is None:
            from possaga.monitoring.alerts import LoggingAlertSink

            self.compensation_alert_sink = LoggingAlertSink()

        self._metrics_collector = self._build_metrics()

    def _build_metrics(self) -> Any:
        if self.metrics is True:
            from possaga.monitoring.metrics import TransactionMetrics

            return TransactionMetrics()
        if self.metrics is False or self.metrics is None:
            return None
        return self.metrics

    @property
    def metrics_collector(self) -> Any:
        """Resolved metrics collector, or None when metrics are disabled."""
        return self._metrics_collector

    def with_store(self, outcome_store: OutcomeStore) -> OrchestratorConfig:
        """Create a new config with a different outcome store (immutable update)."""
        return replace(self, outcome_store=outcome_store)

    def with_alert_sink(self, sink: CompensationAlertSink) -> OrchestratorConfig:
        """Create a new config with a different alert sink (immutable update)."""
        return replace(self, compensation_alert_sink=sink)

    @classmethod
    def from_env(cls, load_dotenv: bool = True) -> OrchestratorConfig:
        """
        Create configuration from environment variables.

        Environment variables:
            POSSAGA_IDEMPOTENCY_RETENTION_SECONDS: Retention window in seconds
            POSSAGA_REDIS_URL: Use a Redis outcome store at this URL
            POSSAGA_OUTCOME_KEY_PREFIX: Redis key prefix
            POSSAGA_METRICS: "true" (in-process), "prometheus", or "false"

        Args:
            load_dotenv: If True, loads .env file before reading variables
        """
        from possaga.core.env import EnvManager
        from possaga.storage.factory import create_outcome_store

        env = EnvManager(auto_load=load_dotenv)

        retention_seconds = env.get_float(
            "POSSAGA_IDEMPOTENCY_RETENTION_SECONDS", DEFAULT_RETENTION_WINDOW.total_seconds()
        )

        outcome_store = None
        redis_url = env.get("POSSAGA_REDIS_URL")
        if redis_url:
            outcome_store = create_outcome_store(
                "redis",
                redis_url=redis_url,
                key_prefix=env.get("POSSAGA_OUTCOME_KEY_PREFIX"),
            )

        metrics: bool | Any
        metrics_setting = (env.get("POSSAGA_METRICS") or "true").lower()
        if metrics_setting == "prometheus":
            from possaga.monitoring.prometheus import PrometheusMetrics

            metrics = PrometheusMetrics()
        else:
            metrics = env.get_bool("POSSAGA_METRICS", True)

        return cls(
            idempotency_retention_window=timedelta(seconds=retention_seconds),
            outcome_store=outcome_store,
            metrics=metrics,
        )


# Global configuration
_global_config: OrchestratorConfig | None = None


def get_config() -> OrchestratorConfig:
    """Get the global orchestrator configuration."""
    global _global_config
    if _global_config is None:
        _global_config = OrchestratorConfig()
    return _global_config


def configure(config: OrchestratorConfig) -> None:
    """Set the global orchestrator configuration."""
    global _global_config
    _global_config = config
    logger.info(
        f"Orchestrator configured: store={type(config.outcome_store).__name__}, "
        f"retention={config.idempotency_retention_window}"
    )


def reset_config() -> None:
    """Drop the global configuration (mainly for tests)."""
    global _global_config
    _global_config = None
