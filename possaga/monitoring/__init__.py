"""
Observability for transactions: structured logging, metrics and operator alerts.
"""

from possaga.monitoring.alerts import (
    CompensationAlert,
    CompensationAlertSink,
    FanOutAlertSink,
    InMemoryAlertSink,
    LoggingAlertSink,
)
from possaga.monitoring.logging import (
    TransactionJsonFormatter,
    TransactionLogger,
    setup_transaction_logging,
)
from possaga.monitoring.metrics import TransactionMetrics
from possaga.monitoring.prometheus import PrometheusMetrics, start_metrics_server

__all__ = [
    "CompensationAlert",
    "CompensationAlertSink",
    "FanOutAlertSink",
    "InMemoryAlertSink",
    "LoggingAlertSink",
    "TransactionJsonFormatter",
    "TransactionLogger",
    "setup_transaction_logging",
    "TransactionMetrics",
    "PrometheusMetrics",
    "start_metrics_server",
]
