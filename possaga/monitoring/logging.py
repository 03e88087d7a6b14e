"""
Structured logging for transaction orchestration

Provides structured logging utilities for point-of-sale transactions, with
context propagation so every record emitted while an order is in flight
carries its order identifier and current state.
"""

import json
import logging
from contextvars import ContextVar
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from possaga.types import FailureReason, OutcomeStatus, TransactionState

# Context variables for propagating transaction context
transaction_context: ContextVar[dict[str, Any]] = ContextVar("transaction_context", default={})


class TransactionJsonFormatter(logging.Formatter):
    """
    JSON formatter for transaction logs with structured fields
    """

    # Fields to extract from log record if present
    _EXTRA_FIELDS = (
        "order_id",
        "state",
        "reservation_id",
        "charge_id",
        "reason",
        "duration_ms",
        "error_type",
        "correlation_id",
    )

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON"""
        log_entry = self._build_base_entry(record)
        self._add_transaction_context(log_entry)
        self._add_record_extras(log_entry, record)
        return json.dumps(log_entry, default=str)

    def _build_base_entry(self, record: logging.LogRecord) -> dict[str, Any]:
        return {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

    def _add_transaction_context(self, log_entry: dict[str, Any]) -> None:
        context = transaction_context.get({})
        if context:
            log_entry.update(
                {
                    "order_id": context.get("order_id"),
                    "state": context.get("state"),
                    "correlation_id": context.get("correlation_id"),
                }
            )

    def _add_record_extras(self, log_entry: dict[str, Any], record: logging.LogRecord) -> None:
        for field in self._EXTRA_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)


class TransactionContextFilter(logging.Filter):
    """
    Logging filter that adds transaction context to log records
    """

    def filter(self, record: logging.LogRecord) -> bool:
        context = transaction_context.get({})

        if not hasattr(record, "order_id"):
            record.order_id = context.get("order_id", "unknown")
        if not hasattr(record, "state"):
            record.state = context.get("state", "")
        record.correlation_id = context.get("correlation_id", "")

        return True


class TransactionLogger:
    """
    Transaction-aware logger with automatic context propagation
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        if not any(isinstance(f, TransactionContextFilter) for f in self.logger.filters):
            self.logger.addFilter(TransactionContextFilter())

    def set_transaction_context(
        self, order_id: str, state: TransactionState, correlation_id: str | None = None
    ) -> None:
        """Set transaction context for current execution"""
        transaction_context.set(
            {
                "order_id": order_id,
                "state": state.value,
                "correlation_id": correlation_id or order_id,
            }
        )

    def clear_transaction_context(self) -> None:
        transaction_context.set({})

    def transaction_started(self, order_id: str, item_count: int, total: Decimal, currency: str) -> None:
        self.set_transaction_context(order_id, TransactionState.START)
        self.logger.info(
            f"Transaction started: {order_id} ({item_count} items, {total} {currency})",
            extra={"order_id": order_id, "item_count": item_count},
        )

    def state_changed(self, order_id: str, from_state: TransactionState, to_state: TransactionState) -> None:
        self.set_transaction_context(order_id, to_state)
        self.logger.debug(
            f"Transaction {order_id}: {from_state.value} → {to_state.value}",
            extra={"order_id": order_id, "state": to_state.value},
        )

    def inventory_reserved(self, order_id: str, reservation_id: str) -> None:
        self.logger.info(
            f"Inventory reserved: {reservation_id}",
            extra={"order_id": order_id, "reservation_id": reservation_id},
        )

    def inventory_unavailable(self, order_id: str, error: BaseException) -> None:
        self.logger.warning(
            f"Inventory unavailable for order {order_id}: {error!s}",
            extra={"order_id": order_id, "error_type": type(error).__name__},
        )

    def payment_charged(self, order_id: str, charge_id: str, amount: Decimal, currency: str) -> None:
        self.logger.info(
            f"Payment charged: {charge_id} ({amount} {currency})",
            extra={"order_id": order_id, "charge_id": charge_id},
        )

    def payment_failed(self, order_id: str, reason: FailureReason, error: BaseException) -> None:
        self.logger.warning(
            f"Payment failed for order {order_id} - {reason.value}: {error!s}",
            extra={"order_id": order_id, "reason": reason.value, "error_type": type(error).__name__},
        )

    def compensation_started(self, order_id: str, reservation_id: str) -> None:
        self.logger.warning(
            f"Compensation started: releasing {reservation_id}",
            extra={"order_id": order_id, "reservation_id": reservation_id},
        )

    def compensation_completed(self, order_id: str, reservation_id: str, duration_ms: float) -> None:
        self.logger.warning(
            f"Compensation completed: {reservation_id} released",
            extra={"order_id": order_id, "reservation_id": reservation_id, "duration_ms": duration_ms},
        )

    def compensation_failed(self, order_id: str, reservation_id: str, error: BaseException) -> None:
        """Log compensation failure - critical error"""
        self.logger.critical(
            f"Compensation FAILED: {reservation_id} - {error!s}",
            extra={
                "order_id": order_id,
                "reservation_id": reservation_id,
                "error_type": type(error).__name__,
                "error_message": str(error),
            },
            exc_info=error,
        )

    def transaction_finished(
        self,
        order_id: str,
        status: OutcomeStatus,
        reason: FailureReason | None,
        duration_ms: float,
    ) -> None:
        log_level = logging.INFO if status == OutcomeStatus.SUCCEEDED else logging.WARNING
        suffix = f" ({reason.value})" if reason else ""
        self.logger.log(
            log_level,
            f"Transaction finished: {order_id} - Status: {status.value}{suffix}",
            extra={
                "order_id": order_id,
                "status": status.value,
                "reason": reason.value if reason else None,
                "duration_ms": duration_ms,
            },
        )
        self.clear_transaction_context()

    def idempotent_replay(self, order_id: str, status: OutcomeStatus) -> None:
        self.logger.info(
            f"Idempotent replay: order {order_id} already {status.value}",
            extra={"order_id": order_id, "status": status.value},
        )


def setup_transaction_logging(
    log_level: str = "INFO", json_format: bool = True, include_console: bool = True
) -> TransactionLogger:
    """
    Set up structured logging for transactions

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_format: Use JSON formatting for structured logs
        include_console: Include console handler

    Returns:
        Configured TransactionLogger instance
    """
    root_logger = logging.getLogger("possaga")
    root_logger.setLevel(getattr(logging, log_level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if include_console:
        console_handler = logging.StreamHandler()

        if json_format:
            console_handler.setFormatter(TransactionJsonFormatter())
        else:
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - [%(order_id)s:%(state)s] - %(message)s"
            )
            console_handler.setFormatter(formatter)
            console_handler.addFilter(TransactionContextFilter())

        root_logger.addHandler(console_handler)

    return TransactionLogger("possaga.transactions")


# Default transaction logger instance
transaction_logger = TransactionLogger("possaga.transactions")
