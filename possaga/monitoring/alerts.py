"""
Operator alerting for failed compensations.

When a reservation cannot be released after a failed charge, stock may be
held for an order that was never paid. The orchestrator builds a
``CompensationAlert`` and hands it to the configured sink so a human can
reconcile.

Any object with an ``async emit(alert)`` method is a valid sink:

    >>> class PagerSink:
    ...     async def emit(self, alert: CompensationAlert) -> None:
    ...         await pager.trigger(alert.summary)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

from possaga.core.logger import get_logger
from possaga.types import FailureReason, OrderItem

logger = get_logger(__name__)


@dataclass(frozen=True)
class CompensationAlert:
    """A release that could not be completed."""

    order_id: str
    reservation_id: str
    items: tuple[OrderItem, ...]
    reason: FailureReason
    error_type: str
    error_message: str
    raised_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def summary(self) -> str:
        skus = ", ".join(f"{item.sku}x{item.quantity}" for item in self.items)
        return (
            f"Reservation {self.reservation_id} for order {self.order_id} was not released "
            f"after {self.reason.value} ({self.error_type}: {self.error_message}); held: {skus}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "reservation_id": self.reservation_id,
            "items": [{"sku": i.sku, "quantity": i.quantity} for i in self.items],
            "reason": self.reason.value,
            "error_type": self.error_type,
            "error_message": self.error_message,
            "raised_at": self.raised_at.isoformat(),
        }


@runtime_checkable
class CompensationAlertSink(Protocol):
    """Destination for compensation failure alerts."""

    async def emit(self, alert: CompensationAlert) -> None: ...


class LoggingAlertSink:
    """Default sink: logs at CRITICAL on the ``possaga.alerts`` logger."""

    def __init__(self, logger_name: str = "possaga.alerts"):
        self.log = get_logger(logger_name)

    async def emit(self, alert: CompensationAlert) -> None:
        self.log.critical(
            f"COMPENSATION FAILED: {alert.summary}",
            extra={"alert": alert.to_dict(), "order_id": alert.order_id},
        )


class InMemoryAlertSink:
    """Collects alerts in a list. Handy for tests and the CLI simulator."""

    def __init__(self):
        self.alerts: list[CompensationAlert] = []
        self._lock = asyncio.Lock()

    async def emit(self, alert: CompensationAlert) -> None:
        async with self._lock:
            self.alerts.append(alert)

    def for_order(self, order_id: str) -> list[CompensationAlert]:
        return [a for a in self.alerts if a.order_id == order_id]

    def clear(self) -> int:
        count = len(self.alerts)
        self.alerts.clear()
        return count


class FanOutAlertSink:
    """Send each alert to several sinks. A failing sink does not stop the others."""

    def __init__(self, *sinks: CompensationAlertSink):
        self.sinks = list(sinks)

    async def emit(self, alert: CompensationAlert) -> None:
        for sink in self.sinks:
            try:
                await sink.emit(alert)
            except Exception as e:
                logger.error(
                    f"Alert sink {type(sink).__name__} failed for order {alert.order_id}: {e}",
                    exc_info=True,
                )
