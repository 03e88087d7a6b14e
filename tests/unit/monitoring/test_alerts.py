"""
Tests for compensation alerts and alert sinks
"""

import logging

import pytest

from possaga import (
    CompensationAlertSink,
    FailureReason,
    InventoryError,
    OrderItem,
    PaymentDeclinedError,
    TransactionOrchestrator,
)
from possaga.monitoring.alerts import (
    CompensationAlert,
    FanOutAlertSink,
    InMemoryAlertSink,
    LoggingAlertSink,
)


@pytest.fixture
def alert():
    return CompensationAlert(
        order_id="O1",
        reservation_id="RSV-abc",
        items=(OrderItem("X", 2), OrderItem("Y", 1)),
        reason=FailureReason.PAYMENT_DECLINED,
        error_type="InventoryError",
        error_message="warehouse offline",
    )


class TestCompensationAlert:
    def test_summary(self, alert):
        summary = alert.summary
        assert "RSV-abc" in summary
        assert "O1" in summary
        assert "payment_declined" in summary
        assert "Xx2, Yx1" in summary

    def test_to_dict(self, alert):
        data = alert.to_dict()
        assert data["items"] == [{"sku": "X", "quantity": 2}, {"sku": "Y", "quantity": 1}]
        assert data["reason"] == "payment_declined"
        assert "raised_at" in data


class TestSinks:
    def test_sinks_satisfy_protocol(self):
        assert isinstance(LoggingAlertSink(), CompensationAlertSink)
        assert isinstance(InMemoryAlertSink(), CompensationAlertSink)
        assert isinstance(FanOutAlertSink(), CompensationAlertSink)

    @pytest.mark.asyncio
    async def test_logging_sink_logs_critical(self, alert, caplog):
        with caplog.at_level(logging.CRITICAL, logger="possaga.alerts"):
            await LoggingAlertSink().emit(alert)

        assert len(caplog.records) == 1
        record = caplog.records[0]
        assert record.levelno == logging.CRITICAL
        assert "COMPENSATION FAILED" in record.getMessage()
        assert record.alert["reservation_id"] == "RSV-abc"

    @pytest.mark.asyncio
    async def test_in_memory_sink(self, alert):
        sink = InMemoryAlertSink()
        await sink.emit(alert)

        assert sink.for_order("O1") == [alert]
        assert sink.for_order("O2") == []
        assert sink.clear() == 1
        assert sink.alerts == []

    @pytest.mark.asyncio
    async def test_fan_out_survives_failing_sink(self, alert):
        class Broken:
            async def emit(self, alert):
                raise RuntimeError("pager offline")

        first, last = InMemoryAlertSink(), InMemoryAlertSink()

        await FanOutAlertSink(first, Broken(), last).emit(alert)

        assert first.alerts == [alert]
        assert last.alerts == [alert]


@pytest.mark.asyncio
async def test_default_sink_reports_failed_release(inventory, payment, order, caplog):
    """With no sink configured, failed releases still reach the logs"""
    payment.charge_error = PaymentDeclinedError("declined")
    inventory.release_error = InventoryError("down")

    with caplog.at_level(logging.CRITICAL, logger="possaga.alerts"):
        await TransactionOrchestrator(inventory, payment).process(order)

    assert any("COMPENSATION FAILED" in r.getMessage() for r in caplog.records)
