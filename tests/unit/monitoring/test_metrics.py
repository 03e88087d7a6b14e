"""
Tests for in-process transaction metrics
"""

from decimal import Decimal

import pytest

from possaga import FailureReason, Outcome, PaymentReceipt
from possaga.monitoring.metrics import TransactionMetrics


@pytest.fixture
def succeeded(order):
    return Outcome.succeeded(order, PaymentReceipt("CHG-1", Decimal("20.00"), "USD"), duration=0.2)


@pytest.fixture
def declined(order):
    return Outcome.failed(order, FailureReason.PAYMENT_DECLINED, True, duration=0.4)


class TestTransactionMetrics:
    def test_initial_state(self):
        stats = TransactionMetrics().get_metrics()
        assert stats["total_processed"] == 0
        assert stats["success_rate"] == "0.00%"

    def test_record_outcomes(self, succeeded, declined):
        metrics = TransactionMetrics()
        metrics.record_outcome(succeeded)
        metrics.record_outcome(declined)

        stats = metrics.get_metrics()
        assert stats["total_processed"] == 2
        assert stats["total_succeeded"] == 1
        assert stats["total_failed"] == 1
        assert stats["by_reason"] == {"payment_declined": 1}
        assert stats["average_duration"] == pytest.approx(0.3)
        assert stats["success_rate"] == "50.00%"

    def test_compensations(self):
        metrics = TransactionMetrics()
        metrics.record_compensation(True)
        metrics.record_compensation(False)

        stats = metrics.get_metrics()
        assert stats["total_compensations"] == 2
        assert stats["total_compensation_failures"] == 1

    def test_replays_and_inflight(self):
        metrics = TransactionMetrics()
        metrics.record_replay()
        metrics.set_inflight(3)

        stats = metrics.get_metrics()
        assert stats["total_replays"] == 1
        assert stats["inflight"] == 3

    def test_snapshot_is_a_copy(self, declined):
        metrics = TransactionMetrics()
        metrics.record_outcome(declined)

        metrics.get_metrics()["by_reason"]["payment_declined"] = 99

        assert metrics.get_metrics()["by_reason"] == {"payment_declined": 1}
