"""
Tests for outcome serialization
"""

import json
from decimal import Decimal

import pytest

from possaga import FailureReason, Order, Outcome, PaymentReceipt
from possaga.storage import SerializationError
from possaga.storage.serialization import (
    deserialize_outcome,
    order_from_dict,
    order_to_dict,
    outcome_to_dict,
    serialize_outcome,
)


class TestOrderSerialization:
    def test_total_is_written_as_string(self, order):
        data = order_to_dict(order)
        assert data["total"] == "20.00"
        assert data["items"] == [{"sku": "X", "quantity": 2}]

    def test_precision_survives(self, order):
        exact = Order("O1", order.items, Decimal("0.10"), "USD")
        assert order_from_dict(order_to_dict(exact)).total == Decimal("0.10")


class TestOutcomeSerialization:
    def test_succeeded_outcome(self, order):
        receipt = PaymentReceipt("CHG-1", Decimal("20.00"), "USD")
        outcome = Outcome.succeeded(order, receipt, duration=0.25)

        data = json.loads(serialize_outcome(outcome))

        assert data["status"] == "succeeded"
        assert data["receipt"]["amount"] == "20.00"
        assert data["reason"] is None
        assert deserialize_outcome(serialize_outcome(outcome)) == outcome

    def test_failed_outcome_keeps_flags(self, order):
        outcome = Outcome.failed(
            order,
            FailureReason.PAYMENT_DECLINED,
            compensation_applied=False,
            compensation_attempted=True,
            error_message="declined",
            compensation_error="release failed",
        )

        data = outcome_to_dict(outcome)
        assert data["reason"] == "payment_declined"
        assert data["compensation_applied"] is False

        restored = deserialize_outcome(json.dumps(data).encode())
        assert restored.reason == FailureReason.PAYMENT_DECLINED
        assert restored.compensation_error == "release failed"

    @pytest.mark.parametrize("payload", ["not json", "{}", '{"status": "exploded"}'])
    def test_invalid_payload(self, payload):
        with pytest.raises(SerializationError) as exc_info:
            deserialize_outcome(payload)
        assert exc_info.value.operation == "deserialize"

    def test_non_utf8_bytes(self):
        with pytest.raises(SerializationError) as exc_info:
            deserialize_outcome(b"\xff\xfe{}")
        assert exc_info.value.operation == "deserialize"
        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)

    def test_unserializable_outcome(self, order):
        outcome = Outcome.failed(order, FailureReason.PAYMENT_DECLINED, True, error_message=object())

        with pytest.raises(SerializationError) as exc_info:
            serialize_outcome(outcome)
        assert exc_info.value.operation == "serialize"
