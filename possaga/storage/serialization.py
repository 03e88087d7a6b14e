"""
JSON serialization of outcomes for storage backends.

Decimals are written as strings to preserve precision, datetimes as ISO
8601, enums by value.
"""

import json
from datetime import datetime
from decimal import Decimal
from typing import Any

from possaga.storage.errors import SerializationError
from possaga.types import (
    FailureReason,
    Order,
    OrderItem,
    Outcome,
    OutcomeStatus,
    PaymentReceipt,
)


def order_to_dict(order: Order) -> dict[str, Any]:
    return {
        "order_id": order.order_id,
        "items": [{"sku": item.sku, "quantity": item.quantity} for item in order.items],
        "total": str(order.total),
        "currency": order.currency,
    }


def order_from_dict(data: dict[str, Any]) -> Order:
    return Order(
        order_id=data["order_id"],
        items=tuple(OrderItem(sku=i["sku"], quantity=i["quantity"]) for i in data["items"]),
        total=Decimal(data["total"]),
        currency=data["currency"],
    )


def outcome_to_dict(outcome: Outcome) -> dict[str, Any]:
    receipt = outcome.receipt
    return {
        "status": outcome.status.value,
        "order": order_to_dict(outcome.order),
        "receipt": (
            {
                "charge_id": receipt.charge_id,
                "amount": str(receipt.amount),
                "currency": receipt.currency,
                "charged_at": receipt.charged_at.isoformat(),
            }
            if receipt
            else None
        ),
        "reason": outcome.reason.value if outcome.reason else None,
        "compensation_applied": outcome.compensation_applied,
        "compensation_attempted": outcome.compensation_attempted,
        "error_message": outcome.error_message,
        "compensation_error": outcome.compensation_error,
        "completed_at": outcome.completed_at.isoformat(),
        "duration": outcome.duration,
    }


def outcome_from_dict(data: dict[str, Any]) -> Outcome:
    receipt_data = data.get("receipt")
    receipt = (
        PaymentReceipt(
            charge_id=receipt_data["charge_id"],
            amount=Decimal(receipt_data["amount"]),
            currency=receipt_data["currency"],
            charged_at=datetime.fromisoformat(receipt_data["charged_at"]),
        )
        if receipt_data
        else None
    )
    reason = data.get("reason")
    return Outcome(
        status=OutcomeStatus(data["status"]),
        order=order_from_dict(data["order"]),
        receipt=receipt,
        reason=FailureReason(reason) if reason else None,
        compensation_applied=data.get("compensation_applied", True),
        compensation_attempted=data.get("compensation_attempted", False),
        error_message=data.get("error_message"),
        compensation_error=data.get("compensation_error"),
        completed_at=datetime.fromisoformat(data["completed_at"]),
        duration=data.get("duration", 0.0),
    )


def serialize_outcome(outcome: Outcome) -> str:
    """
    Serialize an outcome to a JSON string.

    Raises:
        SerializationError: If serialization fails
    """
    try:
        return json.dumps(outcome_to_dict(outcome), ensure_ascii=False)
    except (TypeError, ValueError, AttributeError) as e:
        raise SerializationError(
            message=f"Failed to serialize outcome: {e}",
            operation="serialize",
            data_type=type(outcome).__name__,
        ) from e


def deserialize_outcome(data: str | bytes) -> Outcome:
    """
    Deserialize a JSON string produced by serialize_outcome.

    Raises:
        SerializationError: If the payload is not a valid outcome
    """
    try:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        return outcome_from_dict(json.loads(data))
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise SerializationError(
            message=f"Failed to deserialize outcome: {e}",
            operation="deserialize",
            data_type="Outcome",
        ) from e
