# ============================================
# FILE: possaga/types.py
# ============================================

"""
All type definitions, enums, and dataclasses

Value objects flowing through a point-of-sale transaction:

- Order / OrderItem: what the caller submits
- ReservationToken / ReleaseResult: what the inventory capability hands back
- PaymentReceipt / RefundReceipt: what the payment capability hands back
- Outcome: the terminal, immutable record of one orchestration attempt
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from possaga.core.exceptions import ContractViolation

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


class TransactionState(Enum):
    """State of one orchestration attempt"""

    START = "start"
    RESERVING = "reserving"
    RESERVED = "reserved"
    CHARGING = "charging"
    COMPENSATING = "compensating"

    SETTLED = "settled"
    """Terminal success."""

    FAILED = "failed"
    """Terminal failure."""

    @property
    def is_terminal(self) -> bool:
        return self in (TransactionState.SETTLED, TransactionState.FAILED)


class OutcomeStatus(Enum):
    """Overall result of a transaction"""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FailureReason(Enum):
    """Business failure kinds captured inside a failed Outcome"""

    INVENTORY_UNAVAILABLE = "inventory_unavailable"
    PAYMENT_DECLINED = "payment_declined"
    PAYMENT_UNAVAILABLE = "payment_unavailable"


class CallerGuidance(Enum):
    """What the point-of-sale front end should tell the cashier/customer"""

    NONE = "none"
    DO_NOT_RETRY = "do_not_retry"
    """Payment declined: ask for another payment method."""

    RETRY_LATER = "retry_later"
    """Temporary failure reserving stock or charging."""

    CONTACT_SUPPORT = "contact_support"
    """Compensation failed: stock may be wrongly held."""


class ReleaseResult(Enum):
    """Result of releasing a reservation"""

    RELEASED = "released"
    ALREADY_RELEASED = "already_released"


# ============================================
# Order
# ============================================


@dataclass(frozen=True)
class OrderItem:
    """A product reference and a quantity."""

    sku: str
    quantity: int

    def problems(self) -> list[str]:
        found = []
        if not isinstance(self.sku, str) or not self.sku.strip():
            found.append(f"item sku must be a non-empty string, got {self.sku!r}")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            found.append(f"item {self.sku!r} quantity must be an integer, got {self.quantity!r}")
        elif self.quantity <= 0:
            found.append(f"item {self.sku!r} quantity must be positive, got {self.quantity}")
        return found


@dataclass(frozen=True)
class Order:
    """
    A customer order submitted to the orchestrator.

    ``order_id`` doubles as the idempotency key: resubmitting the same
    identifier returns the outcome of the first attempt.

    Construction does not validate, so that malformed orders reach the
    orchestrator and are rejected there with a ``ContractViolation``.
    Call ``validate()`` to check invariants up front.
    """

    order_id: str
    items: tuple[OrderItem, ...]
    total: Decimal
    currency: str

    def __post_init__(self) -> None:
        # Accept any iterable of items but store an immutable tuple
        if not isinstance(self.items, tuple) and isinstance(self.items, Iterable):
            object.__setattr__(self, "items", tuple(self.items))

    @classmethod
    def create(
        cls,
        order_id: str,
        items: Iterable[OrderItem | Mapping[str, Any] | tuple[str, int]],
        total: Decimal | str | int | float,
        currency: str,
    ) -> Order:
        """
        Convenience constructor that normalizes loose input.

        Items may be OrderItem instances, ``{"sku": ..., "quantity": ...}``
        mappings or ``(sku, quantity)`` pairs. ``total`` goes through
        ``Decimal(str(total))`` so floats keep their printed value.
        """
        normalized = []
        for item in items:
            if isinstance(item, OrderItem):
                normalized.append(item)
            elif isinstance(item, Mapping):
                normalized.append(OrderItem(sku=item["sku"], quantity=item["quantity"]))
            else:
                sku, quantity = item
                normalized.append(OrderItem(sku=sku, quantity=quantity))

        try:
            amount = total if isinstance(total, Decimal) else Decimal(str(total))
        except InvalidOperation as e:
            msg = "Invalid order"
            raise ContractViolation(msg, order_id=order_id, problems=[f"total {total!r} is not a number"]) from e

        return cls(order_id=order_id, items=tuple(normalized), total=amount, currency=currency)

    def problems(self) -> list[str]:
        """Return every violated invariant (empty list means valid)."""
        found = []

        if not isinstance(self.order_id, str) or not self.order_id.strip():
            found.append(f"order_id must be a non-empty string, got {self.order_id!r}")

        if not self.items:
            found.append("order must contain at least one item")
        for item in self.items or ():
            if not isinstance(item, OrderItem):
                found.append(f"items must be OrderItem instances, got {type(item).__name__}")
                continue
            found.extend(item.problems())

        if not isinstance(self.total, Decimal):
            found.append(f"total must be a Decimal, got {type(self.total).__name__}")
        elif not self.total.is_finite():
            found.append(f"total must be finite, got {self.total}")
        elif self.total < 0:
            found.append(f"total must be non-negative, got {self.total}")

        if not isinstance(self.currency, str) or not _CURRENCY_RE.match(self.currency):
            found.append(f"currency must be a three-letter upper-case code, got {self.currency!r}")

        return found

    def validate(self) -> None:
        """Raise ContractViolation if any invariant is broken."""
        found = self.problems()
        if found:
            msg = "Invalid order"
            order_id = self.order_id if isinstance(self.order_id, str) else None
            raise ContractViolation(msg, order_id=order_id, problems=found)


# ============================================
# Capability handles
# ============================================


@dataclass(frozen=True)
class ReservationToken:
    """Opaque handle for one inventory reservation. Never exposed on an Outcome."""

    token_id: str
    items: tuple[OrderItem, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class PaymentReceipt:
    """Proof of a successful charge."""

    charge_id: str
    amount: Decimal
    currency: str
    charged_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class RefundReceipt:
    """Proof of a refund issued against a charge."""

    refund_id: str
    charge_id: str
    amount: Decimal
    currency: str
    refunded_at: datetime = field(default_factory=lambda: datetime.now(UTC))


# ============================================
# Outcome
# ============================================


@dataclass(frozen=True)
class Outcome:
    """
    Terminal result of one orchestration attempt.

    Either succeeded (``receipt`` set) or failed (``reason`` set). For
    failures, ``compensation_applied`` tells whether inventory is known to
    be in a clean state: it is trivially True when nothing was reserved,
    True when the release went through, False when the release failed
    and an operator has to reconcile.
    """

    status: OutcomeStatus
    order: Order
    receipt: PaymentReceipt | None = None
    reason: FailureReason | None = None
    compensation_applied: bool = True
    compensation_attempted: bool = False
    error_message: str | None = None
    compensation_error: str | None = None
    completed_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    duration: float = 0.0

    @classmethod
    def succeeded(cls, order: Order, receipt: PaymentReceipt, duration: float = 0.0) -> Outcome:
        return cls(status=OutcomeStatus.SUCCEEDED, order=order, receipt=receipt, duration=duration)

    @classmethod
    def failed(
        cls,
        order: Order,
        reason: FailureReason,
        compensation_applied: bool,
        compensation_attempted: bool = False,
        error_message: str | None = None,
        compensation_error: str | None = None,
        duration: float = 0.0,
    ) -> Outcome:
        return cls(
            status=OutcomeStatus.FAILED,
            order=order,
            reason=reason,
            compensation_applied=compensation_applied,
            compensation_attempted=compensation_attempted,
            error_message=error_message,
            compensation_error=compensation_error,
            duration=duration,
        )

    @property
    def order_id(self) -> str:
        return self.order.order_id

    @property
    def is_succeeded(self) -> bool:
        return self.status == OutcomeStatus.SUCCEEDED

    @property
    def is_failed(self) -> bool:
        return self.status == OutcomeStatus.FAILED

    @property
    def needs_reconciliation(self) -> bool:
        """True if a release failed and inventory may be wrongly held."""
        return self.is_failed and not self.compensation_applied

    @property
    def caller_guidance(self) -> CallerGuidance:
        if self.is_succeeded:
            return CallerGuidance.NONE
        if self.needs_reconciliation:
            return CallerGuidance.CONTACT_SUPPORT
        if self.reason == FailureReason.PAYMENT_DECLINED:
            return CallerGuidance.DO_NOT_RETRY
        return CallerGuidance.RETRY_LATER
