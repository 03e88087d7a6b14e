# ============================================
# FILE: possaga/core/exceptions.py
# ============================================

"""
All transaction-related exceptions

Two families live here:

- Contract errors (``ContractViolation`` and subclasses) signal caller or
  programming bugs. They are raised straight to the caller of
  ``TransactionOrchestrator.process``.
- Capability errors (``InventoryError``, ``PaymentError``) are raised by
  inventory and payment backends. The orchestrator catches them and turns
  them into a failed ``Outcome``; they never escape ``process``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from possaga.types import ReservationToken, TransactionState


class PosSagaError(Exception):
    """Base possaga error"""


# ============================================
# Contract errors (raised to the caller)
# ============================================


class ContractViolation(PosSagaError):
    """
    A malformed Order (or misuse of the orchestrator API).

    Carries the offending order identifier and the list of violated
    invariants so the caller can log something useful.
    """

    def __init__(self, message: str, order_id: str | None = None, problems: list[str] | None = None):
        self.order_id = order_id
        self.problems = problems or []
        if self.problems:
            message = f"{message}: {'; '.join(self.problems)}"
        super().__init__(message)


class IdempotencyConflictError(ContractViolation):
    """Order identifier reused with a different order payload."""

    def __init__(self, order_id: str):
        super().__init__(
            f"Order identifier {order_id!r} was already used for a different order",
            order_id=order_id,
        )


class InvalidStateTransitionError(PosSagaError):
    """Raised when an invalid transaction state transition is attempted."""

    def __init__(self, order_id: str, from_state: TransactionState, to_state: TransactionState):
        self.order_id = order_id
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid transition for order {order_id}: {from_state.value} → {to_state.value}"
        )


# ============================================
# Capability errors (captured in the Outcome)
# ============================================


class InventoryError(PosSagaError):
    """Reservation or release failed on the inventory side."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class PaymentError(PosSagaError):
    """Base payment failure. Use one of the two concrete subclasses."""

    def __init__(self, message: str, charge_reference: str | None = None):
        super().__init__(message)
        self.message = message
        self.charge_reference = charge_reference


class PaymentDeclinedError(PaymentError):
    """Charge rejected (customer or payment-method fault). Not retryable with the same instrument."""


class PaymentUnavailableError(PaymentError):
    """Charge infrastructure failure. Retryable by the caller with a fresh identifier."""


class CompensationFailedError(PosSagaError):
    """
    Releasing a reservation after a failed charge did not succeed.

    Never raised out of the orchestrator. It is attached to the failed
    Outcome and to the alert sent to the operator channel.
    """

    def __init__(self, order_id: str, token: ReservationToken, cause: BaseException):
        self.order_id = order_id
        self.token = token
        self.cause = cause
        super().__init__(
            f"Failed to release reservation {token.token_id} for order {order_id}: {cause!s}"
        )
