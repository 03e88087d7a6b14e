# ============================================
# FILE: possaga/__init__.py
# ============================================

"""
possaga - Point-of-sale transaction orchestration

Reserves inventory and charges payment through pluggable backends and
keeps the two consistent even though they are not atomic:

- Compensation: a failed charge releases the reservation
- Idempotency: resubmitting an order identifier replays the first outcome
- Cancellation safety: an abandoned caller never leaves stock reserved
- Operator alerts when a release itself fails

Usage:
    >>> from possaga import Order, TransactionOrchestrator
    >>> from possaga.capabilities import InMemoryInventory, InMemoryPayment
    >>>
    >>> orchestrator = TransactionOrchestrator(
    ...     InMemoryInventory({"X": 10}), InMemoryPayment()
    ... )
    >>> order = Order.create("O1", [("X", 2)], total="20.00", currency="USD")
    >>> outcome = await orchestrator.process(order)
    >>> outcome.is_succeeded
    True
"""

from possaga.capabilities import InventoryCapability, PaymentCapability
from possaga.core.config import OrchestratorConfig, configure, get_config
from possaga.core.exceptions import (
    CompensationFailedError,
    ContractViolation,
    IdempotencyConflictError,
    InvalidStateTransitionError,
    InventoryError,
    PaymentDeclinedError,
    PaymentError,
    PaymentUnavailableError,
    PosSagaError,
)
from possaga.monitoring.alerts import CompensationAlert, CompensationAlertSink
from possaga.orchestrator import TransactionAttempt, TransactionOrchestrator
from possaga.types import (
    CallerGuidance,
    FailureReason,
    Order,
    OrderItem,
    Outcome,
    OutcomeStatus,
    PaymentReceipt,
    RefundReceipt,
    ReleaseResult,
    ReservationToken,
    TransactionState,
)

__version__ = "0.1.0"

__all__ = [
    # Orchestrator
    "TransactionOrchestrator",
    "TransactionAttempt",
    # Configuration
    "OrchestratorConfig",
    "configure",
    "get_config",
    # Capabilities
    "InventoryCapability",
    "PaymentCapability",
    # Types
    "Order",
    "OrderItem",
    "Outcome",
    "OutcomeStatus",
    "FailureReason",
    "CallerGuidance",
    "TransactionState",
    "ReservationToken",
    "ReleaseResult",
    "PaymentReceipt",
    "RefundReceipt",
    # Alerts
    "CompensationAlert",
    "CompensationAlertSink",
    # Exceptions
    "PosSagaError",
    "ContractViolation",
    "IdempotencyConflictError",
    "InvalidStateTransitionError",
    "InventoryError",
    "PaymentError",
    "PaymentDeclinedError",
    "PaymentUnavailableError",
    "CompensationFailedError",
]
