"""
Capability contracts consumed by the orchestrator.

The orchestrator never imports a concrete inventory or payment backend.
Anything with the right shape can be injected: a production adapter, an
HTTP client wrapper, or one of the in-memory doubles in
``possaga.capabilities.memory``.

Errors are part of the contract: ``reserve`` and ``release`` raise
``InventoryError``; ``charge`` raises ``PaymentDeclinedError`` or
``PaymentUnavailableError``. Backends are expected to enforce their own
timeouts and surface them as those errors.
"""

from collections.abc import Sequence
from decimal import Decimal
from typing import Protocol, runtime_checkable

from possaga.types import OrderItem, PaymentReceipt, RefundReceipt, ReleaseResult, ReservationToken


@runtime_checkable
class InventoryCapability(Protocol):
    """Reserves and releases stock."""

    async def reserve(self, items: Sequence[OrderItem]) -> ReservationToken:
        """
        Reserve every item or none of them.

        Raises:
            InventoryError: stock is short or the backend is unreachable.
                Nothing is left reserved when this is raised.
        """
        ...

    async def release(self, token: ReservationToken) -> ReleaseResult:
        """
        Release a reservation.

        Must be idempotent: releasing an unknown or already released token
        returns ``ReleaseResult.ALREADY_RELEASED`` instead of failing.

        Raises:
            InventoryError: the release could not be performed.
        """
        ...


@runtime_checkable
class PaymentCapability(Protocol):
    """Charges and refunds money."""

    async def charge(self, amount: Decimal, currency: str) -> PaymentReceipt:
        """
        Charge ``amount`` in ``currency``.

        Raises:
            PaymentDeclinedError: rejected by the customer's instrument.
            PaymentUnavailableError: infrastructure failure or timeout.
        """
        ...

    async def refund(self, receipt: PaymentReceipt) -> RefundReceipt:
        """
        Undo a charge after the fact (manual reconciliation).

        Not used by the orchestrator's compensation path.
        """
        ...
