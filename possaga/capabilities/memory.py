"""
In-memory inventory and payment capabilities

Used by the test suite and the ``possaga simulate`` command. Both keep a
journal of every call so tests can assert on call counts and arguments,
and both support failure injection.

Not suitable for production use as state is lost on process restart.
"""

import asyncio
import uuid
from collections.abc import Mapping, Sequence
from decimal import Decimal

from possaga.core.exceptions import InventoryError, PaymentError
from possaga.core.logger import get_logger
from possaga.types import OrderItem, PaymentReceipt, RefundReceipt, ReleaseResult, ReservationToken

logger = get_logger(__name__)


class InMemoryInventory:
    """
    Stock levels kept in a dict.

    Reservations are all-or-nothing: stock is checked for every item
    before anything is decremented.

    Failure injection:
        reserve_error: raised by every reserve() call while set
        release_error: raised by every release() call while set
        latency: seconds to sleep inside each call
    """

    def __init__(self, stock: Mapping[str, int] | None = None, latency: float = 0.0):
        self._stock: dict[str, int] = dict(stock or {})
        self._reservations: dict[str, tuple[OrderItem, ...]] = {}
        self._lock = asyncio.Lock()

        self.latency = latency
        self.reserve_error: Exception | None = None
        self.release_error: Exception | None = None

        self.reserve_calls: list[tuple[OrderItem, ...]] = []
        self.release_calls: list[ReservationToken] = []

    def available(self, sku: str) -> int:
        return self._stock.get(sku, 0)

    def restock(self, sku: str, quantity: int) -> None:
        self._stock[sku] = self._stock.get(sku, 0) + quantity

    @property
    def active_reservations(self) -> dict[str, tuple[OrderItem, ...]]:
        return dict(self._reservations)

    async def reserve(self, items: Sequence[OrderItem]) -> ReservationToken:
        items = tuple(items)
        self.reserve_calls.append(items)
        if self.latency:
            await asyncio.sleep(self.latency)

        if self.reserve_error is not None:
            raise self.reserve_error

        async with self._lock:
            needed: dict[str, int] = {}
            for item in items:
                needed[item.sku] = needed.get(item.sku, 0) + item.quantity

            short = {
                sku: {"requested": qty, "available": self._stock.get(sku, 0)}
                for sku, qty in needed.items()
                if self._stock.get(sku, 0) < qty
            }
            if short:
                msg = f"Insufficient stock for {', '.join(sorted(short))}"
                raise InventoryError(msg, details=short)

            for sku, qty in needed.items():
                self._stock[sku] -= qty

            token = ReservationToken(token_id=f"RSV-{uuid.uuid4().hex[:12]}", items=items)
            self._reservations[token.token_id] = items

        logger.debug(f"Reserved {token.token_id}: {len(items)} items")
        return token

    async def release(self, token: ReservationToken) -> ReleaseResult:
        self.release_calls.append(token)
        if self.latency:
            await asyncio.sleep(self.latency)

        if self.release_error is not None:
            raise self.release_error

        async with self._lock:
            items = self._reservations.pop(token.token_id, None)
            if items is None:
                return ReleaseResult.ALREADY_RELEASED

            for item in items:
                self._stock[item.sku] = self._stock.get(item.sku, 0) + item.quantity

        logger.debug(f"Released {token.token_id}")
        return ReleaseResult.RELEASED


class InMemoryPayment:
    """
    Payment processor that always approves unless told otherwise.

    Failure injection:
        charge_error: raised by every charge() call while set
            (use PaymentDeclinedError or PaymentUnavailableError)
        latency: seconds to sleep inside each call
    """

    def __init__(self, latency: float = 0.0):
        self._charges: dict[str, PaymentReceipt] = {}
        self._refunds: dict[str, RefundReceipt] = {}
        self._lock = asyncio.Lock()

        self.latency = latency
        self.charge_error: Exception | None = None

        self.charge_calls: list[tuple[Decimal, str]] = []
        self.refund_calls: list[PaymentReceipt] = []

    @property
    def charges(self) -> dict[str, PaymentReceipt]:
        return dict(self._charges)

    async def charge(self, amount: Decimal, currency: str) -> PaymentReceipt:
        self.charge_calls.append((amount, currency))
        if self.latency:
            await asyncio.sleep(self.latency)

        if self.charge_error is not None:
            raise self.charge_error

        receipt = PaymentReceipt(
            charge_id=f"CHG-{uuid.uuid4().hex[:12]}", amount=amount, currency=currency
        )
        async with self._lock:
            self._charges[receipt.charge_id] = receipt

        logger.debug(f"Charged {receipt.charge_id}: {amount} {currency}")
        return receipt

    async def refund(self, receipt: PaymentReceipt) -> RefundReceipt:
        self.refund_calls.append(receipt)
        if self.latency:
            await asyncio.sleep(self.latency)

        async with self._lock:
            if receipt.charge_id not in self._charges:
                msg = f"Unknown charge {receipt.charge_id}"
                raise PaymentError(msg, charge_reference=receipt.charge_id)

            # Refunding twice returns the first refund
            existing = self._refunds.get(receipt.charge_id)
            if existing is not None:
                return existing

            refund = RefundReceipt(
                refund_id=f"REF-{receipt.charge_id}",
                charge_id=receipt.charge_id,
                amount=receipt.amount,
                currency=receipt.currency,
            )
            self._refunds[receipt.charge_id] = refund

        logger.info(f"Refunded {receipt.charge_id}: {receipt.amount} {receipt.currency}")
        return refund
