"""
Tests for the in-memory inventory and payment capabilities
"""

import asyncio
from decimal import Decimal

import pytest

from possaga import (
    InventoryCapability,
    InventoryError,
    OrderItem,
    PaymentCapability,
    PaymentDeclinedError,
    PaymentError,
    ReleaseResult,
)
from possaga.capabilities import InMemoryInventory, InMemoryPayment


class TestProtocols:
    def test_in_memory_classes_satisfy_protocols(self):
        assert isinstance(InMemoryInventory(), InventoryCapability)
        assert isinstance(InMemoryPayment(), PaymentCapability)

    def test_payment_is_not_inventory(self):
        assert not isinstance(InMemoryPayment(), InventoryCapability)


class TestInMemoryInventory:
    @pytest.mark.asyncio
    async def test_reserve_decrements_stock(self, inventory):
        token = await inventory.reserve([OrderItem("X", 3), OrderItem("Y", 1)])

        assert token.token_id.startswith("RSV-")
        assert token.items == (OrderItem("X", 3), OrderItem("Y", 1))
        assert inventory.available("X") == 7
        assert inventory.available("Y") == 4
        assert token.token_id in inventory.active_reservations

    @pytest.mark.asyncio
    async def test_reserve_is_all_or_nothing(self, inventory):
        with pytest.raises(InventoryError) as exc_info:
            await inventory.reserve([OrderItem("X", 1), OrderItem("Y", 99)])

        assert exc_info.value.details == {"Y": {"requested": 99, "available": 5}}
        assert inventory.available("X") == 10

    @pytest.mark.asyncio
    async def test_repeated_sku_is_summed(self, inventory):
        with pytest.raises(InventoryError):
            await inventory.reserve([OrderItem("Y", 3), OrderItem("Y", 3)])

    @pytest.mark.asyncio
    async def test_unknown_sku(self, inventory):
        with pytest.raises(InventoryError, match="Z"):
            await inventory.reserve([OrderItem("Z", 1)])

    @pytest.mark.asyncio
    async def test_release_restores_stock(self, inventory):
        token = await inventory.reserve([OrderItem("X", 4)])

        assert await inventory.release(token) == ReleaseResult.RELEASED
        assert inventory.available("X") == 10
        assert inventory.active_reservations == {}

    @pytest.mark.asyncio
    async def test_release_twice_is_harmless(self, inventory):
        token = await inventory.reserve([OrderItem("X", 4)])
        await inventory.release(token)

        assert await inventory.release(token) == ReleaseResult.ALREADY_RELEASED
        assert inventory.available("X") == 10

    @pytest.mark.asyncio
    async def test_injected_errors(self, inventory):
        inventory.reserve_error = InventoryError("offline")
        with pytest.raises(InventoryError, match="offline"):
            await inventory.reserve([OrderItem("X", 1)])

        inventory.reserve_error = None
        token = await inventory.reserve([OrderItem("X", 1)])

        inventory.release_error = InventoryError("offline")
        with pytest.raises(InventoryError):
            await inventory.release(token)
        assert inventory.available("X") == 9

    @pytest.mark.asyncio
    async def test_calls_are_journaled(self, inventory):
        inventory.reserve_error = InventoryError("offline")
        with pytest.raises(InventoryError):
            await inventory.reserve([OrderItem("X", 1)])

        assert inventory.reserve_calls == [(OrderItem("X", 1),)]

    @pytest.mark.asyncio
    async def test_concurrent_reservations_never_oversell(self):
        inventory = InMemoryInventory({"X": 3}, latency=0.001)

        results = await asyncio.gather(
            *[inventory.reserve([OrderItem("X", 1)]) for _ in range(5)], return_exceptions=True
        )

        assert sum(1 for r in results if not isinstance(r, Exception)) == 3
        assert inventory.available("X") == 0

    def test_restock(self, inventory):
        inventory.restock("Z", 4)
        assert inventory.available("Z") == 4


class TestInMemoryPayment:
    @pytest.mark.asyncio
    async def test_charge(self, payment):
        receipt = await payment.charge(Decimal("12.50"), "EUR")

        assert receipt.charge_id.startswith("CHG-")
        assert receipt.amount == Decimal("12.50")
        assert receipt.currency == "EUR"
        assert receipt.charge_id in payment.charges

    @pytest.mark.asyncio
    async def test_declined_charge_is_not_recorded(self, payment):
        payment.charge_error = PaymentDeclinedError("declined")

        with pytest.raises(PaymentDeclinedError):
            await payment.charge(Decimal("1"), "USD")

        assert payment.charges == {}
        assert payment.charge_calls == [(Decimal("1"), "USD")]

    @pytest.mark.asyncio
    async def test_refund(self, payment):
        receipt = await payment.charge(Decimal("5"), "USD")

        refund = await payment.refund(receipt)

        assert refund.charge_id == receipt.charge_id
        assert refund.amount == Decimal("5")

    @pytest.mark.asyncio
    async def test_refund_is_idempotent(self, payment):
        receipt = await payment.charge(Decimal("5"), "USD")

        first = await payment.refund(receipt)
        second = await payment.refund(receipt)

        assert first is second
        assert len(payment.refund_calls) == 2

    @pytest.mark.asyncio
    async def test_refund_unknown_charge(self, payment):
        other = InMemoryPayment()
        receipt = await other.charge(Decimal("5"), "USD")

        with pytest.raises(PaymentError) as exc_info:
            await payment.refund(receipt)

        assert exc_info.value.charge_reference == receipt.charge_id
