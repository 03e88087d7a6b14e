"""
Tests for InMemoryOutcomeStore and the store factory
"""

from datetime import timedelta

import pytest

from possaga import FailureReason, Order, Outcome
from possaga.storage import InMemoryOutcomeStore, OutcomeStore, create_outcome_store
from possaga.storage.backends.redis import RedisOutcomeStore


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def outcome(order):
    return Outcome.failed(order, FailureReason.PAYMENT_DECLINED, compensation_applied=True)


class TestInMemoryOutcomeStore:
    @pytest.mark.asyncio
    async def test_put_and_get(self, outcome):
        store = InMemoryOutcomeStore()
        await store.put(outcome)

        assert await store.get("O1") is outcome
        assert store.get_outcome_count() == 1

    @pytest.mark.asyncio
    async def test_get_unknown(self):
        assert await InMemoryOutcomeStore().get("missing") is None

    @pytest.mark.asyncio
    async def test_entry_expires(self, outcome, clock):
        store = InMemoryOutcomeStore(clock=clock)
        await store.put(outcome, ttl=timedelta(seconds=10))

        clock.now = 9.99
        assert await store.get("O1") is outcome

        clock.now = 10.0
        assert await store.get("O1") is None
        assert store.get_outcome_count() == 0

    @pytest.mark.asyncio
    async def test_no_ttl_never_expires(self, outcome, clock):
        store = InMemoryOutcomeStore(clock=clock)
        await store.put(outcome)

        clock.now = 10**9
        assert await store.get("O1") is outcome

    @pytest.mark.asyncio
    async def test_cleanup_expired(self, order, clock):
        store = InMemoryOutcomeStore(clock=clock)
        await store.put(Outcome.failed(order, FailureReason.PAYMENT_DECLINED, True), ttl=timedelta(seconds=1))
        other = Outcome.failed(
            Order("O2", order.items, order.total, order.currency),
            FailureReason.PAYMENT_DECLINED,
            True,
        )
        await store.put(other, ttl=timedelta(seconds=100))

        clock.now = 5
        assert await store.cleanup_expired() == 1
        assert store.get_outcome_count() == 1

    @pytest.mark.asyncio
    async def test_put_evicts_expired_entries(self, order, clock):
        store = InMemoryOutcomeStore(clock=clock)
        for i in range(5):
            o = Order(f"E{i}", order.items, order.total, order.currency)
            await store.put(Outcome.failed(o, FailureReason.PAYMENT_DECLINED, True), ttl=timedelta(seconds=10))

        clock.now = 11
        await store.put(Outcome.failed(order, FailureReason.PAYMENT_DECLINED, True), ttl=timedelta(seconds=10))

        assert store.get_outcome_count() == 1
        assert await store.get("O1") is not None

    @pytest.mark.asyncio
    async def test_overwritten_entry_keeps_new_expiry(self, outcome, clock):
        store = InMemoryOutcomeStore(clock=clock)
        await store.put(outcome, ttl=timedelta(seconds=1))
        await store.put(outcome, ttl=timedelta(seconds=100))

        clock.now = 50

        assert await store.cleanup_expired() == 0
        assert await store.get("O1") is outcome

    @pytest.mark.asyncio
    async def test_delete(self, outcome):
        store = InMemoryOutcomeStore()
        await store.put(outcome)

        assert await store.delete("O1") is True
        assert await store.delete("O1") is False

    @pytest.mark.asyncio
    async def test_health_check(self, outcome):
        store = InMemoryOutcomeStore()
        await store.put(outcome)

        health = await store.health_check()

        assert health["status"] == "healthy"
        assert health["storage_type"] == "in_memory"
        assert health["total_outcomes"] == 1

    @pytest.mark.asyncio
    async def test_clear_all_and_context_manager(self, outcome):
        async with InMemoryOutcomeStore() as store:
            await store.put(outcome)
            assert await store.clear_all() == 1


class TestFactory:
    def test_memory_backend(self):
        assert isinstance(create_outcome_store(), InMemoryOutcomeStore)

    def test_redis_backend(self):
        store = create_outcome_store("Redis", redis_url="redis://cache:6379/1")

        assert isinstance(store, RedisOutcomeStore)
        assert isinstance(store, OutcomeStore)
        assert store.redis_url == "redis://cache:6379/1"
        assert store.key_prefix == "possaga:outcome:"

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Available: memory, redis"):
            create_outcome_store("mongodb")
