"""
In-memory storage implementation for retained outcomes

Provides a simple process-local outcome store for development, tests and
single-process deployments. Outcomes are lost on process restart.
"""

import asyncio
import heapq
import sys
import time
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from possaga.storage.base import OutcomeStore
from possaga.types import Outcome


class InMemoryOutcomeStore(OutcomeStore):
    """
    In-memory implementation of outcome storage

    Expiry uses a monotonic clock, injectable for tests. Every put first
    evicts whatever has expired, so the map only holds outcomes that are
    still inside their retention window.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._outcomes: dict[str, tuple[Outcome, float | None]] = {}
        # (expires_at, order_id), may hold stale pairs for overwritten ids
        self._expiry_heap: list[tuple[float, str]] = []
        self._lock = asyncio.Lock()
        self._clock = clock

    def _is_expired(self, expires_at: float | None) -> bool:
        return expires_at is not None and self._clock() >= expires_at

    async def get(self, order_id: str) -> Outcome | None:
        async with self._lock:
            entry = self._outcomes.get(order_id)
            if entry is None:
                return None
            outcome, expires_at = entry
            if self._is_expired(expires_at):
                del self._outcomes[order_id]
                return None
            return outcome

    async def put(self, outcome: Outcome, ttl: timedelta | None = None) -> None:
        expires_at = self._clock() + ttl.total_seconds() if ttl is not None else None
        async with self._lock:
            self._evict_expired()
            self._outcomes[outcome.order_id] = (outcome, expires_at)
            if expires_at is not None:
                heapq.heappush(self._expiry_heap, (expires_at, outcome.order_id))

    async def delete(self, order_id: str) -> bool:
        async with self._lock:
            return self._outcomes.pop(order_id, None) is not None

    async def cleanup_expired(self) -> int:
        async with self._lock:
            return self._evict_expired()

    def _evict_expired(self) -> int:
        """Pop due heap entries; caller holds the lock."""
        now = self._clock()
        removed = 0
        while self._expiry_heap and self._expiry_heap[0][0] <= now:
            expires_at, order_id = heapq.heappop(self._expiry_heap)
            entry = self._outcomes.get(order_id)
            if entry is not None and entry[1] == expires_at:
                del self._outcomes[order_id]
                removed += 1
        return removed

    async def health_check(self) -> dict[str, Any]:
        async with self._lock:
            return {
                "status": "healthy",
                "storage_type": "in_memory",
                "total_outcomes": len(self._outcomes),
                "memory_usage_bytes": self._estimate_memory_usage(),
                "timestamp": datetime.now(UTC).isoformat(),
            }

    def _estimate_memory_usage(self) -> int:
        """Very approximate, for monitoring only"""
        return sum(sys.getsizeof(entry) for entry in self._outcomes.values())

    def get_outcome_count(self) -> int:
        """Get current outcome count (synchronous for testing)"""
        return len(self._outcomes)

    async def clear_all(self) -> int:
        """Clear all outcomes (for testing purposes)"""
        async with self._lock:
            count = len(self._outcomes)
            self._outcomes.clear()
            self._expiry_heap.clear()
            return count
