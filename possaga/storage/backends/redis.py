"""
Redis storage implementation for retained outcomes

Lets several orchestrator processes share one idempotency map. Expiry is
delegated to Redis (``SET key value PX ttl``).

Requires: pip install redis
"""

from datetime import UTC, datetime, timedelta
from typing import Any

import redis.asyncio as redis

from possaga.storage.base import OutcomeStore
from possaga.storage.errors import StorageConnectionError, StorageError
from possaga.storage.serialization import deserialize_outcome, serialize_outcome
from possaga.types import Outcome


class RedisOutcomeStore(OutcomeStore):
    """
    Redis implementation of outcome storage

    Example:
        >>> async with RedisOutcomeStore("redis://localhost:6379") as store:
        ...     await store.put(outcome, ttl=timedelta(hours=24))
        ...     await store.get(outcome.order_id)
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        key_prefix: str = "possaga:outcome:",
        **redis_kwargs,
    ):
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.redis_kwargs = redis_kwargs
        self._redis = None

    async def _get_redis(self):
        """Get Redis connection, creating if necessary"""
        if self._redis is None:
            try:
                self._redis = redis.from_url(self.redis_url, **self.redis_kwargs)
                await self._redis.ping()  # type: ignore[attr-defined]
            except Exception as e:
                self._redis = None
                msg = f"Failed to connect to Redis: {e}"
                raise StorageConnectionError(msg, backend="redis", url=self.redis_url) from e

        return self._redis

    def _outcome_key(self, order_id: str) -> str:
        return f"{self.key_prefix}{order_id}"

    async def get(self, order_id: str) -> Outcome | None:
        redis_client = await self._get_redis()
        try:
            raw = await redis_client.get(self._outcome_key(order_id))
        except redis.RedisError as e:
            msg = f"Failed to load outcome for {order_id}: {e}"
            raise StorageError(msg) from e

        if raw is None:
            return None
        return deserialize_outcome(raw)

    async def put(self, outcome: Outcome, ttl: timedelta | None = None) -> None:
        redis_client = await self._get_redis()
        payload = serialize_outcome(outcome)
        px = int(ttl.total_seconds() * 1000) if ttl is not None else None
        try:
            await redis_client.set(self._outcome_key(outcome.order_id), payload, px=px)
        except redis.RedisError as e:
            msg = f"Failed to save outcome for {outcome.order_id}: {e}"
            raise StorageError(msg) from e

    async def delete(self, order_id: str) -> bool:
        redis_client = await self._get_redis()
        try:
            deleted = await redis_client.delete(self._outcome_key(order_id))
        except redis.RedisError as e:
            msg = f"Failed to delete outcome for {order_id}: {e}"
            raise StorageError(msg) from e
        return deleted > 0

    async def health_check(self) -> dict[str, Any]:
        try:
            redis_client = await self._get_redis()
            await redis_client.ping()
        except (StorageError, redis.RedisError) as e:
            return {
                "status": "unhealthy",
                "storage_type": "redis",
                "error": str(e),
                "timestamp": datetime.now(UTC).isoformat(),
            }
        return {
            "status": "healthy",
            "storage_type": "redis",
            "timestamp": datetime.now(UTC).isoformat(),
        }

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
