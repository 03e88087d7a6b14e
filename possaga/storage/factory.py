"""
Storage Factory - Simplified API for creating outcome stores
"""

from possaga.storage.backends.memory import InMemoryOutcomeStore
from possaga.storage.backends.redis import RedisOutcomeStore
from possaga.storage.base import OutcomeStore


def _create_redis_store(kwargs: dict) -> OutcomeStore:
    return RedisOutcomeStore(
        redis_url=kwargs.get("redis_url") or "redis://localhost:6379",
        key_prefix=kwargs.get("key_prefix") or "possaga:outcome:",
    )


# Registry mapping backend names to factory functions
_STORE_REGISTRY = {
    "memory": lambda kwargs: InMemoryOutcomeStore(),
    "redis": _create_redis_store,
}


def create_outcome_store(
    backend: str = "memory",
    *,
    redis_url: str | None = None,
    key_prefix: str | None = None,
) -> OutcomeStore:
    """
    Create an outcome store backend.

    Args:
        backend: "memory" or "redis"
        redis_url: Redis connection URL (for redis backend)
        key_prefix: Key prefix (for redis backend)

    Raises:
        ValueError: Unknown backend name

    Example:
        >>> store = create_outcome_store("redis", redis_url="redis://cache:6379/2")
    """
    factory = _STORE_REGISTRY.get(backend.lower())
    if factory is None:
        available = ", ".join(sorted(_STORE_REGISTRY))
        msg = f"Unknown outcome store backend: {backend!r}. Available: {available}"
        raise ValueError(msg)
    return factory({"redis_url": redis_url, "key_prefix": key_prefix})
