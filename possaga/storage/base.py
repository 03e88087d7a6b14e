"""
Outcome storage interface.

The orchestrator keeps a mapping from order identifier to terminal
Outcome so duplicate submissions are answered without repeating side
effects. The mapping lives behind this interface so it can be shared by
several orchestrator processes (e.g. via Redis).
"""

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any

from possaga.types import Outcome


class OutcomeStore(ABC):
    """
    Abstract base class for outcome persistence.

    Entries expire after the ``ttl`` passed to ``put``; an expired entry
    must behave exactly like a missing one.
    """

    @abstractmethod
    async def get(self, order_id: str) -> Outcome | None:
        """
        Load the retained outcome for an order identifier.

        Returns:
            The outcome, or None if unknown or expired
        """
        ...

    @abstractmethod
    async def put(self, outcome: Outcome, ttl: timedelta | None = None) -> None:
        """
        Retain a terminal outcome under its order identifier.

        Args:
            outcome: Terminal outcome
            ttl: Retention window; None keeps it until deleted
        """
        ...

    @abstractmethod
    async def delete(self, order_id: str) -> bool:
        """
        Forget an order identifier.

        Returns:
            True if deleted, False if not found
        """
        ...

    async def cleanup_expired(self) -> int:
        """
        Drop expired entries. Backends with native expiry return 0.

        Returns:
            Number of entries removed
        """
        return 0

    @abstractmethod
    async def health_check(self) -> dict[str, Any]:
        """Check storage health"""
        ...

    async def close(self) -> None:  # noqa: B027
        """Release backend resources"""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
