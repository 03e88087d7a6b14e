"""
Outcome store backends.
"""

from possaga.storage.backends.memory import InMemoryOutcomeStore
from possaga.storage.backends.redis import RedisOutcomeStore

__all__ = ["InMemoryOutcomeStore", "RedisOutcomeStore"]
