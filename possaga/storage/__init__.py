"""
Outcome storage: retains terminal outcomes for idempotent replay.
"""

from possaga.storage.backends.memory import InMemoryOutcomeStore
from possaga.storage.base import OutcomeStore
from possaga.storage.errors import SerializationError, StorageConnectionError, StorageError
from possaga.storage.factory import create_outcome_store

__all__ = [
    "OutcomeStore",
    "InMemoryOutcomeStore",
    "create_outcome_store",
    "StorageError",
    "StorageConnectionError",
    "SerializationError",
]
