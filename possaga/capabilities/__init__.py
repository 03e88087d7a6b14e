"""
Inventory and payment capability contracts and in-memory implementations.
"""

from possaga.capabilities.base import InventoryCapability, PaymentCapability
from possaga.capabilities.memory import InMemoryInventory, InMemoryPayment

__all__ = [
    "InventoryCapability",
    "PaymentCapability",
    "InMemoryInventory",
    "InMemoryPayment",
]
