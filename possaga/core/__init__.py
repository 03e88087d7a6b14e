# ============================================
# FILE: possaga/core/__init__.py
# ============================================
"""
Core module for possaga - configuration, exceptions and logging.
"""

from possaga.core.config import OrchestratorConfig, configure, get_config, reset_config
from possaga.core.exceptions import (
    CompensationFailedError,
    ContractViolation,
    IdempotencyConflictError,
    InvalidStateTransitionError,
    InventoryError,
    PaymentDeclinedError,
    PaymentError,
    PaymentUnavailableError,
    PosSagaError,
)
from possaga.core.logger import get_logger, set_logger

__all__ = [
    # Config
    "OrchestratorConfig",
    "configure",
    "get_config",
    "reset_config",
    # Exceptions
    "PosSagaError",
    "ContractViolation",
    "IdempotencyConflictError",
    "InvalidStateTransitionError",
    "InventoryError",
    "PaymentError",
    "PaymentDeclinedError",
    "PaymentUnavailableError",
    "CompensationFailedError",
    # Logger
    "get_logger",
    "set_logger",
]
