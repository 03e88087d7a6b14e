"""
Pytest configuration and shared fixtures for transaction orchestration tests
"""

from decimal import Decimal

import pytest

from possaga import Order, OrderItem, TransactionOrchestrator
from possaga.capabilities import InMemoryInventory, InMemoryPayment
from possaga.core.config import OrchestratorConfig, reset_config
from possaga.core.logger import set_logger
from possaga.monitoring.alerts import InMemoryAlertSink
from possaga.monitoring.metrics import TransactionMetrics
from possaga.storage import InMemoryOutcomeStore

# ============================================
# AUTO-USE FIXTURES
# ============================================


@pytest.fixture(autouse=True)
def reset_global_state():
    """Reset the global config and custom logger around every test."""
    reset_config()
    set_logger(None)
    yield
    reset_config()
    set_logger(None)


# ============================================
# DOMAIN FIXTURES
# ============================================


@pytest.fixture
def order() -> Order:
    """Order{id=O1, items=[{sku=X, qty=2}], total=20.00, currency=USD}"""
    return Order(
        order_id="O1",
        items=(OrderItem(sku="X", quantity=2),),
        total=Decimal("20.00"),
        currency="USD",
    )


@pytest.fixture
def inventory() -> InMemoryInventory:
    return InMemoryInventory({"X": 10, "Y": 5})


@pytest.fixture
def payment() -> InMemoryPayment:
    return InMemoryPayment()


@pytest.fixture
def alerts() -> InMemoryAlertSink:
    return InMemoryAlertSink()


@pytest.fixture
def store() -> InMemoryOutcomeStore:
    return InMemoryOutcomeStore()


@pytest.fixture
def metrics() -> TransactionMetrics:
    return TransactionMetrics()


@pytest.fixture
def config(alerts, store, metrics) -> OrchestratorConfig:
    return OrchestratorConfig(
        compensation_alert_sink=alerts,
        outcome_store=store,
        metrics=metrics,
    )


@pytest.fixture
def orchestrator(inventory, payment, config) -> TransactionOrchestrator:
    return TransactionOrchestrator(inventory, payment, config=config)
