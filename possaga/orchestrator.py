# ============================================
# FILE: possaga/orchestrator.py
# ============================================

"""
TransactionOrchestrator - reserve inventory, charge payment, compensate.

One ``process(order)`` call walks a small state machine:

    ┌───────┐
    │ START │  validate order (ContractViolation if malformed)
    └───┬───┘
        ▼
    ┌───────────┐  reserve fails
    │ RESERVING │ ─────────────────────────────────────┐
    └─────┬─────┘                                      │
          ▼                                            │
    ┌──────────┐                                       │
    │ RESERVED │                                       │
    └─────┬────┘                                       │
          ▼                                            │
    ┌──────────┐  charge fails   ┌──────────────┐      │
    │ CHARGING │ ──────────────► │ COMPENSATING │      │
    └─────┬────┘                 └──────┬───────┘      │
          ▼                             ▼              ▼
    ┌─────────┐                      ┌────────┐
    │ SETTLED │                      │ FAILED │ ◄──────┘
    └─────────┘                      └────────┘

Release is attempted exactly once, and only when the reservation
succeeded and the charge did not. A failed release never changes the
failure reason; it is recorded on the Outcome and sent to the alert sink.

Idempotency: outcomes are retained per order identifier for the
configured window. A duplicate submission while the first attempt is in
flight joins that attempt; a duplicate after it finished gets the
retained outcome. Either way no side effect is repeated.

Cancellation: callers wait through ``asyncio.shield``. Abandoning the wait
never aborts an attempt, so a reservation is never left uncompensated
because a caller timed out.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING, Any, ClassVar

from possaga.core.config import OrchestratorConfig, get_config
from possaga.core.exceptions import (
    CompensationFailedError,
    IdempotencyConflictError,
    InventoryError,
    InvalidStateTransitionError,
    PaymentDeclinedError,
    PaymentUnavailableError,
)
from possaga.core.logger import get_logger
from possaga.monitoring.alerts import CompensationAlert
from possaga.monitoring.logging import transaction_logger
from possaga.types import (
    FailureReason,
    Order,
    Outcome,
    PaymentReceipt,
    ReservationToken,
    TransactionState,
)

if TYPE_CHECKING:
    from possaga.capabilities.base import InventoryCapability, PaymentCapability

logger = get_logger(__name__)


@dataclass
class TransactionAttempt:
    """
    Mutable state of one orchestration attempt.

    Lives only inside ``TransactionOrchestrator._run``; the token never
    leaves it.
    """

    VALID_TRANSITIONS: ClassVar[dict[TransactionState, tuple[TransactionState, ...]]] = {
        TransactionState.START: (TransactionState.RESERVING,),
        TransactionState.RESERVING: (TransactionState.RESERVED, TransactionState.FAILED),
        TransactionState.RESERVED: (TransactionState.CHARGING,),
        TransactionState.CHARGING: (TransactionState.SETTLED, TransactionState.COMPENSATING),
        TransactionState.COMPENSATING: (TransactionState.FAILED,),
        TransactionState.SETTLED: (),  # Terminal state
        TransactionState.FAILED: (),  # Terminal state
    }

    order: Order
    state: TransactionState = TransactionState.START
    token: ReservationToken | None = None
    receipt: PaymentReceipt | None = None
    history: list[TransactionState] = field(default_factory=lambda: [TransactionState.START])
    started_at: float = field(default_factory=time.perf_counter)

    def transition(self, target: TransactionState) -> None:
        if target not in self.VALID_TRANSITIONS[self.state]:
            raise InvalidStateTransitionError(self.order.order_id, self.state, target)

        previous = self.state
        self.state = target
        self.history.append(target)
        transaction_logger.state_changed(self.order.order_id, previous, target)

    @property
    def elapsed(self) -> float:
        return time.perf_counter() - self.started_at


class TransactionOrchestrator:
    """
    Sequences inventory reservation and payment with compensation.

    Example:
        >>> orchestrator = TransactionOrchestrator(inventory, payment)
        >>> outcome = await orchestrator.process(order)
        >>> if outcome.is_succeeded:
        ...     print(outcome.receipt.charge_id)
        ... else:
        ...     print(outcome.reason, outcome.caller_guidance)

    ``process`` only raises ContractViolation (malformed order, identifier
    reused for a different order) and storage errors raised while looking
    up a previous outcome. Every business failure comes back as an Outcome.
    """

    def __init__(
        self,
        inventory: InventoryCapability,
        payment: PaymentCapability,
        config: OrchestratorConfig | None = None,
    ):
        self._inventory = inventory
        self._payment = payment
        self.config = config or get_config()

        # order_id -> (order, attempt task). Entries leave when the task finishes.
        self._inflight: dict[str, tuple[Order, asyncio.Task[Outcome]]] = {}

    @property
    def store(self):
        return self.config.outcome_store

    @property
    def metrics(self) -> Any:
        return self.config.metrics_collector

    @property
    def inflight_count(self) -> int:
        return len(self._inflight)

    # ==========================================================================
    # Public API
    # ==========================================================================

    async def process(self, order: Order) -> Outcome:
        """
        Run (or replay) the transaction for ``order`` and return its Outcome.

        Raises:
            ContractViolation: The order is malformed
            IdempotencyConflictError: The identifier was used for another order
        """
        return await self.submit(order)

    def submit(self, order: Order) -> asyncio.Future[Outcome]:
        """
        Start the transaction and return a future resolving to its Outcome.

        Must be called from a running event loop. Cancelling the returned
        future stops the wait, not the transaction.

        Raises:
            ContractViolation: The order is malformed
            IdempotencyConflictError: The identifier is in flight for another order
        """
        order.validate()

        entry = self._inflight.get(order.order_id)
        if entry is not None:
            inflight_order, task = entry
            if inflight_order != order:
                raise IdempotencyConflictError(order.order_id)
            logger.info(f"Order {order.order_id} already in flight, joining existing attempt")
            self._record("record_replay")
            return asyncio.shield(task)

        task = asyncio.get_running_loop().create_task(
            self._execute(order), name=f"possaga-{order.order_id}"
        )
        self._inflight[order.order_id] = (order, task)
        task.add_done_callback(partial(self._forget, order.order_id))
        self._record("set_inflight", len(self._inflight))
        return asyncio.shield(task)

    async def lookup(self, order_id: str) -> Outcome | None:
        """Return the retained outcome for an identifier without side effects."""
        return await self.store.get(order_id)

    async def drain(self) -> None:
        """Wait until every in-flight attempt reached a terminal state."""
        tasks = [task for _, task in self._inflight.values()]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ==========================================================================
    # Attempt execution
    # ==========================================================================

    def _forget(self, order_id: str, task: asyncio.Task[Outcome]) -> None:
        entry = self._inflight.get(order_id)
        if entry is not None and entry[1] is task:
            del self._inflight[order_id]
        self._record("set_inflight", len(self._inflight))

    async def _execute(self, order: Order) -> Outcome:
        retained = await self.store.get(order.order_id)
        if retained is not None:
            if retained.order != order:
                raise IdempotencyConflictError(order.order_id)
            transaction_logger.idempotent_replay(order.order_id, retained.status)
            self._record("record_replay")
            return retained

        outcome = await self._run(order)

        try:
            await self.store.put(outcome, ttl=self.config.idempotency_retention_window)
        except Exception as e:
            # Side effects already happened: return the outcome regardless
            logger.error(
                f"Failed to retain outcome for order {order.order_id}: {e}",
                exc_info=True,
            )

        self._record("record_outcome", outcome)
        return outcome

    async def _run(self, order: Order) -> Outcome:
        attempt = TransactionAttempt(order=order)
        transaction_logger.transaction_started(
            order.order_id, len(order.items), order.total, order.currency
        )

        # Reserve
        attempt.transition(TransactionState.RESERVING)
        try:
            attempt.token = await self._inventory.reserve(order.items)
        except Exception as e:
            if not isinstance(e, InventoryError):
                logger.error(f"Unexpected error reserving order {order.order_id}: {e}", exc_info=True)
            transaction_logger.inventory_unavailable(order.order_id, e)
            attempt.transition(TransactionState.FAILED)
            # Nothing was reserved, so inventory is trivially consistent
            outcome = Outcome.failed(
                order,
                FailureReason.INVENTORY_UNAVAILABLE,
                compensation_applied=True,
                error_message=str(e),
                duration=attempt.elapsed,
            )
            return self._finish(outcome)

        attempt.transition(TransactionState.RESERVED)
        transaction_logger.inventory_reserved(order.order_id, attempt.token.token_id)

        # Charge
        attempt.transition(TransactionState.CHARGING)
        try:
            receipt = await self._payment.charge(order.total, order.currency)
        except PaymentDeclinedError as e:
            reason, error = FailureReason.PAYMENT_DECLINED, e
        except Exception as e:
            if not isinstance(e, PaymentUnavailableError):
                logger.error(f"Unexpected error charging order {order.order_id}: {e}", exc_info=True)
            reason, error = FailureReason.PAYMENT_UNAVAILABLE, e
        else:
            attempt.receipt = receipt
            attempt.transition(TransactionState.SETTLED)
            transaction_logger.payment_charged(
                order.order_id, receipt.charge_id, receipt.amount, receipt.currency
            )
            return self._finish(Outcome.succeeded(order, receipt, duration=attempt.elapsed))

        transaction_logger.payment_failed(order.order_id, reason, error)

        # Compensate
        attempt.transition(TransactionState.COMPENSATING)
        compensation_failure = await self._compensate(attempt, reason)
        attempt.transition(TransactionState.FAILED)

        outcome = Outcome.failed(
            order,
            reason,
            compensation_applied=compensation_failure is None,
            compensation_attempted=True,
            error_message=str(error),
            compensation_error=str(compensation_failure) if compensation_failure else None,
            duration=attempt.elapsed,
        )
        return self._finish(outcome)

    async def _compensate(
        self, attempt: TransactionAttempt, reason: FailureReason
    ) -> CompensationFailedError | None:
        """Release the reservation once. Returns the failure, if any.

        Capability errors are captured, never raised. Reaching here without a
        token is a programming error and raises ``InvalidStateTransitionError``.
        """
        order_id = attempt.order.order_id
        token = attempt.token
        if token is None:
            raise InvalidStateTransitionError(order_id, attempt.state, TransactionState.COMPENSATING)

        transaction_logger.compensation_started(order_id, token.token_id)
        started = time.perf_counter()
        try:
            result = await self._inventory.release(token)
        except Exception as e:
            failure = CompensationFailedError(order_id, token, e)
            transaction_logger.compensation_failed(order_id, token.token_id, e)
            self._record("record_compensation", False)
            await self._alert(
                CompensationAlert(
                    order_id=order_id,
                    reservation_id=token.token_id,
                    items=attempt.order.items,
                    reason=reason,
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
            )
            return failure

        transaction_logger.compensation_completed(
            order_id, token.token_id, (time.perf_counter() - started) * 1000
        )
        logger.debug(f"Release of {token.token_id} returned {result}")
        self._record("record_compensation", True)
        return None

    async def _alert(self, alert: CompensationAlert) -> None:
        sink = self.config.compensation_alert_sink
        try:
            await sink.emit(alert)
        except Exception as e:
            logger.critical(
                f"Alert sink failed; unreleased reservation needs manual attention: {alert.summary} ({e})",
                exc_info=True,
            )

    def _finish(self, outcome: Outcome) -> Outcome:
        transaction_logger.transaction_finished(
            outcome.order_id, outcome.status, outcome.reason, outcome.duration * 1000
        )
        return outcome

    def _record(self, method: str, *args: Any) -> None:
        """Forward to the metrics collector. Metrics never break a transaction."""
        collector = self.metrics
        if collector is None:
            return
        try:
            getattr(collector, method)(*args)
        except Exception as e:
            logger.warning(f"Metrics collector {type(collector).__name__}.{method} failed: {e}")
