"""
Simulation CLI command

Runs one order through the orchestrator against in-memory capabilities,
with failure injection, and renders the resulting outcome.
"""

import asyncio
import json
import sys

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from possaga.capabilities.memory import InMemoryInventory, InMemoryPayment
from possaga.core.config import OrchestratorConfig
from possaga.core.exceptions import (
    ContractViolation,
    InventoryError,
    PaymentDeclinedError,
    PaymentUnavailableError,
)
from possaga.monitoring.alerts import InMemoryAlertSink
from possaga.orchestrator import TransactionOrchestrator
from possaga.storage.serialization import outcome_to_dict
from possaga.types import Order, Outcome

console = Console()


def _parse_pair(value: str, option: str) -> tuple[str, int]:
    sku, sep, qty = value.rpartition(":")
    if not sep or not sku:
        msg = f"{option} expects SKU:QTY, got {value!r}"
        raise click.BadParameter(msg)
    try:
        return sku, int(qty)
    except ValueError as e:
        msg = f"{option} quantity must be an integer, got {qty!r}"
        raise click.BadParameter(msg) from e


@click.command(name="simulate")
@click.option("--order-id", "-o", default="O1", show_default=True, help="Order identifier")
@click.option("--item", "-i", "items", multiple=True, required=True, help="Line item as SKU:QTY (repeatable)")
@click.option("--total", "-t", required=True, help="Order total, e.g. 20.00")
@click.option("--currency", "-c", default="USD", show_default=True, help="Three-letter currency code")
@click.option("--stock", "-s", multiple=True, help="Stock level as SKU:QTY (default: enough for the order)")
@click.option("--fail-reserve", is_flag=True, help="Inventory backend unreachable")
@click.option("--decline", is_flag=True, help="Payment declined")
@click.option("--payment-unavailable", is_flag=True, help="Payment backend unreachable")
@click.option("--fail-release", is_flag=True, help="Release after a failed charge also fails")
@click.option("--duplicates", "-d", default=1, show_default=True, type=click.IntRange(1, 100), help="Concurrent submissions of the same order")
@click.option("--json", "as_json", is_flag=True, help="Print the outcome as JSON")
def simulate_cmd(
    order_id: str,
    items: tuple[str, ...],
    total: str,
    currency: str,
    stock: tuple[str, ...],
    fail_reserve: bool,
    decline: bool,
    payment_unavailable: bool,
    fail_release: bool,
    duplicates: int,
    as_json: bool,
):
    """
    Simulate one transaction against in-memory backends.

    \b
    Examples:
        possaga simulate -i X:2 -t 20.00
        possaga simulate -i X:2 -t 20.00 --decline --fail-release
        possaga simulate -i X:2 -t 20.00 --duplicates 5
    """
    if decline and payment_unavailable:
        raise click.UsageError("--decline and --payment-unavailable are mutually exclusive")

    pairs = [_parse_pair(value, "--item") for value in items]
    try:
        order = Order.create(order_id, pairs, total=total, currency=currency)
        order.validate()
    except ContractViolation as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    stock_levels = dict(_parse_pair(value, "--stock") for value in stock)
    if not stock_levels:
        for sku, qty in pairs:
            stock_levels[sku] = stock_levels.get(sku, 0) + qty

    inventory = InMemoryInventory(stock_levels)
    payment = InMemoryPayment()
    alerts = InMemoryAlertSink()

    if fail_reserve:
        inventory.reserve_error = InventoryError("inventory service unreachable")
    if decline:
        payment.charge_error = PaymentDeclinedError("card declined")
    if payment_unavailable:
        payment.charge_error = PaymentUnavailableError("payment gateway timeout")
    if fail_release:
        inventory.release_error = InventoryError("inventory service unreachable during release")

    orchestrator = TransactionOrchestrator(
        inventory, payment, config=OrchestratorConfig(compensation_alert_sink=alerts)
    )

    outcomes = asyncio.run(_run(orchestrator, order, duplicates))

    outcome = outcomes[0]
    if as_json:
        click.echo(json.dumps(outcome_to_dict(outcome), indent=2))
    else:
        _display_outcome(outcome, inventory, payment, alerts, len(outcomes))

    sys.exit(0 if outcome.is_succeeded else 1)


async def _run(orchestrator: TransactionOrchestrator, order: Order, duplicates: int) -> list[Outcome]:
    return list(await asyncio.gather(*[orchestrator.process(order) for _ in range(duplicates)]))


def _display_outcome(
    outcome: Outcome,
    inventory: InMemoryInventory,
    payment: InMemoryPayment,
    alerts: InMemoryAlertSink,
    submissions: int,
) -> None:
    color = "green" if outcome.is_succeeded else "red"
    table = Table(title=f"Order {outcome.order_id}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Status", f"[{color}]{outcome.status.value}[/{color}]")
    table.add_row("Total", f"{outcome.order.total} {outcome.order.currency}")
    if outcome.receipt:
        table.add_row("Charge", f"{outcome.receipt.charge_id} ({outcome.receipt.amount})")
    if outcome.reason:
        table.add_row("Reason", outcome.reason.value)
        table.add_row("Compensation applied", str(outcome.compensation_applied))
    table.add_row("Caller guidance", outcome.caller_guidance.value)
    table.add_row("Submissions", str(submissions))
    table.add_row("Reserve calls", str(len(inventory.reserve_calls)))
    table.add_row("Charge calls", str(len(payment.charge_calls)))
    table.add_row("Release calls", str(len(inventory.release_calls)))
    table.add_row("Duration", f"{outcome.duration * 1000:.2f} ms")

    console.print(table)

    for alert in alerts.alerts:
        console.print(Panel.fit(alert.summary, title="Compensation alert", border_style="red"))
