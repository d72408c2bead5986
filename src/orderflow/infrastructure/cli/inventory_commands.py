"""CLI commands for inventory management."""

from __future__ import annotations

import click

from orderflow.domain.exceptions import DomainException
from orderflow.infrastructure.bootstrap import Container


@click.command("set")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int, help="Total quantity in stock.")
@click.pass_obj
def inventory_set(app: Container, product_id: str, quantity: int) -> None:
    """Set the on-hand stock of a product."""
    try:
        line = app.set_inventory().handle(product_id, quantity)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Inventory for '{line.product_name}' set to {line.stock} "
        f"(reserved={line.reserved}, available={line.available})"
    )


@click.command("show")
@click.pass_obj
def inventory_show(app: Container) -> None:
    """Show current inventory levels."""
    lines = app.show_inventory().handle()

    if not lines:
        click.echo("No inventory records found.")
        return

    click.echo(f"{'ID':<6} {'Product':<32} {'Stock':>8} {'Reserved':>10} {'Available':>10}")
    click.echo("-" * 70)
    for line in lines:
        click.echo(
            f"{line.product_id:<6} {line.product_name:<32} {line.stock:>8} "
            f"{line.reserved:>10} {line.available:>10}"
        )


@click.command("audit")
@click.pass_obj
def inventory_audit(app: Container) -> None:
    """Check reserved stock against the orders holding reservations."""
    discrepancies = app.reconcile_inventory().audit()

    if not discrepancies:
        click.echo("Inventory is consistent.")
        return

    for d in discrepancies:
        click.echo(
            f"#{d.product_id}: {d.problem} (stock={d.stock}, "
            f"reserved={d.reserved_stock}, expected={d.expected_reserved})"
        )
    raise SystemExit(1)


@click.command("reconcile")
@click.pass_obj
def inventory_reconcile(app: Container) -> None:
    """Settle reservations left behind by interrupted operations."""
    report = app.reconcile_inventory().handle()
    click.echo(
        f"Committed {len(report.committed)}, released {len(report.released)}, "
        f"failed {len(report.failed)}."
    )
    if report.failed:
        raise SystemExit(1)
