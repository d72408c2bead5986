"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from orderflow.application.dto import OrderDTO
from orderflow.domain.exceptions import DomainException
from orderflow.domain.model.order import OrderStatus
from orderflow.domain.model.value_objects import (
    Customer,
    PaymentMethod,
    ShippingAddress,
)
from orderflow.infrastructure.bootstrap import Container

_STATUSES = [s.value for s in OrderStatus]
_METHODS = [m.value for m in PaymentMethod]


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order #{dto.id} {dto.order_number}  (status={dto.status})")
    click.echo(f"Customer: {dto.user_id}")
    click.echo(f"Ship to:  {dto.shipping_address}")
    click.echo(f"Payment:  {dto.payment_method}")
    click.echo(f"Created:  {dto.created_at.strftime('%Y-%m-%d %H:%M UTC')}")
    if dto.status == OrderStatus.PENDING_PAYMENT.value:
        click.echo(f"Expires:  {dto.expires_at.strftime('%Y-%m-%d %H:%M:%S UTC')}")
    if dto.notes:
        click.echo(f"Notes:    {dto.notes}")
    click.echo()

    click.echo(f"  {'Product':<32} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*59}")
    for item in dto.items:
        click.echo(
            f"  {item.product_name:<32} {item.quantity:>5} "
            f"{item.price_at_purchase:>10} {item.line_total:>10}"
        )
    click.echo(f"  {'-'*59}")
    click.echo(f"  {'Order Total':<39} {dto.total_amount:>20}")

    if dto.payments:
        click.echo()
        click.echo("Payment attempts:")
        for p in dto.payments:
            reason = f" ({p.failure_reason})" if p.failure_reason else ""
            click.echo(f"  {p.transaction_id}  {p.status:<8} {p.amount:>10}{reason}")


@click.command("checkout")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
@click.option("--email", required=True, help="Customer email.")
@click.option("--name", required=True, help="Customer name.")
@click.option("--street", required=True)
@click.option("--city", required=True)
@click.option("--state", required=True)
@click.option("--zip", "zip_code", required=True)
@click.option("--country", required=True)
@click.option(
    "--payment-method",
    type=click.Choice(_METHODS, case_sensitive=False),
    default=PaymentMethod.CREDIT_CARD.value,
    show_default=True,
)
@click.option("--notes", default=None, help="Optional order notes.")
@click.pass_obj
def order_checkout(
    app: Container,
    user_id: str,
    email: str,
    name: str,
    street: str,
    city: str,
    state: str,
    zip_code: str,
    country: str,
    payment_method: str,
    notes: str | None,
) -> None:
    """Turn a user's cart into an order awaiting payment."""
    try:
        customer = Customer(user_id=user_id, email=email, name=name)
        address = ShippingAddress(
            street=street, city=city, state=state, zip_code=zip_code, country=country
        )
        result = app.checkout().handle(
            customer,
            address,
            PaymentMethod.parse(payment_method),
            notes=notes,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(result.order)
    click.echo()
    click.echo(
        f"Stock is held until {result.expires_at.strftime('%H:%M:%S UTC')}; "
        f"pay with: orderflow order pay --id {result.order.id} --user {user_id}"
    )


@click.command("pay")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to pay.")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
@click.pass_obj
def order_pay(app: Container, order_id: int, user_id: str) -> None:
    """Pay for an order awaiting payment."""
    try:
        result = app.pay_order().handle(order_id, user_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Order #{order_id} paid: {result.payment.amount} "
        f"(transaction {result.payment.transaction_id})"
    )


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
@click.pass_obj
def order_show(app: Container, order_id: int, user_id: str) -> None:
    """Show details of an existing order."""
    try:
        dto = app.show_order().handle(order_id, user_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("list")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
@click.option("--status", type=click.Choice(_STATUSES, case_sensitive=False), default=None)
@click.pass_obj
def order_list(app: Container, user_id: str, status: str | None) -> None:
    """List a user's orders, newest first."""
    try:
        orders = app.list_orders().handle(user_id, status)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not orders:
        click.echo("No orders found.")
        return

    click.echo(f"{'ID':<6} {'Order number':<38} {'Status':<16} {'Total':>10}")
    click.echo("-" * 73)
    for o in orders:
        click.echo(f"{o.id:<6} {o.order_number:<38} {o.status:<16} {o.total_amount:>10}")


@click.command("status")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to update.")
@click.option(
    "--to", "target", required=True, type=click.Choice(_STATUSES, case_sensitive=False)
)
@click.pass_obj
def order_status(app: Container, order_id: int, target: str) -> None:
    """Move an order to another status (administrative)."""
    try:
        dto = app.update_order_status().handle(order_id, target)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} is now {dto.status}.")
