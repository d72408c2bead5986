"""CLI commands for carts."""

from __future__ import annotations

import click

from orderflow.domain.exceptions import DomainException
from orderflow.infrastructure.bootstrap import Container


@click.command("add")
@click.option("--user", "user_id", required=True, help="Cart owner.")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", default=1, show_default=True, type=int, help="Quantity to add.")
@click.pass_obj
def cart_add(app: Container, user_id: str, product_id: str, quantity: int) -> None:
    """Add a product to a user's cart."""
    try:
        cart = app.add_to_cart().handle(user_id, product_id, quantity)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Added {quantity} x #{product_id} to {user_id}'s cart ({cart.total_items} items)")


@click.command("show")
@click.option("--user", "user_id", required=True, help="Cart owner.")
@click.pass_obj
def cart_show(app: Container, user_id: str) -> None:
    """Show a user's cart."""
    cart = app.show_cart().handle(user_id)

    if cart.is_empty:
        click.echo("Cart is empty.")
        return

    click.echo(f"{'Product':<10} {'Qty':>5}")
    click.echo("-" * 16)
    for item in cart.items:
        click.echo(f"{item.product_id:<10} {item.quantity:>5}")
