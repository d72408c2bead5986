"""CLI commands for the product catalog."""

from __future__ import annotations

import click

from orderflow.domain.exceptions import DomainException
from orderflow.infrastructure.bootstrap import Container

# Catalog loaded by `orderflow seed`: (name, price, stock)
SEED_PRODUCTS = [
    ("Wireless Bluetooth Headphones", "99.99", 50),
    ("Smartphone Case - Clear", "19.99", 100),
    ("Cotton T-Shirt", "24.99", 75),
    ("Programming Book - Python", "49.99", 30),
    ("Coffee Maker", "79.99", 25),
    ("Laptop Stand", "39.99", 40),
    ("Denim Jeans", "59.99", 60),
    ("Garden Tools Set", "89.99", 20),
    ("Fitness Tracker", "129.99", 35),
    ("Cookbook - Healthy Recipes", "29.99", 45),
]


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Price (e.g. 15.00).")
@click.option("--stock", default=0, show_default=True, type=int, help="Initial stock.")
@click.option("--id", "product_id", default=None, help="Product ID (auto-assigned if omitted).")
@click.pass_obj
def product_add(app: Container, name: str, price: str, stock: int, product_id: str | None) -> None:
    """Add a new product to the catalog."""
    try:
        product = app.add_product().handle(
            name=name, price=price, stock=stock, product_id=product_id
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Product #{product.id} '{product.name}' added at {product.price} "
        f"(stock={product.stock})"
    )


@click.command("list")
@click.pass_obj
def product_list(app: Container) -> None:
    """List all products in the catalog."""
    lines = app.show_inventory().handle()

    if not lines:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Name':<32} {'Price':>10} {'Available':>10} {'Active':>7}")
    click.echo("-" * 69)
    for p in lines:
        active = "yes" if p.active else "no"
        click.echo(
            f"{p.product_id:<6} {p.product_name:<32} {p.price:>10} {p.available:>10} {active:>7}"
        )


@click.command("seed")
@click.pass_obj
def seed(app: Container) -> None:
    """Load a sample catalog into an empty store."""
    if app.show_inventory().handle():
        raise click.ClickException("Catalog is not empty; refusing to seed.")

    handler = app.add_product()
    for name, price, stock in SEED_PRODUCTS:
        handler.handle(name=name, price=price, stock=stock)
    click.echo(f"Seeded {len(SEED_PRODUCTS)} products.")
