import click

from orderflow.config import ConfigurationError, Settings
from orderflow.infrastructure.bootstrap import Container
from orderflow.infrastructure.cli.cart_commands import cart_add, cart_show
from orderflow.infrastructure.cli.inventory_commands import (
    inventory_audit,
    inventory_reconcile,
    inventory_set,
    inventory_show,
)
from orderflow.infrastructure.cli.order_commands import (
    order_checkout,
    order_list,
    order_pay,
    order_show,
    order_status,
)
from orderflow.infrastructure.cli.product_commands import product_add, product_list, seed
from orderflow.infrastructure.cli.sweeper_commands import sweeper_run
from orderflow.infrastructure.logging import configure_logging


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """orderflow: inventory reservation and order lifecycle"""
    if ctx.obj is not None:
        return
    try:
        settings = Settings.from_env()
    except ConfigurationError as exc:
        raise click.ClickException(str(exc))
    configure_logging(settings.environment, settings.log_level)
    ctx.obj = Container.from_settings(settings)


@cli.group()
def order() -> None:
    """Check out, pay for and track orders."""


@cli.group()
def product() -> None:
    """Manage the product catalog."""


@cli.group()
def cart() -> None:
    """Stage items for checkout."""


@cli.group()
def inventory() -> None:
    """Inspect and correct stock levels."""


@cli.group()
def sweeper() -> None:
    """Release reservations of expired orders."""


# Register subcommands
order.add_command(order_checkout)
order.add_command(order_list)
order.add_command(order_pay)
order.add_command(order_show)
order.add_command(order_status)
product.add_command(product_add)
product.add_command(product_list)
cart.add_command(cart_add)
cart.add_command(cart_show)
inventory.add_command(inventory_audit)
inventory.add_command(inventory_reconcile)
inventory.add_command(inventory_set)
inventory.add_command(inventory_show)
sweeper.add_command(sweeper_run)
cli.add_command(seed)
