import click

from fulfillment.infrastructure.bootstrap import settings
from fulfillment.infrastructure.cli.checkout_commands import checkout_hosted, checkout_offline
from fulfillment.infrastructure.cli.inventory_commands import (
    inventory_add,
    inventory_adjust,
    inventory_restock,
    inventory_show,
)
from fulfillment.infrastructure.cli.order_commands import (
    order_advance,
    order_attach_proof,
    order_cancel,
    order_show,
    order_verify,
)
from fulfillment.infrastructure.cli.payment_commands import payment_confirm, payment_webhook
from fulfillment.infrastructure.cli.reservation_commands import (
    reservation_release,
    reservation_sweep,
)
from fulfillment.infrastructure.logging_config import setup_logging


@click.group()
@click.option("--log-file", default=None, help="Also write logs to this file.")
def cli(log_file: str | None) -> None:
    """Storefront order fulfillment core"""
    setup_logging(settings().log_level, log_file)


@cli.group()
def checkout() -> None:
    """Turn a cart into an order."""


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def payment() -> None:
    """Apply hosted payment events."""


@cli.group()
def inventory() -> None:
    """Manage stock."""


@cli.group()
def reservation() -> None:
    """Manage stock reservations."""


# Register subcommands
checkout.add_command(checkout_offline)
checkout.add_command(checkout_hosted)
order.add_command(order_show)
order.add_command(order_verify)
order.add_command(order_advance)
order.add_command(order_cancel)
order.add_command(order_attach_proof)
payment.add_command(payment_confirm)
payment.add_command(payment_webhook)
inventory.add_command(inventory_add)
inventory.add_command(inventory_show)
inventory.add_command(inventory_restock)
inventory.add_command(inventory_adjust)
reservation.add_command(reservation_release)
reservation.add_command(reservation_sweep)
