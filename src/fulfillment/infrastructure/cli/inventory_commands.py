"""CLI commands for stock management."""

from __future__ import annotations

import click

from fulfillment.application.show_inventory import ShowInventoryHandler
from fulfillment.application.stock_admin import AdjustStockHandler, RestockHandler
from fulfillment.domain.exceptions import DomainException
from fulfillment.domain.model.product import DEFAULT_MIN_STOCK, Product
from fulfillment.domain.model.value_objects import Money
from fulfillment.infrastructure.bootstrap import inventory_ledger, product_repository, settings


@click.command("add")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Unit price (e.g. 15990).")
@click.option("--stock", default=0, type=int, show_default=True)
@click.option("--min-stock", default=DEFAULT_MIN_STOCK, type=int, show_default=True)
def inventory_add(product_id: str, name: str, price: str, stock: int, min_stock: int) -> None:
    """Seed a catalog entry for the fulfillment core."""
    try:
        product = Product(
            id=product_id,
            name=name,
            price=Money.of(price, settings().currency),
            stock=stock,
            min_stock=min_stock,
        )
        product_repository().add(product)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product {product.id} '{product.name}' at {product.price}, stock {product.stock}")


@click.command("show")
@click.option("--alerts", is_flag=True, default=False, help="Only low / critical / out of stock.")
def inventory_show(alerts: bool) -> None:
    """Show current stock levels."""
    handler = ShowInventoryHandler(product_repo=product_repository())
    lines = handler.handle(alerts_only=alerts)

    if not lines:
        click.echo("No inventory records found.")
        return

    click.echo(f"{'ID':<10} {'Product':<24} {'Stock':>7} {'Min':>5} {'Alert':>9}")
    click.echo("-" * 59)
    for line in lines:
        click.echo(
            f"{line.product_id:<10} {line.product_name:<24} {line.stock:>7} "
            f"{line.min_stock:>5} {line.severity or '':>9}"
        )


@click.command("restock")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int, help="Units received.")
def inventory_restock(product_id: str, quantity: int) -> None:
    """Add received units to a product's stock."""
    handler = RestockHandler(inventory_ledger(), product_repository())

    try:
        new_stock = handler.handle(product_id, quantity)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Stock for '{product_id}' is now {new_stock}")


@click.command("adjust")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--stock", "new_stock", required=True, type=int, help="Counted stock.")
@click.option("--reason", default="", help="Why the count changed.")
def inventory_adjust(product_id: str, new_stock: int, reason: str) -> None:
    """Correct a product's stock to a counted value."""
    handler = AdjustStockHandler(inventory_ledger())

    try:
        previous = handler.handle(product_id, new_stock, reason)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Stock for '{product_id}' adjusted {previous} -> {new_stock}")
