"""CLI commands for the checkout flow."""

from __future__ import annotations

import uuid
from pathlib import Path

import click

from fulfillment.application.dto import CartItemSpec, CheckoutRequest, CheckoutResult, ProofFile
from fulfillment.domain.exceptions import DomainException, PaymentStepError
from fulfillment.domain.model.order import Customer, DeliveryType
from fulfillment.infrastructure.bootstrap import checkout_handler, hosted_path, offline_path


def _parse_items(raw: str) -> list[CartItemSpec]:
    """Parse 'P1:3,P2:5' into CartItemSpec list."""
    specs: list[CartItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductId:Quantity'."
            )
        product_id, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product_id}'."
            )
        specs.append(CartItemSpec(product_id=product_id.strip(), quantity=qty))
    return specs


def customer_options(func):
    """Options shared by both checkout commands."""
    options = [
        click.option("--token", default=None, help="Checkout attempt id (default: random)."),
        click.option("--name", required=True, help="Customer name."),
        click.option("--email", required=True, help="Customer email."),
        click.option("--phone", required=True, help="Customer phone."),
        click.option("--tax-id", default=None, help="Customer tax id (RUT)."),
        click.option("--address", default=None, help="Delivery address."),
        click.option("--pickup-note", default=None, help="Pickup day / note."),
        click.option(
            "--delivery",
            type=click.Choice([d.value for d in DeliveryType]),
            default=DeliveryType.SHIPMENT.value,
            show_default=True,
        ),
        click.option("--items", required=True, help="Items as 'ProductId:Qty,ProductId:Qty'."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _request(opts: dict, proof: ProofFile | None = None) -> CheckoutRequest:
    return CheckoutRequest(
        token=opts["token"] or uuid.uuid4().hex,
        customer=Customer(
            name=opts["name"],
            email=opts["email"],
            phone=opts["phone"],
            tax_id=opts["tax_id"],
            address=opts["address"],
            pickup_note=opts["pickup_note"],
        ),
        delivery_type=DeliveryType(opts["delivery"]),
        cart=_parse_items(opts["items"]),
        proof=proof,
    )


def _run(request: CheckoutRequest, path) -> CheckoutResult:
    try:
        return checkout_handler().handle(request, path)
    except PaymentStepError as exc:
        raise click.ClickException(f"{exc.user_message} ({exc})")
    except DomainException as exc:
        raise click.ClickException(str(exc))


@click.command("offline")
@customer_options
@click.option(
    "--proof",
    "proof_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Bank transfer receipt.",
)
def checkout_offline(proof_path: Path, **opts) -> None:
    """Check out paying by bank transfer with an uploaded receipt."""
    proof = ProofFile(filename=proof_path.name, payload=proof_path.read_bytes())
    result = _run(_request(opts, proof), offline_path())
    click.echo(f"Order #{result.order_id} received  (status={result.status})")
    click.echo(f"Total: {result.total}")
    click.echo("We will verify your transfer and confirm by email.")


@click.command("hosted")
@customer_options
def checkout_hosted(**opts) -> None:
    """Check out paying online through the hosted payment page."""
    result = _run(_request(opts), hosted_path())
    click.echo(f"Order #{result.order_id} created  (status={result.status})")
    click.echo(f"Total: {result.total}")
    click.echo(f"Complete your payment at: {result.redirect_url}")
