"""CLI commands for the Order aggregate."""

from __future__ import annotations

from pathlib import Path

import click

from fulfillment.application.attach_proof import AttachProofHandler
from fulfillment.application.dto import OrderDTO, ProofFile
from fulfillment.application.order_manager import TransitionOutcome
from fulfillment.application.show_order import ShowOrderHandler
from fulfillment.domain.exceptions import DomainException
from fulfillment.domain.model.order import OrderStatus
from fulfillment.infrastructure.bootstrap import (
    offline_path,
    order_manager,
    order_repository,
    settings,
)
from fulfillment.infrastructure.storage.local_proof_storage import LocalProofStorage

_ADVANCE_TARGETS = [
    OrderStatus.PREPARING.value,
    OrderStatus.SHIPPED.value,
    OrderStatus.DELIVERED.value,
]


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order #{dto.id}  (status={dto.status})")
    click.echo(f"Customer: {dto.customer_name} <{dto.customer_email}>")
    click.echo(f"Payment:  {dto.payment_method}   Delivery: {dto.delivery_type}")
    click.echo(f"Created:  {dto.created_at}   Updated: {dto.updated_at}")
    if dto.payment_proof_ref:
        click.echo(f"Proof:    {dto.payment_proof_ref}")
    click.echo()
    click.echo(f"  {'Product':<24} {'Qty':>5} {'Price':>12} {'Total':>12}")
    click.echo(f"  {'-'*56}")
    for item in dto.items:
        click.echo(
            f"  {item.product_name:<24} {item.quantity:>5} {item.unit_price:>12} {item.line_total:>12}"
        )
    click.echo(f"  {'-'*56}")
    click.echo(f"  {'Order Total':<30} {dto.total:>25}")


def _report(order_id: int, outcome: TransitionOutcome, done: str) -> None:
    if outcome == TransitionOutcome.INVALID:
        raise click.ClickException(f"Order #{order_id}: transition not allowed from its current status")
    if outcome == TransitionOutcome.ALREADY_APPLIED:
        click.echo(f"Order #{order_id} was already {done}.")
    else:
        click.echo(f"Order #{order_id} {done}.")


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(order_id: int) -> None:
    """Show details of an existing order."""
    handler = ShowOrderHandler(order_repo=order_repository())

    try:
        dto = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("verify")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to verify.")
def order_verify(order_id: int) -> None:
    """Confirm a bank transfer after checking the receipt."""
    try:
        outcome = offline_path().confirm(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _report(order_id, outcome, "confirmed")


@click.command("advance")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--to", "target", required=True, type=click.Choice(_ADVANCE_TARGETS))
def order_advance(order_id: int, target: str) -> None:
    """Move a confirmed order along preparing -> shipped -> delivered."""
    try:
        outcome = order_manager().transition(order_id, OrderStatus(target))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _report(order_id, outcome, target)


@click.command("cancel")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to cancel.")
def order_cancel(order_id: int) -> None:
    """Cancel an order (releases its stock if payment was still pending)."""
    try:
        outcome = order_manager().transition(order_id, OrderStatus.CANCELLED)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _report(order_id, outcome, "cancelled")


@click.command("attach-proof")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option(
    "--proof",
    "proof_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
def order_attach_proof(order_id: int, proof_path: Path) -> None:
    """Attach a transfer receipt to an order still waiting for payment."""
    cfg = settings()
    handler = AttachProofHandler(
        LocalProofStorage(cfg.data_dir / "proofs"),
        order_manager(cfg),
        max_proof_bytes=cfg.proof_max_bytes,
    )
    proof = ProofFile(filename=proof_path.name, payload=proof_path.read_bytes())

    try:
        outcome = handler.handle(order_id, proof)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _report(order_id, outcome, "sent to verification")
