"""CLI commands for stock reservations."""

from __future__ import annotations

import click

from fulfillment.domain.exceptions import DomainException
from fulfillment.domain.model.reservation import ReleaseResult
from fulfillment.infrastructure.bootstrap import reservation_coordinator, sweep_handler


@click.command("release")
@click.option("--token", required=True, help="Reservation token.")
def reservation_release(token: str) -> None:
    """Return a reservation's stock to the sellable pool."""
    try:
        result = reservation_coordinator().release(token)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if result == ReleaseResult.NOT_FOUND:
        click.echo(f"No open reservation '{token}'.")
    else:
        click.echo(f"Reservation '{token}' released.")


@click.command("sweep")
def reservation_sweep() -> None:
    """Release or cancel checkouts abandoned past the staleness window."""
    try:
        report = sweep_handler().handle()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Released {len(report.released)}, cancelled {len(report.cancelled_orders)} order(s), "
        f"consumed {len(report.consumed)}, kept {len(report.kept)}."
    )
