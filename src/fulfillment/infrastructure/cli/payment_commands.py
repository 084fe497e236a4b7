"""CLI commands for hosted payment provider events."""

from __future__ import annotations

import click
from pydantic import ValidationError as PayloadError

from fulfillment.application.ports import PaymentEvent
from fulfillment.domain.exceptions import DomainException
from fulfillment.infrastructure.bootstrap import payment_event_handler, settings
from fulfillment.infrastructure.gateway.models import WebhookNotification
from fulfillment.infrastructure.gateway.signature import verify_webhook_signature


def _echo_outcome(order_id: int, outcome) -> None:
    if outcome is None:
        click.echo(f"Order #{order_id}: payment still pending, nothing changed.")
    else:
        click.echo(f"Order #{order_id}: {outcome.value}")


@click.command("confirm")
@click.option("--order", "order_id", required=True, type=int, help="Order ID.")
@click.option("--event-id", required=True, help="Provider event id (idempotency key).")
@click.option("--status", "provider_status", default="approved", show_default=True)
def payment_confirm(order_id: int, event_id: str, provider_status: str) -> None:
    """Apply a provider payment event by hand (e.g. a replay)."""
    event = PaymentEvent(order_id=order_id, event_id=event_id, provider_status=provider_status)

    try:
        outcome = payment_event_handler().handle(event)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _echo_outcome(order_id, outcome)


@click.command("webhook")
@click.option("--body", "body_file", required=True, type=click.File("r"), help="Raw notification body.")
@click.option("--signature", required=True, help="x-signature header.")
@click.option("--request-id", required=True, help="x-request-id header.")
def payment_webhook(body_file, signature: str, request_id: str) -> None:
    """Verify and apply a provider webhook notification."""
    try:
        notification = WebhookNotification.model_validate_json(body_file.read())
    except PayloadError as exc:
        raise click.ClickException(f"Malformed notification: {exc}")

    data_id = notification.data.id if notification.data else None
    try:
        verify_webhook_signature(
            settings().mercadopago_webhook_secret, signature, request_id, data_id
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if notification.type != "payment" or data_id is None:
        click.echo(f"Ignored notification of type {notification.type!r}.")
        return

    try:
        handler = payment_event_handler()
        event_outcome = handler.handle_notification(data_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Payment {data_id}: {event_outcome.value if event_outcome else 'pending'}")
