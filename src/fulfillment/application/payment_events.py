"""Application service: apply hosted-payment provider events.

The provider may deliver the same notification several times and in any
order. Each event is applied through the Order Record Manager with the
provider's event id as idempotency key, so a repeat is a no-op and a
confirmation for an already-cancelled order is rejected. Provider events
only ever move hosted-payment orders; offline transfers are confirmed by
staff.
"""

from __future__ import annotations

import logging

from fulfillment.application.order_manager import OrderRecordManager, TransitionOutcome
from fulfillment.application.payment_paths import HostedPaymentPath
from fulfillment.application.ports import PaymentEvent, PaymentGateway
from fulfillment.domain.model.order import OrderStatus, PaymentMethod

log = logging.getLogger(__name__)

APPROVED_STATUSES = frozenset({"approved"})
FAILED_STATUSES = frozenset({"rejected", "cancelled"})
# "pending", "in_process" and anything unknown leave the order waiting.

# A failed attempt may be delivered after another attempt was approved.
_CANCELLABLE_ON_FAILURE = frozenset({OrderStatus.PENDING_PAYMENT, OrderStatus.CANCELLED})


class PaymentEventHandler:

    def __init__(
        self,
        hosted_path: HostedPaymentPath,
        manager: OrderRecordManager,
        gateway: PaymentGateway | None = None,
    ) -> None:
        self._hosted_path = hosted_path
        self._manager = manager
        self._gateway = gateway

    def handle(self, event: PaymentEvent) -> TransitionOutcome | None:
        """Apply one provider event. Returns None for events that change nothing."""
        prefix = f"[Order: {event.order_id}]"
        status = event.provider_status.lower()

        if status not in APPROVED_STATUSES and status not in FAILED_STATUSES:
            log.info(f"{prefix} Payment {event.event_id} is {status}, still waiting")
            return None

        order = self._manager.get(event.order_id)
        if order.payment_method != PaymentMethod.HOSTED_PAYMENT:
            log.warning(
                f"{prefix} Payment event {event.event_id} ({status}) ignored: "
                f"order is paid by {order.payment_method.value}"
            )
            return TransitionOutcome.INVALID

        if status in APPROVED_STATUSES:
            outcome = self._hosted_path.confirm(event.order_id, event.event_id)
        else:
            outcome = self._manager.transition(
                event.order_id,
                OrderStatus.CANCELLED,
                event.event_id,
                expected_from=_CANCELLABLE_ON_FAILURE,
            )

        if outcome == TransitionOutcome.INVALID:
            log.warning(f"{prefix} Payment event {event.event_id} ({status}) ignored: invalid transition")
        else:
            log.info(f"{prefix} Payment event {event.event_id} ({status}): {outcome.value}")
        return outcome

    def handle_notification(self, payment_id: str) -> TransitionOutcome | None:
        """Resolve a webhook's payment id with the gateway, then apply it."""
        if self._gateway is None:
            raise RuntimeError("No payment gateway configured")
        return self.handle(self._gateway.get_payment(payment_id))
