"""Notification Dispatcher: best-effort side channel for order events.

The order record is the source of truth. A channel that fails is logged
and skipped; the failure never reaches the caller and never rolls back
the order or stock change that triggered it.
"""

from __future__ import annotations

import logging

from fulfillment.application.ports import Audience, NotificationChannel
from fulfillment.domain.model.order import Order, OrderStatus, PaymentMethod
from fulfillment.domain.model.product import Product

log = logging.getLogger(__name__)

_CUSTOMER_MESSAGES: dict[OrderStatus, str] = {
    OrderStatus.PENDING_PAYMENT: "We are waiting for your payment.",
    OrderStatus.PENDING_VERIFICATION: (
        "We received your transfer receipt and will confirm your payment shortly."
    ),
    OrderStatus.CONFIRMED: "Your payment was confirmed.",
    OrderStatus.PREPARING: "We are preparing your order.",
    OrderStatus.SHIPPED: "Your order is on its way.",
    OrderStatus.DELIVERED: "Your order was delivered. Thank you for shopping with us!",
    OrderStatus.CANCELLED: "Your order was cancelled.",
}


def order_reference(order_id: int | None) -> str:
    return f"#{order_id:06d}" if order_id is not None else "#------"


class NotificationDispatcher:

    def __init__(self, channels: list[NotificationChannel] | None = None) -> None:
        self._channels = list(channels or [])

    def dispatch(self, order_id: int | None, audience: Audience, message: str) -> int:
        """Send *message* on every channel. Returns how many deliveries succeeded."""
        delivered = 0
        for channel in self._channels:
            try:
                channel.send(order_id, audience, message)
            except Exception as exc:
                log.warning(
                    f"[Order: {order_id}] NotificationFailed on "
                    f"{type(channel).__name__} ({audience.value}): {exc}"
                )
                continue
            delivered += 1
        return delivered

    # --- Message builders -----------------------------------------------------

    def order_received(self, order: Order) -> None:
        ref = order_reference(order.id)
        lines = [f"Hi {order.customer.name}! Your order {ref} was received."]
        if order.payment_method == PaymentMethod.OFFLINE_TRANSFER:
            lines.append("Payment method: bank transfer.")
        else:
            lines.append("Payment method: online payment.")
        lines.append(_CUSTOMER_MESSAGES[order.status])
        lines.append(f"Total: {order.total}")
        self.dispatch(order.id, Audience.CUSTOMER, "\n".join(lines))
        self.dispatch(
            order.id,
            Audience.STAFF,
            f"New order {ref} from {order.customer.name} ({order.customer.email}), "
            f"{order.payment_method.value}, total {order.total}, status {order.status.value}",
        )

    def status_changed(self, order: Order, previous: OrderStatus) -> None:
        ref = order_reference(order.id)
        self.dispatch(
            order.id,
            Audience.CUSTOMER,
            f"Order {ref}: {_CUSTOMER_MESSAGES[order.status]}",
        )
        self.dispatch(
            order.id,
            Audience.STAFF,
            f"Order {ref} moved {previous.value} -> {order.status.value}",
        )

    def low_stock(self, product: Product) -> None:
        self.dispatch(
            None,
            Audience.STAFF,
            f"Stock {product.stock_severity} for {product.name} ({product.id}): "
            f"{product.stock} left, minimum {product.min_stock}",
        )
