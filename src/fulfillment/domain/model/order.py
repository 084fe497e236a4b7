"""Order aggregate, the core of the domain.

The Order is an aggregate root that owns its line items and its status.
Customer, items, total and payment method are frozen at creation; after
that only the status moves (forward, along ``_TRANSITIONS``), plus the
payment proof reference for offline transfers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from fulfillment.domain.exceptions import InvalidTransitionError, ValidationError
from fulfillment.domain.model.value_objects import Money, Quantity


class OrderStatus(Enum):
    PENDING_PAYMENT = "pending_payment"
    PENDING_VERIFICATION = "pending_verification"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


class DeliveryType(Enum):
    SHIPMENT = "shipment"
    PICKUP = "pickup"


class PaymentMethod(Enum):
    OFFLINE_TRANSFER = "offline_transfer"
    HOSTED_PAYMENT = "hosted_payment"


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------
_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING_PAYMENT: frozenset(
        {OrderStatus.PENDING_VERIFICATION, OrderStatus.CONFIRMED, OrderStatus.CANCELLED}
    ),
    OrderStatus.PENDING_VERIFICATION: frozenset(
        {OrderStatus.CONFIRMED, OrderStatus.CANCELLED}
    ),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# Position along the forward path; cancelled sits outside it.
_RANK: dict[OrderStatus, int] = {
    OrderStatus.PENDING_PAYMENT: 0,
    OrderStatus.PENDING_VERIFICATION: 1,
    OrderStatus.CONFIRMED: 2,
    OrderStatus.PREPARING: 3,
    OrderStatus.SHIPPED: 4,
    OrderStatus.DELIVERED: 5,
}

MAX_LINE_ITEMS = 50


@dataclass(frozen=True)
class Customer:
    name: str
    email: str
    phone: str
    tax_id: str | None = None
    address: str | None = None
    pickup_note: str | None = None


@dataclass(frozen=True)
class OrderLineItem:
    """Captures the price snapshot of a product at submission time."""

    product_id: str
    product_name: str
    quantity: Quantity
    unit_price: Money  # locked at submission time
    image: str | None = None

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value


@dataclass
class Order:
    """Aggregate root for storefront orders.

    Use the ``Order.create()`` factory for new orders; it enforces all
    business rules.  The ``__init__`` is intentionally simple so the
    repository can reconstitute persisted orders without re-validating.
    """

    id: int | None
    customer: Customer
    delivery_type: DeliveryType
    payment_method: PaymentMethod
    items: tuple[OrderLineItem, ...]
    total: Money
    status: OrderStatus
    reservation_token: str
    payment_proof_ref: str | None = None
    applied_events: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        customer: Customer,
        delivery_type: DeliveryType,
        payment_method: PaymentMethod,
        items: list[OrderLineItem],
        total: Money,
        reservation_token: str,
        payment_proof_ref: str | None = None,
    ) -> Order:
        """Create a new order, enforcing all invariants.

        The initial status follows the payment method: an offline transfer
        that already carries its proof waits for staff verification,
        everything else waits for payment.
        """
        for label, value in (
            ("Customer name", customer.name),
            ("Customer email", customer.email),
            ("Customer phone", customer.phone),
        ):
            if not value or not value.strip():
                raise ValidationError(f"{label} is required")

        if delivery_type == DeliveryType.SHIPMENT and not (customer.address or "").strip():
            raise ValidationError("A delivery address is required for shipment")

        if not items:
            raise ValidationError("Order must contain at least one item")

        if len(items) > MAX_LINE_ITEMS:
            raise ValidationError(f"Maximum {MAX_LINE_ITEMS} items per order")

        if not reservation_token:
            raise ValidationError("Orders must be backed by a reservation")

        if payment_proof_ref and payment_method != PaymentMethod.OFFLINE_TRANSFER:
            raise ValidationError("Only offline transfers carry a payment proof")

        computed = Money.zero(total.currency)
        for item in items:
            computed = computed + item.line_total
        if computed != total:
            raise ValidationError(
                f"Order total {total} does not match its items ({computed})"
            )

        if payment_method == PaymentMethod.OFFLINE_TRANSFER and payment_proof_ref:
            status = OrderStatus.PENDING_VERIFICATION
        else:
            status = OrderStatus.PENDING_PAYMENT

        return Order(
            id=None,
            customer=customer,
            delivery_type=delivery_type,
            payment_method=payment_method,
            items=tuple(items),
            total=total,
            status=status,
            reservation_token=reservation_token,
            payment_proof_ref=payment_proof_ref,
        )

    # --- State transitions ----------------------------------------------------

    def can_transition_to(self, target: OrderStatus) -> bool:
        return target in _TRANSITIONS[self.status]

    def transition_to(self, target: OrderStatus, idempotency_key: str | None = None) -> None:
        """Move to *target*, recording *idempotency_key* when given.

        Raises InvalidTransitionError for anything that is not an edge of
        the state machine, which covers every backward move.
        """
        if not self.can_transition_to(target):
            raise InvalidTransitionError(self.status.value, target.value)
        self.status = target
        if idempotency_key:
            self.applied_events.append(idempotency_key)
        self.updated_at = datetime.now(timezone.utc)

    def attach_payment_proof(self, proof_ref: str) -> None:
        """Record the transfer proof and hand the order to staff verification."""
        if self.payment_method != PaymentMethod.OFFLINE_TRANSFER:
            raise ValidationError("Only offline transfers carry a payment proof")
        if not proof_ref:
            raise ValidationError("Payment proof reference is required")
        if self.payment_proof_ref:
            raise ValidationError(f"Order #{self.id} already has a payment proof")
        self.transition_to(OrderStatus.PENDING_VERIFICATION)
        self.payment_proof_ref = proof_ref

    # --- Queries --------------------------------------------------------------

    def has_applied(self, idempotency_key: str) -> bool:
        return idempotency_key in self.applied_events

    def has_passed(self, target: OrderStatus) -> bool:
        """True if the order already moved forward beyond *target*.

        Only confirmed and the fulfillment steps count. Asking a paid order
        for a pending status is a backward move, not a late repeat.
        """
        if self.status == OrderStatus.CANCELLED or target not in _RANK:
            return False
        if _RANK[target] < _RANK[OrderStatus.CONFIRMED]:
            return False
        return _RANK[self.status] > _RANK[target]
