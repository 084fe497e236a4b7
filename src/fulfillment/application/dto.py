"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from fulfillment.domain.model.order import Customer, DeliveryType, Order


@dataclass(frozen=True)
class CartItemSpec:
    """Input: a product id and how many units the customer wants."""

    product_id: str
    quantity: int


@dataclass(frozen=True)
class ProofFile:
    filename: str
    payload: bytes

    @property
    def size(self) -> int:
        return len(self.payload)


@dataclass(frozen=True)
class CheckoutRequest:
    """Everything one checkout attempt needs, passed in explicitly.

    ``token`` correlates the attempt with its reservation and must be
    unique per attempt; resubmitting the same token is rejected.
    """

    token: str
    customer: Customer
    delivery_type: DeliveryType
    cart: list[CartItemSpec]
    proof: ProofFile | None = None


@dataclass(frozen=True)
class CheckoutResult:
    order_id: int
    status: str
    total: str
    redirect_url: str | None = None
    preference_id: str | None = None


@dataclass(frozen=True)
class OrderLineItemDTO:
    """Output: a single line item as displayed to the user."""

    product_name: str
    quantity: int
    unit_price: str  # formatted, e.g. "$15,990"
    line_total: str


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: int
    customer_name: str
    customer_email: str
    delivery_type: str
    payment_method: str
    status: str
    items: list[OrderLineItemDTO]
    total: str
    created_at: str
    updated_at: str
    payment_proof_ref: str | None = None
    applied_events: list[str] = field(default_factory=list)

    @staticmethod
    def from_order(order: Order) -> OrderDTO:
        return OrderDTO(
            id=order.id,  # type: ignore[arg-type]
            customer_name=order.customer.name,
            customer_email=order.customer.email,
            delivery_type=order.delivery_type.value,
            payment_method=order.payment_method.value,
            status=order.status.value,
            items=[
                OrderLineItemDTO(
                    product_name=item.product_name,
                    quantity=item.quantity.value,
                    unit_price=str(item.unit_price),
                    line_total=str(item.line_total),
                )
                for item in order.items
            ],
            total=str(order.total),
            created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
            updated_at=order.updated_at.strftime("%Y-%m-%d %H:%M UTC"),
            payment_proof_ref=order.payment_proof_ref,
            applied_events=list(order.applied_events),
        )
