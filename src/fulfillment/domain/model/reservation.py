"""Cart lines and the token-scoped stock hold backing a checkout."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

from fulfillment.domain.exceptions import ValidationError
from fulfillment.domain.model.value_objects import Money, Quantity


@dataclass(frozen=True)
class CartLine:
    """What the customer put in the cart.

    ``name``, ``unit_price`` and ``image`` are carried for the receipt
    only; they are not authoritative for pricing.
    """

    product_id: str
    quantity: Quantity
    name: str = ""
    unit_price: Money | None = None
    image: str | None = None


@dataclass(frozen=True)
class ReservationLine:
    product_id: str
    quantity: int

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValidationError("Reserved quantity must be positive")


@dataclass(frozen=True)
class Reservation:
    """Stock removed from the sellable pool for one checkout attempt."""

    token: str
    lines: tuple[ReservationLine, ...]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def is_stale(self, now: datetime, window: timedelta) -> bool:
        return now - self.created_at >= window

    def quantity_for(self, product_id: str) -> int:
        return sum(line.quantity for line in self.lines if line.product_id == product_id)


# --- Results ------------------------------------------------------------------


class FailureReason(Enum):
    INSUFFICIENT_STOCK = "insufficient_stock"
    UNKNOWN_PRODUCT = "unknown_product"
    DUPLICATE_TOKEN = "duplicate_token"


@dataclass(frozen=True)
class Reserved:
    reservation: Reservation


@dataclass(frozen=True)
class ReservationFailed:
    """``product_id`` names the line that could not be reserved, if any."""

    reason: FailureReason
    product_id: str | None = None


ReservationResult = Reserved | ReservationFailed


class ReleaseResult(Enum):
    RELEASED = "released"
    NOT_FOUND = "not_found"
