"""Product aggregate.

Products live independently of orders. The catalog owns name, price and
image; ``stock`` is shared with the checkout flow and is only ever changed
through the InventoryLedger's conditional writes.
"""

from __future__ import annotations

from dataclasses import dataclass

from fulfillment.domain.exceptions import ValidationError
from fulfillment.domain.model.value_objects import Money

DEFAULT_MIN_STOCK = 5


@dataclass
class Product:
    """A product in the catalog, as seen by the fulfillment core.

    ``min_stock`` is the reorder threshold used for low-stock alerts.
    """

    id: str
    name: str
    price: Money
    stock: int = 0
    min_stock: int = DEFAULT_MIN_STOCK
    image: str | None = None

    def __post_init__(self) -> None:
        if self.stock < 0:
            raise ValidationError(f"Stock for {self.name} cannot be negative")
        if self.min_stock < 0:
            raise ValidationError(f"Minimum stock for {self.name} cannot be negative")

    @property
    def stock_severity(self) -> str | None:
        """Alert level for the current stock, or None when healthy."""
        if self.stock == 0:
            return "out"
        if self.stock <= self.min_stock / 2:
            return "critical"
        if self.stock <= self.min_stock:
            return "low"
        return None
