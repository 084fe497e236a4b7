"""Domain service: Inventory Ledger.

The only component allowed to change a product's ``stock``. Every write
is a compare-and-set against the value just read; on conflict the ledger
re-reads and tries again, so two concurrent decrements can never both
succeed past zero. The ledger knows nothing about orders or carts.
"""

from __future__ import annotations

import logging
from enum import Enum

from fulfillment.domain.exceptions import (
    ConcurrencyError,
    EntityNotFoundError,
    ValidationError,
)
from fulfillment.domain.repository.product_repository import ProductRepository

log = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 20


class DecrementResult(Enum):
    OK = "ok"
    INSUFFICIENT_STOCK = "insufficient_stock"


class InventoryLedger:

    def __init__(
        self,
        product_repo: ProductRepository,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        self._product_repo = product_repo
        self._max_retries = max_retries

    def try_decrement(self, product_id: str, quantity: int) -> DecrementResult:
        """Remove *quantity* units, or report that there are not enough.

        Rejects the whole decrement when ``quantity > stock``; stock is
        never driven below zero.
        """
        _require_positive(quantity)
        for _ in range(self._max_retries):
            current = self._current_stock(product_id)
            if quantity > current:
                log.info(
                    f"Insufficient stock for {product_id}: "
                    f"need {quantity}, have {current}"
                )
                return DecrementResult.INSUFFICIENT_STOCK
            if self._product_repo.compare_and_set(product_id, current, current - quantity):
                return DecrementResult.OK
            log.debug(f"Stock for {product_id} changed concurrently, retrying decrement")
        raise ConcurrencyError(
            f"Could not decrement stock for {product_id} after {self._max_retries} attempts"
        )

    def increment(self, product_id: str, quantity: int) -> None:
        """Return *quantity* units to the sellable pool. No upper bound."""
        _require_positive(quantity)
        for _ in range(self._max_retries):
            current = self._current_stock(product_id)
            if self._product_repo.compare_and_set(product_id, current, current + quantity):
                return
            log.debug(f"Stock for {product_id} changed concurrently, retrying increment")
        raise ConcurrencyError(
            f"Could not increment stock for {product_id} after {self._max_retries} attempts"
        )

    def adjust(self, product_id: str, new_stock: int) -> int:
        """Set an absolute stock level (manual correction). Returns the old level."""
        if new_stock < 0:
            raise ValidationError("Stock cannot be negative")
        for _ in range(self._max_retries):
            current = self._current_stock(product_id)
            if self._product_repo.compare_and_set(product_id, current, new_stock):
                log.info(f"Stock for {product_id} adjusted {current} -> {new_stock}")
                return current
        raise ConcurrencyError(
            f"Could not adjust stock for {product_id} after {self._max_retries} attempts"
        )

    def _current_stock(self, product_id: str) -> int:
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product '{product_id}' not found")
        return product.stock


def _require_positive(quantity: int) -> None:
    if quantity <= 0:
        raise ValidationError("Stock quantity must be positive")
