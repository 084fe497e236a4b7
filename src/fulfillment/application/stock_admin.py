"""Application services: manual stock changes from catalog management.

Restocks and corrections go through the same InventoryLedger as checkout,
so a staff edit can never silently overwrite a concurrent reservation.
"""

from __future__ import annotations

import logging

from fulfillment.domain.exceptions import EntityNotFoundError
from fulfillment.domain.repository.product_repository import ProductRepository
from fulfillment.domain.service.inventory_ledger import InventoryLedger

log = logging.getLogger(__name__)


class RestockHandler:

    def __init__(self, ledger: InventoryLedger, product_repo: ProductRepository) -> None:
        self._ledger = ledger
        self._product_repo = product_repo

    def handle(self, product_id: str, quantity: int) -> int:
        """Add *quantity* units. Returns the new stock level."""
        self._ledger.increment(product_id, quantity)
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product '{product_id}' not found")
        log.info(f"Restocked {product_id} by {quantity}, now {product.stock}")
        return product.stock


class AdjustStockHandler:

    def __init__(self, ledger: InventoryLedger) -> None:
        self._ledger = ledger

    def handle(self, product_id: str, new_stock: int, reason: str = "") -> int:
        """Set an absolute stock level. Returns the previous level."""
        previous = self._ledger.adjust(product_id, new_stock)
        if reason:
            log.info(f"Stock correction for {product_id}: {reason}")
        return previous
