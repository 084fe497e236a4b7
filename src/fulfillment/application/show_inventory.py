"""Application service: Show Inventory use case (query)."""

from __future__ import annotations

from dataclasses import dataclass

from fulfillment.domain.repository.product_repository import ProductRepository


@dataclass(frozen=True)
class InventoryLineDTO:
    product_id: str
    product_name: str
    stock: int
    min_stock: int
    severity: str | None


class ShowInventoryHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(self, alerts_only: bool = False) -> list[InventoryLineDTO]:
        lines = [
            InventoryLineDTO(
                product_id=p.id,
                product_name=p.name,
                stock=p.stock,
                min_stock=p.min_stock,
                severity=p.stock_severity,
            )
            for p in self._product_repo.list_all()
        ]
        if alerts_only:
            lines = [line for line in lines if line.severity]
        return lines
