"""JSON-file-backed implementation of ProductRepository."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from fulfillment.domain.exceptions import EntityNotFoundError
from fulfillment.domain.model.product import DEFAULT_MIN_STOCK, Product
from fulfillment.domain.model.value_objects import DEFAULT_CURRENCY, Money
from fulfillment.domain.repository.product_repository import ProductRepository
from fulfillment.infrastructure.persistence.json_file import JsonFile


class JsonProductRepository(ProductRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: str) -> Product | None:
        for raw in self._file.load():
            if raw["id"] == product_id:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Product]:
        return [self._to_domain(raw) for raw in self._file.load()]

    def compare_and_set(self, product_id: str, expected: int, new: int) -> bool:
        with self._file.locked():
            records = self._file.load()
            for raw in records:
                if raw["id"] != product_id:
                    continue
                if raw.get("stock", 0) != expected:
                    return False
                raw["stock"] = new
                self._file.persist(records)
                return True
        raise EntityNotFoundError(f"Product '{product_id}' not found")

    # --- Catalog seeding ------------------------------------------------------

    def add(self, product: Product) -> None:
        """Insert a catalog entry. Existing entries are left untouched."""
        with self._file.locked():
            records = self._file.load()
            if any(raw["id"] == product.id for raw in records):
                return
            records.append(self._to_raw(product))
            self._file.persist(records)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(product: Product) -> dict:
        return {
            "id": product.id,
            "name": product.name,
            "price": str(product.price.amount),
            "currency": product.price.currency,
            "stock": product.stock,
            "minStock": product.min_stock,
            "image": product.image,
        }

    @staticmethod
    def _to_domain(raw: dict) -> Product:
        return Product(
            id=raw["id"],
            name=raw["name"],
            price=Money(Decimal(raw["price"]), raw.get("currency", DEFAULT_CURRENCY)),
            stock=raw.get("stock", 0),
            min_stock=raw.get("minStock", DEFAULT_MIN_STOCK),
            image=raw.get("image"),
        )
