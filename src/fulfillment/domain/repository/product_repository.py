"""Abstract repository for Product aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (JSON, in-memory)
live in the infrastructure layer and the test suite.

``stock`` has no plain setter: the only write path is
``compare_and_set``, which must be a single atomic conditional write.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from fulfillment.domain.model.product import Product


class ProductRepository(ABC):

    @abstractmethod
    def get_by_id(self, product_id: str) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Product]:
        """Return every product in the catalog."""

    @abstractmethod
    def compare_and_set(self, product_id: str, expected: int, new: int) -> bool:
        """Write ``stock = new`` only if it currently equals ``expected``.

        Returns False (and writes nothing) when another writer changed the
        stock since it was read. Raises EntityNotFoundError for unknown
        products.
        """
