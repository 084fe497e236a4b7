"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from fulfillment.domain.model.order import Order, OrderStatus


class OrderRepository(ABC):

    @abstractmethod
    def add(self, order: Order) -> int:
        """Persist a new order, assign its ID and return it."""

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def find_by_reservation_token(self, token: str) -> Order | None:
        """Return the order backed by a reservation token, or None."""

    @abstractmethod
    def save_if_status(self, order: Order, expected: OrderStatus) -> bool:
        """Overwrite a stored order only if its stored status is *expected*.

        Returns False when the stored status differs (a concurrent
        transition won). Never an unconditional overwrite.
        """
