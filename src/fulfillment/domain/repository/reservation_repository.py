"""Abstract repository for Reservation records."""

from __future__ import annotations

from abc import ABC, abstractmethod

from fulfillment.domain.model.reservation import Reservation


class ReservationRepository(ABC):

    @abstractmethod
    def add(self, reservation: Reservation) -> bool:
        """Insert a reservation; return False if its token is already taken."""

    @abstractmethod
    def get(self, token: str) -> Reservation | None:
        """Return the open reservation for a token, or None."""

    @abstractmethod
    def pop(self, token: str) -> Reservation | None:
        """Atomically remove and return the reservation, or None if absent.

        Only one of several concurrent callers may receive the record.
        """

    @abstractmethod
    def list_all(self) -> list[Reservation]:
        """Return every open reservation."""
