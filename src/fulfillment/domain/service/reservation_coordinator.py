"""Domain service: Reservation Coordinator.

Reserves every line of a cart against the InventoryLedger under a
caller-supplied token. Reservation is pessimistic: stock leaves the
sellable pool immediately, because an offline transfer can sit for hours
between "cart submitted" and "payment verified".

A reservation either succeeds for every line or leaves stock exactly as
it found it: lines already decremented are incremented back as soon as
one line fails.
"""

from __future__ import annotations

import logging

from fulfillment.domain.exceptions import EntityNotFoundError
from fulfillment.domain.model.reservation import (
    CartLine,
    FailureReason,
    ReleaseResult,
    Reservation,
    ReservationFailed,
    ReservationLine,
    ReservationResult,
    Reserved,
)
from fulfillment.domain.repository.reservation_repository import ReservationRepository
from fulfillment.domain.service.inventory_ledger import DecrementResult, InventoryLedger

log = logging.getLogger(__name__)


class ReservationCoordinator:

    def __init__(
        self,
        ledger: InventoryLedger,
        reservation_repo: ReservationRepository,
    ) -> None:
        self._ledger = ledger
        self._reservation_repo = reservation_repo

    def reserve(self, token: str, lines: list[CartLine]) -> ReservationResult:
        """Reserve every cart line under *token*, all or nothing."""
        prefix = f"[Reservation: {token}]"

        if self._reservation_repo.get(token) is not None:
            log.warning(f"{prefix} Duplicate submission rejected")
            return ReservationFailed(FailureReason.DUPLICATE_TOKEN)

        applied: list[ReservationLine] = []
        for line in lines:
            try:
                result = self._ledger.try_decrement(line.product_id, line.quantity.value)
            except EntityNotFoundError:
                self._compensate(token, applied)
                return ReservationFailed(FailureReason.UNKNOWN_PRODUCT, line.product_id)
            except Exception:
                self._compensate(token, applied)
                raise

            if result == DecrementResult.INSUFFICIENT_STOCK:
                self._compensate(token, applied)
                return ReservationFailed(FailureReason.INSUFFICIENT_STOCK, line.product_id)
            applied.append(ReservationLine(line.product_id, line.quantity.value))

        reservation = Reservation(token=token, lines=tuple(applied))
        if not self._reservation_repo.add(reservation):
            # Another submission with the same token won the insert.
            self._compensate(token, applied)
            log.warning(f"{prefix} Duplicate submission rejected")
            return ReservationFailed(FailureReason.DUPLICATE_TOKEN)

        log.info(f"{prefix} Reserved {len(applied)} line(s)")
        return Reserved(reservation)

    def release(self, token: str) -> ReleaseResult:
        """Return every reserved line to stock and forget the reservation.

        Safe to call repeatedly: only the caller that removes the record
        increments stock; later calls get NOT_FOUND.
        """
        reservation = self._reservation_repo.pop(token)
        if reservation is None:
            log.debug(f"[Reservation: {token}] Nothing to release")
            return ReleaseResult.NOT_FOUND

        for line in reservation.lines:
            self._ledger.increment(line.product_id, line.quantity)
        log.info(f"[Reservation: {token}] Released {len(reservation.lines)} line(s)")
        return ReleaseResult.RELEASED

    def consume(self, token: str) -> bool:
        """Fold the reservation into a paid order: stock stays sold."""
        consumed = self._reservation_repo.pop(token) is not None
        if consumed:
            log.info(f"[Reservation: {token}] Consumed")
        return consumed

    def get(self, token: str) -> Reservation | None:
        return self._reservation_repo.get(token)

    def list_open(self) -> list[Reservation]:
        return self._reservation_repo.list_all()

    # --- Internal helpers -----------------------------------------------------

    def _compensate(self, token: str, applied: list[ReservationLine]) -> None:
        for line in reversed(applied):
            self._ledger.increment(line.product_id, line.quantity)
        if applied:
            log.info(f"[Reservation: {token}] Rolled back {len(applied)} line(s)")
