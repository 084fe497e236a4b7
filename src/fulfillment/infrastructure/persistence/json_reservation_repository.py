"""JSON-file-backed implementation of ReservationRepository."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from fulfillment.domain.model.reservation import Reservation, ReservationLine
from fulfillment.domain.repository.reservation_repository import ReservationRepository
from fulfillment.infrastructure.persistence.json_file import JsonFile


class JsonReservationRepository(ReservationRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    # --- ReservationRepository interface --------------------------------------

    def add(self, reservation: Reservation) -> bool:
        with self._file.locked():
            records = self._file.load()
            if any(raw["token"] == reservation.token for raw in records):
                return False
            records.append(self._to_raw(reservation))
            self._file.persist(records)
            return True

    def get(self, token: str) -> Reservation | None:
        for raw in self._file.load():
            if raw["token"] == token:
                return self._to_domain(raw)
        return None

    def pop(self, token: str) -> Reservation | None:
        with self._file.locked():
            records = self._file.load()
            for i, raw in enumerate(records):
                if raw["token"] == token:
                    del records[i]
                    self._file.persist(records)
                    return self._to_domain(raw)
        return None

    def list_all(self) -> list[Reservation]:
        return [self._to_domain(raw) for raw in self._file.load()]

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(reservation: Reservation) -> dict:
        return {
            "token": reservation.token,
            "createdAt": reservation.created_at.isoformat(),
            "lines": [
                {"productId": line.product_id, "quantity": line.quantity}
                for line in reservation.lines
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Reservation:
        return Reservation(
            token=raw["token"],
            lines=tuple(
                ReservationLine(line["productId"], line["quantity"])
                for line in raw["lines"]
            ),
            created_at=datetime.fromisoformat(raw["createdAt"]),
        )
