"""Application service: sweep abandoned checkouts.

Reservations normally end in a persisted order or a release. A browser
closed mid-checkout, or a hosted payment that was never completed, leaves
stock on hold; this sweep reconciles every reservation older than the
staleness window. It is meant to run from a scheduler and is safe to run
repeatedly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from fulfillment.application.order_manager import OrderRecordManager, TransitionOutcome
from fulfillment.domain.model.order import OrderStatus
from fulfillment.domain.model.reservation import ReleaseResult
from fulfillment.domain.repository.order_repository import OrderRepository
from fulfillment.domain.service.reservation_coordinator import ReservationCoordinator

log = logging.getLogger(__name__)


@dataclass
class SweepReport:
    released: list[str] = field(default_factory=list)
    cancelled_orders: list[int] = field(default_factory=list)
    consumed: list[str] = field(default_factory=list)
    kept: list[str] = field(default_factory=list)


class SweepHandler:

    def __init__(
        self,
        coordinator: ReservationCoordinator,
        order_repo: OrderRepository,
        manager: OrderRecordManager,
        stale_after: timedelta,
    ) -> None:
        self._coordinator = coordinator
        self._order_repo = order_repo
        self._manager = manager
        self._stale_after = stale_after

    def handle(self, now: datetime | None = None) -> SweepReport:
        """Reconcile stale reservations against their orders.

        - no order: the checkout died before persistence, release;
        - order awaiting an online payment: cancel it (which releases);
        - order already cancelled: release what the cancel left behind;
        - order already paid: consume the leftover record;
        - order awaiting staff verification of a transfer: keep.
        """
        now = now or datetime.now(timezone.utc)
        report = SweepReport()

        for reservation in self._coordinator.list_open():
            if not reservation.is_stale(now, self._stale_after):
                continue
            token = reservation.token
            order = self._order_repo.find_by_reservation_token(token)

            if order is None or order.status == OrderStatus.CANCELLED:
                if self._coordinator.release(token) == ReleaseResult.RELEASED:
                    report.released.append(token)
            elif order.status == OrderStatus.PENDING_PAYMENT:
                # A payment may land between the lookup and the cancel.
                outcome = self._manager.transition(
                    order.id,
                    OrderStatus.CANCELLED,
                    f"sweep:{token}",
                    expected_from=frozenset({OrderStatus.PENDING_PAYMENT}),
                )
                if outcome == TransitionOutcome.APPLIED:
                    report.cancelled_orders.append(order.id)
                    report.released.append(token)
            elif order.status == OrderStatus.PENDING_VERIFICATION:
                report.kept.append(token)
            else:
                if self._coordinator.consume(token):
                    report.consumed.append(token)

        log.info(
            f"Sweep done: released={len(report.released)} "
            f"cancelled={len(report.cancelled_orders)} "
            f"consumed={len(report.consumed)} kept={len(report.kept)}"
        )
        return report
