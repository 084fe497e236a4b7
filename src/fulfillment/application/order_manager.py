"""Application service: Order Record Manager.

Creates order documents and moves them through the status state machine.
Every status write is conditional on the status that was read, so two
concurrent transitions cannot both land; the loser re-reads and
re-evaluates against the new status.

Transitions are safe to re-apply. A repeated event (same idempotency key,
or an order already at or past the target) returns ALREADY_APPLIED and
runs no side effects: no notification, no stock change.
"""

from __future__ import annotations

import logging
from enum import Enum

from fulfillment.application.notifications import NotificationDispatcher
from fulfillment.domain.exceptions import (
    ConcurrencyError,
    EntityNotFoundError,
    InvalidTransitionError,
)
from fulfillment.domain.model.order import (
    Customer,
    DeliveryType,
    Order,
    OrderLineItem,
    OrderStatus,
    PaymentMethod,
)
from fulfillment.domain.model.value_objects import Money
from fulfillment.domain.repository.order_repository import OrderRepository
from fulfillment.domain.service.reservation_coordinator import ReservationCoordinator

log = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 10


class TransitionOutcome(Enum):
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    INVALID = "invalid_transition"


class OrderRecordManager:

    def __init__(
        self,
        order_repo: OrderRepository,
        coordinator: ReservationCoordinator,
        notifier: NotificationDispatcher,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        self._order_repo = order_repo
        self._coordinator = coordinator
        self._notifier = notifier
        self._max_retries = max_retries

    def create_order(
        self,
        customer: Customer,
        delivery_type: DeliveryType,
        payment_method: PaymentMethod,
        items: list[OrderLineItem],
        total: Money,
        reservation_token: str,
        payment_proof_ref: str | None = None,
    ) -> int:
        """Persist a new order backed by an already-obtained reservation.

        If this raises, the caller still owns the reservation and must
        release it.
        """
        order = Order.create(
            customer=customer,
            delivery_type=delivery_type,
            payment_method=payment_method,
            items=items,
            total=total,
            reservation_token=reservation_token,
            payment_proof_ref=payment_proof_ref,
        )
        order_id = self._order_repo.add(order)
        log.info(
            f"[Order: {order_id}] Created ({payment_method.value}, "
            f"status={order.status.value}, reservation={reservation_token})"
        )
        self._notifier.order_received(order)
        return order_id

    def get(self, order_id: int) -> Order:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return order

    def find_by_reservation_token(self, token: str) -> Order | None:
        return self._order_repo.find_by_reservation_token(token)

    def transition(
        self,
        order_id: int,
        target: OrderStatus,
        idempotency_key: str | None = None,
        expected_from: frozenset[OrderStatus] | None = None,
    ) -> TransitionOutcome:
        """Move an order to *target* along the state machine.

        Args:
            order_id: The order to move.
            target: The desired status.
            idempotency_key: Identifies the triggering event (e.g. the
                provider's payment event id). Events already applied, or
                that arrive after the order moved past *target*, are
                recognised as repeats.
            expected_from: Statuses the caller decided on. If the order is
                found in any other status the move is INVALID, even when
                the state machine would allow it.
        """
        prefix = f"[Order: {order_id}]"
        for _ in range(self._max_retries):
            order = self.get(order_id)

            if idempotency_key and order.has_applied(idempotency_key):
                log.info(f"{prefix} Event {idempotency_key} already applied")
                return TransitionOutcome.ALREADY_APPLIED
            if order.status == target or (idempotency_key and order.has_passed(target)):
                log.info(f"{prefix} Already {order.status.value}, nothing to do for {target.value}")
                return TransitionOutcome.ALREADY_APPLIED
            if expected_from is not None and order.status not in expected_from:
                log.warning(
                    f"{prefix} Is {order.status.value}, not moving to {target.value} "
                    f"(expected {sorted(s.value for s in expected_from)})"
                )
                return TransitionOutcome.INVALID

            previous = order.status
            try:
                order.transition_to(target, idempotency_key)
            except InvalidTransitionError as exc:
                log.warning(f"{prefix} {exc}")
                return TransitionOutcome.INVALID

            if not self._order_repo.save_if_status(order, previous):
                log.debug(f"{prefix} Status changed concurrently, re-reading")
                continue

            log.info(f"{prefix} {previous.value} -> {target.value}")
            self._after_transition(order, previous)
            return TransitionOutcome.APPLIED

        raise ConcurrencyError(
            f"Could not move order #{order_id} to {target.value} "
            f"after {self._max_retries} attempts"
        )

    def attach_payment_proof(self, order_id: int, proof_ref: str) -> TransitionOutcome:
        """Attach a late transfer proof: ``pending_payment -> pending_verification``."""
        prefix = f"[Order: {order_id}]"
        for _ in range(self._max_retries):
            order = self.get(order_id)
            if order.payment_proof_ref == proof_ref:
                return TransitionOutcome.ALREADY_APPLIED

            previous = order.status
            try:
                order.attach_payment_proof(proof_ref)
            except InvalidTransitionError as exc:
                log.warning(f"{prefix} {exc}")
                return TransitionOutcome.INVALID

            if not self._order_repo.save_if_status(order, previous):
                continue

            log.info(f"{prefix} Payment proof attached: {proof_ref}")
            self._notifier.status_changed(order, previous)
            return TransitionOutcome.APPLIED

        raise ConcurrencyError(
            f"Could not attach a payment proof to order #{order_id} "
            f"after {self._max_retries} attempts"
        )

    # --- Internal helpers -----------------------------------------------------

    def _after_transition(self, order: Order, previous: OrderStatus) -> None:
        if order.status == OrderStatus.CONFIRMED:
            self._coordinator.consume(order.reservation_token)
        elif order.status == OrderStatus.CANCELLED:
            result = self._coordinator.release(order.reservation_token)
            log.info(f"[Order: {order.id}] Reservation on cancel: {result.value}")
        self._notifier.status_changed(order, previous)
