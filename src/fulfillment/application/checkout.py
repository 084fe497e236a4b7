"""Application service: Checkout use case.

The single entry point for turning a cart into an order:

1. the payment path validates the request (nothing reserved yet);
2. the cart is snapshotted against the catalog and reserved;
3. inside a ReservationGuard, the path prepares (proof upload), the order
   is persisted, and the path begins payment (gateway preference).

Any exit from step 3 that does not reach a committed order releases the
reservation, exceptions included. A gateway failure after the order was
persisted cancels that order instead, which releases the same reservation.
"""

from __future__ import annotations

import logging

from fulfillment.application.dto import CartItemSpec, CheckoutRequest, CheckoutResult
from fulfillment.application.notifications import NotificationDispatcher
from fulfillment.application.order_manager import OrderRecordManager, TransitionOutcome
from fulfillment.application.payment_paths import PaymentPath
from fulfillment.domain.exceptions import (
    DuplicateSubmissionError,
    EntityNotFoundError,
    InsufficientStockError,
    ValidationError,
)
from fulfillment.domain.model.order import OrderLineItem, OrderStatus
from fulfillment.domain.model.reservation import (
    CartLine,
    FailureReason,
    ReservationFailed,
)
from fulfillment.domain.model.value_objects import Money, Quantity
from fulfillment.domain.repository.product_repository import ProductRepository
from fulfillment.domain.service.reservation_coordinator import ReservationCoordinator

log = logging.getLogger(__name__)


class ReservationGuard:
    """Releases a reservation on exit unless it was disarmed.

    Disarm once the reservation is owned by something durable: a persisted
    order, or a cancellation that already released it.
    """

    def __init__(self, coordinator: ReservationCoordinator, token: str) -> None:
        self._coordinator = coordinator
        self._token = token
        self._armed = True

    def disarm(self) -> None:
        self._armed = False

    def __enter__(self) -> ReservationGuard:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self._armed:
            try:
                result = self._coordinator.release(self._token)
            except Exception:
                log.critical(
                    f"[Reservation: {self._token}] RELEASE FAILED, stock is still held. "
                    f"The reservation sweep will retry it."
                )
                raise
            log.info(f"[Reservation: {self._token}] Checkout aborted, release: {result.value}")
        return False


class CheckoutHandler:

    def __init__(
        self,
        product_repo: ProductRepository,
        coordinator: ReservationCoordinator,
        manager: OrderRecordManager,
        notifier: NotificationDispatcher,
    ) -> None:
        self._product_repo = product_repo
        self._coordinator = coordinator
        self._manager = manager
        self._notifier = notifier

    def handle(self, request: CheckoutRequest, path: PaymentPath) -> CheckoutResult:
        """Run one checkout attempt on the given payment path."""
        prefix = f"[Reservation: {request.token}]"

        path.validate(request)
        self._reject_used_token(request.token)
        items, lines, total = self._snapshot(request.cart)

        result = self._coordinator.reserve(request.token, lines)
        if isinstance(result, ReservationFailed):
            log.info(f"{prefix} Checkout rejected: {result.reason.value} ({result.product_id})")
            raise self._failure_to_error(request.token, result)

        with ReservationGuard(self._coordinator, request.token) as guard:
            # An order may have claimed the token since the first check.
            self._reject_used_token(request.token)
            proof_ref = path.prepare(request)
            order_id = self._manager.create_order(
                customer=request.customer,
                delivery_type=request.delivery_type,
                payment_method=path.method,
                items=items,
                total=total,
                reservation_token=request.token,
                payment_proof_ref=proof_ref,
            )
            try:
                pending = path.begin(self._manager.get(order_id))
            except Exception:
                self._abort_order(order_id, request.token, guard)
                raise
            guard.disarm()

        self._alert_low_stock(lines)
        return CheckoutResult(
            order_id=order_id,
            status=pending.status.value,
            total=str(total),
            redirect_url=pending.redirect_url,
            preference_id=pending.preference_id,
        )

    # --- Internal helpers -----------------------------------------------------

    def _snapshot(
        self, cart: list[CartItemSpec]
    ) -> tuple[list[OrderLineItem], list[CartLine], Money]:
        """Price the cart from the catalog (not from the client)."""
        if not cart:
            raise ValidationError("Cart is empty")

        items: list[OrderLineItem] = []
        lines: list[CartLine] = []
        for spec in cart:
            product = self._product_repo.get_by_id(spec.product_id)
            if product is None:
                raise EntityNotFoundError(f"Product not found: '{spec.product_id}'")
            quantity = Quantity(spec.quantity)
            item = OrderLineItem(
                product_id=product.id,
                product_name=product.name,
                quantity=quantity,
                unit_price=product.price,  # <-- price snapshot
                image=product.image,
            )
            items.append(item)
            lines.append(
                CartLine(
                    product_id=product.id,
                    quantity=quantity,
                    name=product.name,
                    unit_price=product.price,
                    image=product.image,
                )
            )

        total = items[0].line_total
        for item in items[1:]:
            total += item.line_total
        return items, lines, total

    def _reject_used_token(self, token: str) -> None:
        """A token backs at most one order, even after its reservation closed."""
        order = self._manager.find_by_reservation_token(token)
        if order is not None:
            log.info(f"[Reservation: {token}] Already used by order #{order.id}")
            raise DuplicateSubmissionError(token)

    @staticmethod
    def _failure_to_error(token: str, failure: ReservationFailed) -> Exception:
        if failure.reason == FailureReason.DUPLICATE_TOKEN:
            return DuplicateSubmissionError(token)
        if failure.reason == FailureReason.UNKNOWN_PRODUCT:
            return EntityNotFoundError(f"Product not found: '{failure.product_id}'")
        return InsufficientStockError(failure.product_id or "")

    def _abort_order(self, order_id: int, token: str, guard: ReservationGuard) -> None:
        """Cancel an order whose payment could not begin."""
        outcome = self._manager.transition(
            order_id, OrderStatus.CANCELLED, f"checkout-aborted:{token}"
        )
        log.warning(f"[Order: {order_id}] Payment could not begin, cancel: {outcome.value}")
        if outcome == TransitionOutcome.APPLIED:
            # Cancelling released the reservation already.
            guard.disarm()

    def _alert_low_stock(self, lines: list[CartLine]) -> None:
        for product_id in {line.product_id for line in lines}:
            try:
                product = self._product_repo.get_by_id(product_id)
            except Exception as exc:
                log.warning(f"Low-stock check for {product_id} failed: {exc}")
                continue
            if product is not None and product.stock_severity:
                self._notifier.low_stock(product)
