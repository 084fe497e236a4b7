"""Payment Path Coordinator: the two ways a customer can pay.

A checkout picks one path and keeps it. Both expose the same capability:

- ``validate`` runs before any stock is reserved (fail fast);
- ``prepare`` runs after reservation and before the order is persisted;
- ``begin`` runs once the order exists and returns the pending state;
- ``confirm`` applies the event that proves payment, exactly once.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from fulfillment.application.dto import CheckoutRequest, ProofFile
from fulfillment.application.order_manager import OrderRecordManager, TransitionOutcome
from fulfillment.application.ports import PaymentGateway, ProofStorage
from fulfillment.domain.exceptions import (
    ProofMissingError,
    ProofTooLargeError,
    ValidationError,
)
from fulfillment.domain.model.order import Order, OrderStatus, PaymentMethod

log = logging.getLogger(__name__)

MAX_PROOF_BYTES = 5 * 1024 * 1024


@dataclass(frozen=True)
class PendingState:
    status: OrderStatus
    redirect_url: str | None = None
    preference_id: str | None = None


class PaymentPath(ABC):

    method: PaymentMethod

    def validate(self, request: CheckoutRequest) -> None:
        """Reject a request that cannot possibly complete."""

    def prepare(self, request: CheckoutRequest) -> str | None:
        """Work that needs the reservation but not the order. Returns a proof ref."""
        return None

    @abstractmethod
    def begin(self, order: Order) -> PendingState:
        """Start payment for a freshly persisted order."""

    @abstractmethod
    def confirm(self, order_id: int, event_id: str | None = None) -> TransitionOutcome:
        """Apply the event that proves the order was paid."""


class OfflineTransferPath(PaymentPath):
    """Bank transfer: the customer uploads a receipt and staff verify it."""

    method = PaymentMethod.OFFLINE_TRANSFER

    def __init__(
        self,
        storage: ProofStorage,
        manager: OrderRecordManager,
        max_proof_bytes: int = MAX_PROOF_BYTES,
    ) -> None:
        self._storage = storage
        self._manager = manager
        self._max_proof_bytes = max_proof_bytes

    def validate(self, request: CheckoutRequest) -> None:
        check_proof(request.proof, self._max_proof_bytes)

    def prepare(self, request: CheckoutRequest) -> str | None:
        proof = request.proof
        if proof is None:
            raise ProofMissingError("Please upload the transfer receipt")
        ref = self._storage.store(f"{request.token}_{proof.filename}", proof.payload)
        log.info(f"[Reservation: {request.token}] Payment proof stored at {ref}")
        return ref

    def begin(self, order: Order) -> PendingState:
        return PendingState(order.status)

    def confirm(self, order_id: int, event_id: str | None = None) -> TransitionOutcome:
        """Staff verified the transfer landed."""
        key = event_id or f"staff-verify:{order_id}"
        return self._manager.transition(order_id, OrderStatus.CONFIRMED, key)


class HostedPaymentPath(PaymentPath):
    """Online payment through an external gateway's hosted checkout."""

    method = PaymentMethod.HOSTED_PAYMENT

    def __init__(self, gateway: PaymentGateway, manager: OrderRecordManager) -> None:
        self._gateway = gateway
        self._manager = manager

    def validate(self, request: CheckoutRequest) -> None:
        if request.proof is not None:
            raise ValidationError("Online payments do not take a transfer proof")

    def begin(self, order: Order) -> PendingState:
        # Redirecting is not paying: the order stays pending_payment until
        # the provider reports success.
        preference = self._gateway.create_preference(order.items, order.customer, order.id)
        log.info(
            f"[Order: {order.id}] Payment preference {preference.preference_id} created"
        )
        return PendingState(
            order.status,
            redirect_url=preference.redirect_url,
            preference_id=preference.preference_id,
        )

    def confirm(self, order_id: int, event_id: str | None = None) -> TransitionOutcome:
        if not event_id:
            raise ValidationError("Hosted payment confirmations need the provider event id")
        order = self._manager.get(order_id)
        if order.payment_method != self.method:
            log.warning(
                f"[Order: {order_id}] Not a hosted payment ({order.payment_method.value}), "
                f"confirmation {event_id} refused"
            )
            return TransitionOutcome.INVALID
        return self._manager.transition(order_id, OrderStatus.CONFIRMED, event_id)


def check_proof(proof: ProofFile | None, max_bytes: int) -> None:
    if proof is None or proof.size == 0:
        raise ProofMissingError("Please upload the transfer receipt")
    if proof.size > max_bytes:
        raise ProofTooLargeError(proof.size, max_bytes)
