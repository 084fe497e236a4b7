"""Application service: attach a transfer receipt to an existing order.

For offline-transfer orders persisted before the receipt upload finished
(status ``pending_payment``). Storing the file and moving the order to
``pending_verification`` happen here; nothing touches stock.
"""

from __future__ import annotations

from fulfillment.application.dto import ProofFile
from fulfillment.application.order_manager import OrderRecordManager, TransitionOutcome
from fulfillment.application.payment_paths import MAX_PROOF_BYTES, check_proof
from fulfillment.application.ports import ProofStorage
from fulfillment.domain.exceptions import ValidationError
from fulfillment.domain.model.order import OrderStatus, PaymentMethod


class AttachProofHandler:

    def __init__(
        self,
        storage: ProofStorage,
        manager: OrderRecordManager,
        max_proof_bytes: int = MAX_PROOF_BYTES,
    ) -> None:
        self._storage = storage
        self._manager = manager
        self._max_proof_bytes = max_proof_bytes

    def handle(self, order_id: int, proof: ProofFile | None) -> TransitionOutcome:
        check_proof(proof, self._max_proof_bytes)
        order = self._manager.get(order_id)
        if order.payment_method != PaymentMethod.OFFLINE_TRANSFER:
            raise ValidationError(f"Order #{order_id} is not paid by bank transfer")
        if order.status != OrderStatus.PENDING_PAYMENT:
            raise ValidationError(
                f"Order #{order_id} is {order.status.value}, expected pending_payment"
            )
        ref = self._storage.store(f"order-{order_id}_{proof.filename}", proof.payload)
        return self._manager.attach_payment_proof(order_id, ref)
