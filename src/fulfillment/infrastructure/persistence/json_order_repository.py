"""JSON-file-backed implementation of OrderRepository."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from fulfillment.domain.model.order import (
    Customer,
    DeliveryType,
    Order,
    OrderLineItem,
    OrderStatus,
    PaymentMethod,
)
from fulfillment.domain.model.value_objects import DEFAULT_CURRENCY, Money, Quantity
from fulfillment.domain.repository.order_repository import OrderRepository
from fulfillment.infrastructure.persistence.json_file import JsonFile


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    # --- OrderRepository interface --------------------------------------------

    def add(self, order: Order) -> int:
        with self._file.locked():
            orders = self._file.load()
            order.id = max((o["id"] for o in orders), default=0) + 1
            orders.append(self._to_raw(order))
            self._file.persist(orders)
        return order.id

    def get_by_id(self, order_id: int) -> Order | None:
        for raw in self._file.load():
            if raw["id"] == order_id:
                return self._to_domain(raw)
        return None

    def find_by_reservation_token(self, token: str) -> Order | None:
        for raw in self._file.load():
            if raw["reservationToken"] == token:
                return self._to_domain(raw)
        return None

    def save_if_status(self, order: Order, expected: OrderStatus) -> bool:
        with self._file.locked():
            orders = self._file.load()
            for i, raw in enumerate(orders):
                if raw["id"] != order.id:
                    continue
                if raw["status"] != expected.value:
                    return False
                orders[i] = self._to_raw(order)
                self._file.persist(orders)
                return True
        return False

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        customer = order.customer
        return {
            "id": order.id,
            "customer": {
                "name": customer.name,
                "email": customer.email,
                "phone": customer.phone,
                "taxId": customer.tax_id,
                "address": customer.address,
                "pickupNote": customer.pickup_note,
            },
            "deliveryType": order.delivery_type.value,
            "paymentMethod": order.payment_method.value,
            "status": order.status.value,
            "reservationToken": order.reservation_token,
            "paymentProofRef": order.payment_proof_ref,
            "appliedEvents": list(order.applied_events),
            "total": str(order.total.amount),
            "currency": order.total.currency,
            "createdAt": order.created_at.isoformat(),
            "updatedAt": order.updated_at.isoformat(),
            "items": [
                {
                    "productId": item.product_id,
                    "name": item.product_name,
                    "quantity": item.quantity.value,
                    "unitPrice": str(item.unit_price.amount),
                    "currency": item.unit_price.currency,
                    "image": item.image,
                }
                for item in order.items
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        c = raw["customer"]
        items = tuple(
            OrderLineItem(
                product_id=i["productId"],
                product_name=i["name"],
                quantity=Quantity(i["quantity"]),
                unit_price=Money(Decimal(i["unitPrice"]), i.get("currency", DEFAULT_CURRENCY)),
                image=i.get("image"),
            )
            for i in raw["items"]
        )
        return Order(
            id=raw["id"],
            customer=Customer(
                name=c["name"],
                email=c["email"],
                phone=c["phone"],
                tax_id=c.get("taxId"),
                address=c.get("address"),
                pickup_note=c.get("pickupNote"),
            ),
            delivery_type=DeliveryType(raw["deliveryType"]),
            payment_method=PaymentMethod(raw["paymentMethod"]),
            items=items,
            total=Money(Decimal(raw["total"]), raw.get("currency", DEFAULT_CURRENCY)),
            status=OrderStatus(raw["status"]),
            reservation_token=raw["reservationToken"],
            payment_proof_ref=raw.get("paymentProofRef"),
            applied_events=list(raw.get("appliedEvents", [])),
            created_at=datetime.fromisoformat(raw["createdAt"]),
            updated_at=datetime.fromisoformat(raw["updatedAt"]),
        )
