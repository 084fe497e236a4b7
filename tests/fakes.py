"""In-memory fakes for testing.

The repositories implement the same abstract interfaces as the JSON
repositories but keep everything in a dict. No file I/O, no side effects.
Reads hand back copies so a test only sees what was actually written.
"""

from __future__ import annotations

import copy
import threading

from fulfillment.application.checkout import CheckoutHandler
from fulfillment.application.notifications import NotificationDispatcher
from fulfillment.application.order_manager import OrderRecordManager
from fulfillment.application.payment_events import PaymentEventHandler
from fulfillment.application.payment_paths import HostedPaymentPath, OfflineTransferPath
from fulfillment.application.ports import (
    Audience,
    NotificationChannel,
    PaymentEvent,
    PaymentGateway,
    Preference,
    ProofStorage,
)
from fulfillment.domain.exceptions import (
    EntityNotFoundError,
    GatewayRequestFailed,
    ProofUploadFailed,
)
from fulfillment.domain.model.order import Customer, Order, OrderLineItem, OrderStatus
from fulfillment.domain.model.product import Product
from fulfillment.domain.model.reservation import Reservation
from fulfillment.domain.repository.order_repository import OrderRepository
from fulfillment.domain.repository.product_repository import ProductRepository
from fulfillment.domain.repository.reservation_repository import ReservationRepository
from fulfillment.domain.service.inventory_ledger import InventoryLedger
from fulfillment.domain.service.reservation_coordinator import ReservationCoordinator


class FakeProductRepository(ProductRepository):

    def __init__(self, products: list[Product] | None = None) -> None:
        self._store: dict[str, Product] = {}
        self._lock = threading.Lock()
        # Number of upcoming compare_and_set calls that report a conflict.
        self.forced_conflicts = 0
        self.cas_calls = 0
        for p in products or []:
            self._store[p.id] = copy.copy(p)

    def get_by_id(self, product_id: str) -> Product | None:
        product = self._store.get(product_id)
        return copy.copy(product) if product is not None else None

    def list_all(self) -> list[Product]:
        return [copy.copy(p) for p in self._store.values()]

    def compare_and_set(self, product_id: str, expected: int, new: int) -> bool:
        with self._lock:
            self.cas_calls += 1
            product = self._store.get(product_id)
            if product is None:
                raise EntityNotFoundError(f"Product '{product_id}' not found")
            if self.forced_conflicts > 0:
                self.forced_conflicts -= 1
                return False
            if product.stock != expected:
                return False
            product.stock = new
            return True

    def stock(self, product_id: str) -> int:
        return self._store[product_id].stock


class FakeReservationRepository(ReservationRepository):

    def __init__(self) -> None:
        self._store: dict[str, Reservation] = {}
        self._lock = threading.Lock()

    def add(self, reservation: Reservation) -> bool:
        with self._lock:
            if reservation.token in self._store:
                return False
            self._store[reservation.token] = reservation
            return True

    def get(self, token: str) -> Reservation | None:
        return self._store.get(token)

    def pop(self, token: str) -> Reservation | None:
        with self._lock:
            return self._store.pop(token, None)

    def list_all(self) -> list[Reservation]:
        return list(self._store.values())


class FakeOrderRepository(OrderRepository):

    def __init__(self) -> None:
        self._store: dict[int, Order] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def add(self, order: Order) -> int:
        with self._lock:
            order.id = self._next_id
            self._next_id += 1
            self._store[order.id] = copy.deepcopy(order)
            return order.id

    def get_by_id(self, order_id: int) -> Order | None:
        order = self._store.get(order_id)
        return copy.deepcopy(order) if order is not None else None

    def find_by_reservation_token(self, token: str) -> Order | None:
        for order in self._store.values():
            if order.reservation_token == token:
                return copy.deepcopy(order)
        return None

    def save_if_status(self, order: Order, expected: OrderStatus) -> bool:
        with self._lock:
            stored = self._store.get(order.id)
            if stored is None or stored.status != expected:
                return False
            self._store[order.id] = copy.deepcopy(order)
            return True

    def put(self, order: Order) -> None:
        """Overwrite an order as-is, bypassing the status check."""
        self._store[order.id] = copy.deepcopy(order)


class FakeProofStorage(ProofStorage):

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.stored: dict[str, bytes] = {}

    def store(self, filename: str, payload: bytes) -> str:
        if self.fail:
            raise ProofUploadFailed("bucket unavailable")
        ref = f"memory://proofs/{filename}"
        self.stored[ref] = payload
        return ref


class FakePaymentGateway(PaymentGateway):

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.preferences: list[int] = []
        self.payments: dict[str, PaymentEvent] = {}

    def create_preference(
        self,
        items: tuple[OrderLineItem, ...],
        customer: Customer,
        order_id: int,
    ) -> Preference:
        if self.fail:
            raise GatewayRequestFailed("provider timeout")
        self.preferences.append(order_id)
        return Preference(
            preference_id=f"pref-{order_id}",
            redirect_url=f"https://pay.example.com/checkout?pref=pref-{order_id}",
        )

    def get_payment(self, payment_id: str) -> PaymentEvent:
        try:
            return self.payments[payment_id]
        except KeyError:
            raise GatewayRequestFailed(f"Unknown payment {payment_id}")


class RecordingChannel(NotificationChannel):

    def __init__(self) -> None:
        self.sent: list[tuple[int | None, Audience, str]] = []

    def send(self, order_id: int | None, audience: Audience, message: str) -> None:
        self.sent.append((order_id, audience, message))

    def for_audience(self, audience: Audience) -> list[str]:
        return [message for _, a, message in self.sent if a == audience]


class FailingChannel(NotificationChannel):

    def send(self, order_id: int | None, audience: Audience, message: str) -> None:
        raise ConnectionError("mail server down")


class Storefront:
    """The application layer wired to in-memory fakes."""

    def __init__(
        self,
        products: list[Product],
        channels: list[NotificationChannel] | None = None,
        storage: FakeProofStorage | None = None,
        gateway: FakePaymentGateway | None = None,
    ) -> None:
        self.products = FakeProductRepository(products)
        self.reservations = FakeReservationRepository()
        self.orders = FakeOrderRepository()
        self.channel = RecordingChannel()
        self.storage = storage or FakeProofStorage()
        self.gateway = gateway or FakePaymentGateway()

        self.ledger = InventoryLedger(self.products)
        self.coordinator = ReservationCoordinator(self.ledger, self.reservations)
        self.notifier = NotificationDispatcher([self.channel, *(channels or [])])
        self.manager = OrderRecordManager(self.orders, self.coordinator, self.notifier)
        self.offline = OfflineTransferPath(self.storage, self.manager)
        self.hosted = HostedPaymentPath(self.gateway, self.manager)
        self.checkout = CheckoutHandler(self.products, self.coordinator, self.manager, self.notifier)
        self.payment_events = PaymentEventHandler(self.hosted, self.manager, self.gateway)
