"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from fulfillment.application.checkout import CheckoutHandler
from fulfillment.application.notifications import NotificationDispatcher
from fulfillment.application.order_manager import OrderRecordManager
from fulfillment.application.payment_events import PaymentEventHandler
from fulfillment.application.payment_paths import HostedPaymentPath, OfflineTransferPath
from fulfillment.application.ports import NotificationChannel
from fulfillment.application.sweep import SweepHandler
from fulfillment.domain.service.inventory_ledger import InventoryLedger
from fulfillment.domain.service.reservation_coordinator import ReservationCoordinator
from fulfillment.infrastructure.config import Settings, load_settings
from fulfillment.infrastructure.gateway.mercadopago import MercadoPagoGateway
from fulfillment.infrastructure.notifications.channels import (
    ChatLogChannel,
    EmailChannel,
    LogChannel,
)
from fulfillment.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from fulfillment.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)
from fulfillment.infrastructure.persistence.json_reservation_repository import (
    JsonReservationRepository,
)
from fulfillment.infrastructure.storage.local_proof_storage import LocalProofStorage


def settings() -> Settings:
    return load_settings()


def product_repository(cfg: Settings | None = None) -> JsonProductRepository:
    cfg = cfg or settings()
    return JsonProductRepository(cfg.data_dir / "products.json")


def reservation_repository(cfg: Settings | None = None) -> JsonReservationRepository:
    cfg = cfg or settings()
    return JsonReservationRepository(cfg.data_dir / "reservations.json")


def order_repository(cfg: Settings | None = None) -> JsonOrderRepository:
    cfg = cfg or settings()
    return JsonOrderRepository(cfg.data_dir / "orders.json")


def inventory_ledger(cfg: Settings | None = None) -> InventoryLedger:
    return InventoryLedger(product_repository(cfg))


def reservation_coordinator(cfg: Settings | None = None) -> ReservationCoordinator:
    return ReservationCoordinator(inventory_ledger(cfg), reservation_repository(cfg))


def notifier(cfg: Settings | None = None) -> NotificationDispatcher:
    cfg = cfg or settings()
    channels: list[NotificationChannel] = [
        LogChannel(),
        ChatLogChannel(cfg.data_dir / "chat_messages.json"),
    ]
    if cfg.email_endpoint:
        channels.append(EmailChannel(cfg.email_endpoint, timeout=cfg.http_timeout))
    return NotificationDispatcher(channels)


def order_manager(cfg: Settings | None = None) -> OrderRecordManager:
    cfg = cfg or settings()
    return OrderRecordManager(
        order_repository(cfg), reservation_coordinator(cfg), notifier(cfg)
    )


def payment_gateway(cfg: Settings | None = None) -> MercadoPagoGateway:
    cfg = cfg or settings()
    return MercadoPagoGateway(
        access_token=cfg.mercadopago_access_token,
        base_url=cfg.base_url,
        api_url=cfg.mercadopago_api_url,
        timeout=cfg.http_timeout,
    )


def offline_path(cfg: Settings | None = None) -> OfflineTransferPath:
    cfg = cfg or settings()
    return OfflineTransferPath(
        LocalProofStorage(cfg.data_dir / "proofs"),
        order_manager(cfg),
        max_proof_bytes=cfg.proof_max_bytes,
    )


def hosted_path(cfg: Settings | None = None) -> HostedPaymentPath:
    cfg = cfg or settings()
    return HostedPaymentPath(payment_gateway(cfg), order_manager(cfg))


def checkout_handler(cfg: Settings | None = None) -> CheckoutHandler:
    cfg = cfg or settings()
    return CheckoutHandler(
        product_repo=product_repository(cfg),
        coordinator=reservation_coordinator(cfg),
        manager=order_manager(cfg),
        notifier=notifier(cfg),
    )


def payment_event_handler(cfg: Settings | None = None) -> PaymentEventHandler:
    cfg = cfg or settings()
    gateway = payment_gateway(cfg)
    manager = order_manager(cfg)
    return PaymentEventHandler(HostedPaymentPath(gateway, manager), manager, gateway)


def sweep_handler(cfg: Settings | None = None) -> SweepHandler:
    cfg = cfg or settings()
    return SweepHandler(
        coordinator=reservation_coordinator(cfg),
        order_repo=order_repository(cfg),
        manager=order_manager(cfg),
        stale_after=cfg.stale_after,
    )
