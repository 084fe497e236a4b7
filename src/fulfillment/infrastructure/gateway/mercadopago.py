"""Hosted payment gateway client (MercadoPago Checkout Pro REST API).

Creates checkout preferences correlated to an order id and resolves
payment notifications back into PaymentEvents. Every transport or
provider error surfaces as GatewayRequestFailed so the checkout can
release its reservation.
"""

from __future__ import annotations

import logging
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError as PayloadError

from fulfillment.application.ports import PaymentEvent, PaymentGateway, Preference
from fulfillment.domain.exceptions import GatewayRequestFailed
from fulfillment.domain.model.order import Customer, OrderLineItem
from fulfillment.infrastructure.gateway.models import (
    PaymentResponse,
    PreferenceItem,
    PreferenceResponse,
)

log = logging.getLogger(__name__)

WEBHOOK_PATH = "/api/payments/webhook"


class MercadoPagoGateway(PaymentGateway):

    def __init__(
        self,
        access_token: str | None,
        base_url: str,
        api_url: str = "https://api.mercadopago.com",
        timeout: float = 5.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._access_token = access_token
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(
            base_url=api_url, timeout=httpx.Timeout(timeout, read=timeout + 3.0)
        )

    # --- PaymentGateway interface ---------------------------------------------

    def create_preference(
        self,
        items: tuple[OrderLineItem, ...],
        customer: Customer,
        order_id: int,
    ) -> Preference:
        prefix = f"[Order: {order_id}]"
        body = {
            "items": [
                PreferenceItem(
                    id=item.product_id,
                    title=item.product_name,
                    quantity=item.quantity.value,
                    unit_price=float(item.unit_price.amount),
                    currency_id=item.unit_price.currency,
                    picture_url=item.image,
                ).model_dump(exclude_none=True)
                for item in items
            ],
            "payer": {"name": customer.name, "email": customer.email},
            "back_urls": {
                "success": self._return_url("success", order_id),
                "failure": self._return_url("failure", order_id),
                "pending": self._return_url("pending", order_id),
            },
            "external_reference": str(order_id),
            "notification_url": f"{self._base_url}{WEBHOOK_PATH}",
            "auto_return": "approved",
        }
        # The order id doubles as idempotency key: retries never create a
        # second preference for the same order.
        headers = {"X-Idempotency-Key": f"order_{order_id}"}
        data = self._request("POST", "/checkout/preferences", prefix, json=body, headers=headers)

        try:
            response = PreferenceResponse.model_validate(data)
        except PayloadError as exc:
            raise GatewayRequestFailed(f"Unexpected preference response: {exc}") from exc

        redirect_url = response.init_point or response.sandbox_init_point
        if not redirect_url:
            raise GatewayRequestFailed("Payment provider returned no checkout URL")
        return Preference(preference_id=response.id, redirect_url=redirect_url)

    def get_payment(self, payment_id: str) -> PaymentEvent:
        prefix = f"[Payment: {payment_id}]"
        data = self._request("GET", f"/v1/payments/{payment_id}", prefix)
        try:
            payment = PaymentResponse.model_validate(data)
            order_id = int(payment.external_reference or "")
        except (PayloadError, ValueError) as exc:
            raise GatewayRequestFailed(
                f"Payment {payment_id} does not reference a known order"
            ) from exc
        return PaymentEvent(
            order_id=order_id,
            event_id=f"payment:{payment.id}:{payment.status}",
            provider_status=payment.status,
        )

    # --- Internal helpers -----------------------------------------------------

    def _request(self, method: str, path: str, prefix: str, **kwargs) -> dict:
        if not self._access_token:
            raise GatewayRequestFailed("MERCADOPAGO_ACCESS_TOKEN is not configured")
        headers = {"Authorization": f"Bearer {self._access_token}"}
        headers.update(kwargs.pop("headers", {}))
        try:
            response = self._client.request(method, path, headers=headers, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as exc:
            log.error(f"{prefix} Payment provider timeout on {method} {path}")
            raise GatewayRequestFailed("Payment provider did not answer in time") from exc
        except httpx.HTTPStatusError as exc:
            log.error(f"{prefix} Payment provider returned {exc.response.status_code} on {path}")
            raise GatewayRequestFailed(
                f"Payment provider rejected the request ({exc.response.status_code})"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            log.error(f"{prefix} Payment provider request failed: {exc}")
            raise GatewayRequestFailed(f"Payment provider request failed: {exc}") from exc

    def _return_url(self, outcome: str, order_id: int) -> str:
        return f"{self._base_url}/checkout/{outcome}?{urlencode({'orderId': order_id})}"
