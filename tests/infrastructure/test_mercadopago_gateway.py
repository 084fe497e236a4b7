"""Tests for the hosted payment gateway client against a mocked transport."""

import json

import httpx
import pytest

from fulfillment.domain.exceptions import GatewayRequestFailed
from fulfillment.domain.model.order import Customer, OrderLineItem
from fulfillment.domain.model.value_objects import Money, Quantity
from fulfillment.infrastructure.gateway.mercadopago import MercadoPagoGateway

ITEMS = (
    OrderLineItem("P1", "Lamp", Quantity(2), Money.of("15990"), image="https://cdn.example.com/lamp.jpg"),
    OrderLineItem("P2", "Chair", Quantity(1), Money.of("49990")),
)
CUSTOMER = Customer(name="Bruno", email="bruno@example.com", phone="1")


def _gateway(handler, token: str | None = "TEST-token") -> MercadoPagoGateway:
    client = httpx.Client(
        transport=httpx.MockTransport(handler), base_url="https://api.mercadopago.com"
    )
    return MercadoPagoGateway(
        access_token=token, base_url="https://shop.example.com/", client=client
    )


class TestCreatePreference:

    def test_posts_items_and_correlates_order(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(
                201,
                json={"id": "pref-1", "init_point": "https://mp.example.com/init?pref=pref-1"},
            )

        preference = _gateway(handler).create_preference(ITEMS, CUSTOMER, 42)

        assert preference.preference_id == "pref-1"
        assert preference.redirect_url == "https://mp.example.com/init?pref=pref-1"
        request = seen["request"]
        assert request.method == "POST"
        assert request.url.path == "/checkout/preferences"
        assert request.headers["Authorization"] == "Bearer TEST-token"
        assert request.headers["X-Idempotency-Key"] == "order_42"
        body = json.loads(request.content)
        assert body["external_reference"] == "42"
        assert body["notification_url"] == "https://shop.example.com/api/payments/webhook"
        assert body["back_urls"]["success"] == "https://shop.example.com/checkout/success?orderId=42"
        assert body["auto_return"] == "approved"
        assert body["items"][0] == {
            "id": "P1",
            "title": "Lamp",
            "quantity": 2,
            "unit_price": 15990.0,
            "currency_id": "CLP",
            "picture_url": "https://cdn.example.com/lamp.jpg",
        }
        assert "picture_url" not in body["items"][1]

    def test_falls_back_to_sandbox_url(self):
        def handler(request):
            return httpx.Response(201, json={"id": "pref-1", "sandbox_init_point": "https://sandbox/x"})

        assert _gateway(handler).create_preference(ITEMS, CUSTOMER, 1).redirect_url == "https://sandbox/x"

    def test_missing_checkout_url(self):
        def handler(request):
            return httpx.Response(201, json={"id": "pref-1"})

        with pytest.raises(GatewayRequestFailed, match="no checkout URL"):
            _gateway(handler).create_preference(ITEMS, CUSTOMER, 1)

    def test_provider_error(self):
        def handler(request):
            return httpx.Response(400, json={"message": "invalid items"})

        with pytest.raises(GatewayRequestFailed, match="400"):
            _gateway(handler).create_preference(ITEMS, CUSTOMER, 1)

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(GatewayRequestFailed, match="in time"):
            _gateway(handler).create_preference(ITEMS, CUSTOMER, 1)

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(GatewayRequestFailed, match="request failed"):
            _gateway(handler).create_preference(ITEMS, CUSTOMER, 1)

    def test_not_configured(self):
        def handler(request):
            raise AssertionError("must not be called")

        with pytest.raises(GatewayRequestFailed, match="not configured"):
            _gateway(handler, token=None).create_preference(ITEMS, CUSTOMER, 1)


class TestGetPayment:

    def test_maps_payment_to_event(self):
        def handler(request):
            assert request.url.path == "/v1/payments/987"
            return httpx.Response(
                200,
                json={"id": 987, "status": "approved", "external_reference": "42", "payer": {}},
            )

        event = _gateway(handler).get_payment("987")

        assert event.order_id == 42
        assert event.event_id == "payment:987:approved"
        assert event.provider_status == "approved"

    def test_payment_without_order_reference(self):
        def handler(request):
            return httpx.Response(200, json={"id": 987, "status": "approved"})

        with pytest.raises(GatewayRequestFailed, match="known order"):
            _gateway(handler).get_payment("987")
