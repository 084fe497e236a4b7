"""Tests for manual stock changes and the inventory query."""

import pytest

from fulfillment.application.show_inventory import ShowInventoryHandler
from fulfillment.application.stock_admin import AdjustStockHandler, RestockHandler
from fulfillment.domain.exceptions import EntityNotFoundError, ValidationError
from fulfillment.domain.model.product import Product
from fulfillment.domain.model.reservation import CartLine
from fulfillment.domain.model.value_objects import Money, Quantity
from tests.fakes import Storefront


def _setup() -> Storefront:
    return Storefront(
        [
            Product(id="P1", name="Lamp", price=Money.of("15990"), stock=20, min_stock=5),
            Product(id="P2", name="Chair", price=Money.of("49990"), stock=2, min_stock=5),
            Product(id="P3", name="Desk", price=Money.of("99990"), stock=0),
        ]
    )


class TestRestock:

    def test_adds_units(self):
        store = _setup()
        assert RestockHandler(store.ledger, store.products).handle("P2", 10) == 12

    def test_unknown_product(self):
        store = _setup()
        with pytest.raises(EntityNotFoundError):
            RestockHandler(store.ledger, store.products).handle("ghost", 1)

    def test_zero_rejected(self):
        store = _setup()
        with pytest.raises(ValidationError):
            RestockHandler(store.ledger, store.products).handle("P1", 0)

    def test_does_not_clobber_open_reservation(self):
        store = _setup()
        store.coordinator.reserve("tok", [CartLine("P1", Quantity(3))])
        RestockHandler(store.ledger, store.products).handle("P1", 5)
        store.coordinator.release("tok")
        assert store.products.stock("P1") == 25


class TestAdjust:

    def test_returns_previous_level(self):
        store = _setup()
        assert AdjustStockHandler(store.ledger).handle("P1", 7, reason="recount") == 20
        assert store.products.stock("P1") == 7

    def test_negative_rejected(self):
        store = _setup()
        with pytest.raises(ValidationError):
            AdjustStockHandler(store.ledger).handle("P1", -2)
        assert store.products.stock("P1") == 20


class TestShowInventory:

    def test_lists_every_product_with_severity(self):
        store = _setup()
        lines = ShowInventoryHandler(store.products).handle()
        assert [(line.product_id, line.severity) for line in lines] == [
            ("P1", None),
            ("P2", "critical"),
            ("P3", "out"),
        ]

    def test_alerts_only(self):
        store = _setup()
        lines = ShowInventoryHandler(store.products).handle(alerts_only=True)
        assert [line.product_id for line in lines] == ["P2", "P3"]
