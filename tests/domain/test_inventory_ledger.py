"""Unit tests for the InventoryLedger domain service."""

import threading

import pytest

from fulfillment.domain.exceptions import (
    ConcurrencyError,
    EntityNotFoundError,
    ValidationError,
)
from fulfillment.domain.model.product import Product
from fulfillment.domain.model.value_objects import Money
from fulfillment.domain.service.inventory_ledger import DecrementResult, InventoryLedger
from tests.fakes import FakeProductRepository


def _setup(stock: int = 5) -> tuple[InventoryLedger, FakeProductRepository]:
    repo = FakeProductRepository([Product(id="P1", name="Lamp", price=Money.of("15990"), stock=stock)])
    return InventoryLedger(repo), repo


class TestTryDecrement:

    def test_decrements_available_stock(self):
        ledger, repo = _setup(stock=5)
        assert ledger.try_decrement("P1", 2) == DecrementResult.OK
        assert repo.stock("P1") == 3

    def test_can_take_the_last_unit(self):
        ledger, repo = _setup(stock=1)
        assert ledger.try_decrement("P1", 1) == DecrementResult.OK
        assert repo.stock("P1") == 0

    def test_rejects_more_than_available_without_partial_write(self):
        ledger, repo = _setup(stock=3)
        assert ledger.try_decrement("P1", 4) == DecrementResult.INSUFFICIENT_STOCK
        assert repo.stock("P1") == 3

    def test_zero_quantity_rejected(self):
        ledger, _ = _setup()
        with pytest.raises(ValidationError, match="must be positive"):
            ledger.try_decrement("P1", 0)

    def test_unknown_product(self):
        ledger, _ = _setup()
        with pytest.raises(EntityNotFoundError):
            ledger.try_decrement("nope", 1)

    def test_retries_after_a_conflict(self):
        ledger, repo = _setup(stock=5)
        repo.forced_conflicts = 3
        assert ledger.try_decrement("P1", 1) == DecrementResult.OK
        assert repo.stock("P1") == 4
        assert repo.cas_calls == 4

    def test_gives_up_after_max_retries(self):
        repo = FakeProductRepository([Product(id="P1", name="Lamp", price=Money.of("1"), stock=5)])
        ledger = InventoryLedger(repo, max_retries=3)
        repo.forced_conflicts = 3
        with pytest.raises(ConcurrencyError):
            ledger.try_decrement("P1", 1)
        assert repo.stock("P1") == 5


class TestIncrement:

    def test_returns_units(self):
        ledger, repo = _setup(stock=0)
        ledger.increment("P1", 4)
        assert repo.stock("P1") == 4

    def test_negative_quantity_rejected(self):
        ledger, _ = _setup()
        with pytest.raises(ValidationError):
            ledger.increment("P1", -1)


class TestAdjust:

    def test_sets_absolute_level(self):
        ledger, repo = _setup(stock=5)
        assert ledger.adjust("P1", 12) == 5
        assert repo.stock("P1") == 12

    def test_negative_level_rejected(self):
        ledger, _ = _setup()
        with pytest.raises(ValidationError, match="cannot be negative"):
            ledger.adjust("P1", -1)


class TestConcurrentDecrements:

    def test_never_oversells(self):
        ledger, repo = _setup(stock=10)
        results: list[DecrementResult] = []
        lock = threading.Lock()

        def buy():
            result = ledger.try_decrement("P1", 1)
            with lock:
                results.append(result)

        threads = [threading.Thread(target=buy) for _ in range(25)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(DecrementResult.OK) == 10
        assert results.count(DecrementResult.INSUFFICIENT_STOCK) == 15
        assert repo.stock("P1") == 0
