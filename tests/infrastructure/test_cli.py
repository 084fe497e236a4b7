"""End-to-end tests for the click CLI against JSON files under tmp_path."""

import json
import logging

import pytest
from click.testing import CliRunner

from fulfillment.infrastructure.cli.main import cli
from fulfillment.infrastructure.gateway.signature import sign

CUSTOMER_ARGS = ["--name", "Ana", "--email", "ana@example.com", "--phone", "+56911111111"]


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("FULFILLMENT_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("FULFILLMENT_LOG_LEVEL", "WARNING")
    monkeypatch.delenv("MERCADOPAGO_ACCESS_TOKEN", raising=False)
    monkeypatch.setenv("MERCADOPAGO_WEBHOOK_SECRET", "whsec-test")
    handlers = logging.root.handlers[:]
    yield tmp_path / "data"
    logging.root.handlers[:] = handlers


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def receipt(tmp_path):
    path = tmp_path / "receipt.pdf"
    path.write_bytes(b"%PDF-1.4 transfer")
    return path


def _seed(runner, stock=5):
    result = runner.invoke(
        cli, ["inventory", "add", "--id", "P1", "--name", "Lamp", "--price", "15990", "--stock", str(stock)]
    )
    assert result.exit_code == 0, result.output


class TestOfflineFlow:

    def test_checkout_then_verify(self, runner, receipt, data_dir):
        _seed(runner)

        result = runner.invoke(
            cli,
            ["checkout", "offline", "--token", "t1", *CUSTOMER_ARGS, "--address", "Av. 1",
             "--items", "P1:1", "--proof", str(receipt)],
        )
        assert result.exit_code == 0, result.output
        assert "Order #1 received  (status=pending_verification)" in result.output

        result = runner.invoke(cli, ["order", "verify", "--id", "1"])
        assert result.exit_code == 0, result.output
        assert "Order #1 confirmed." in result.output

        result = runner.invoke(cli, ["order", "show", "--id", "1"])
        assert "status=confirmed" in result.output
        assert "$15,990" in result.output

        products = json.loads((data_dir / "products.json").read_text())
        assert products[0]["stock"] == 4
        assert json.loads((data_dir / "reservations.json").read_text()) == []

    def test_out_of_stock_is_reported(self, runner, receipt):
        _seed(runner, stock=2)
        result = runner.invoke(
            cli,
            ["checkout", "offline", *CUSTOMER_ARGS, "--address", "Av. 1",
             "--items", "P1:10", "--proof", str(receipt)],
        )
        assert result.exit_code == 1
        assert "out of stock" in result.output

    def test_bad_items_format(self, runner, receipt):
        result = runner.invoke(
            cli,
            ["checkout", "offline", *CUSTOMER_ARGS, "--items", "P1", "--proof", str(receipt)],
        )
        assert result.exit_code == 2
        assert "ProductId:Quantity" in result.output


class TestHostedFlow:

    def test_gateway_failure_releases_stock(self, runner, data_dir):
        _seed(runner)
        result = runner.invoke(
            cli,
            ["checkout", "hosted", *CUSTOMER_ARGS, "--delivery", "pickup", "--items", "P1:3"],
        )
        assert result.exit_code == 1
        assert "nothing was charged" in result.output

        products = json.loads((data_dir / "products.json").read_text())
        assert products[0]["stock"] == 5
        orders = json.loads((data_dir / "orders.json").read_text())
        assert orders[0]["status"] == "cancelled"


class TestWebhook:

    def _body(self, tmp_path, payload):
        path = tmp_path / "body.json"
        path.write_text(json.dumps(payload))
        return str(path)

    def test_invalid_signature_rejected(self, runner, tmp_path):
        body = self._body(tmp_path, {"type": "payment", "data": {"id": "123"}})
        result = runner.invoke(
            cli,
            ["payment", "webhook", "--body", body, "--signature", "ts=1,v1=deadbeef", "--request-id", "r1"],
        )
        assert result.exit_code == 1
        assert "Invalid webhook signature" in result.output

    def test_non_payment_notification_ignored(self, runner, tmp_path):
        body = self._body(tmp_path, {"type": "merchant_order", "data": {"id": "55"}})
        signature = f"ts=1,v1={sign('whsec-test', '55', 'r1', '1')}"
        result = runner.invoke(
            cli,
            ["payment", "webhook", "--body", body, "--signature", signature, "--request-id", "r1"],
        )
        assert result.exit_code == 0, result.output
        assert "Ignored notification" in result.output


class TestStockCommands:

    def test_restock_adjust_and_show(self, runner):
        _seed(runner, stock=1)

        assert "is now 11" in runner.invoke(cli, ["inventory", "restock", "--product", "P1", "--quantity", "10"]).output
        assert "adjusted 11 -> 2" in runner.invoke(
            cli, ["inventory", "adjust", "--product", "P1", "--stock", "2", "--reason", "recount"]
        ).output

        result = runner.invoke(cli, ["inventory", "show", "--alerts"])
        assert "Lamp" in result.output
        assert "critical" in result.output

    def test_sweep_and_release(self, runner):
        result = runner.invoke(cli, ["reservation", "sweep"])
        assert result.exit_code == 0, result.output
        assert "Released 0" in result.output

        result = runner.invoke(cli, ["reservation", "release", "--token", "nope"])
        assert "No open reservation 'nope'" in result.output
