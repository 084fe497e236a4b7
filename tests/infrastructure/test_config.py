"""Tests for environment-driven settings."""

from datetime import timedelta
from pathlib import Path

import pytest

from fulfillment.infrastructure.config import load_settings


class TestLoadSettings:

    def test_defaults(self):
        settings = load_settings({})
        assert settings.log_level == "INFO"
        assert settings.currency == "CLP"
        assert settings.proof_max_bytes == 5 * 1024 * 1024
        assert settings.stale_after == timedelta(minutes=60)
        assert settings.mercadopago_access_token is None
        assert settings.data_dir.name == "data"

    def test_overrides(self, tmp_path):
        settings = load_settings(
            {
                "FULFILLMENT_DATA_DIR": str(tmp_path),
                "FULFILLMENT_LOG_LEVEL": "debug",
                "FULFILLMENT_RESERVATION_STALE_MINUTES": "15",
                "FULFILLMENT_BASE_URL": " https://shop.example.com/ ",
                "MERCADOPAGO_ACCESS_TOKEN": "APP_USR-1",
                "FULFILLMENT_HTTP_TIMEOUT": "2.5",
            }
        )
        assert settings.data_dir == Path(tmp_path)
        assert settings.log_level == "DEBUG"
        assert settings.stale_after == timedelta(minutes=15)
        assert settings.base_url == "https://shop.example.com"
        assert settings.mercadopago_access_token == "APP_USR-1"
        assert settings.http_timeout == 2.5

    def test_blank_optional_is_none(self):
        assert load_settings({"MERCADOPAGO_WEBHOOK_SECRET": "  "}).mercadopago_webhook_secret is None

    def test_bad_integer(self):
        with pytest.raises(ValueError, match="FULFILLMENT_PROOF_MAX_BYTES"):
            load_settings({"FULFILLMENT_PROOF_MAX_BYTES": "five"})
