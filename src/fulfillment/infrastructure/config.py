"""Runtime settings, read from environment variables.

Every value has a default suitable for local use; deployments override
them through the environment. ``FULFILLMENT_DATA_DIR`` decides where the
JSON documents and stored proofs live.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    log_level: str = "INFO"
    currency: str = "CLP"
    proof_max_bytes: int = 5 * 1024 * 1024
    reservation_stale_minutes: int = 60
    base_url: str = "http://localhost:3000"
    mercadopago_api_url: str = "https://api.mercadopago.com"
    mercadopago_access_token: str | None = None
    mercadopago_webhook_secret: str | None = None
    email_endpoint: str | None = None
    http_timeout: float = 5.0

    @property
    def stale_after(self) -> timedelta:
        return timedelta(minutes=self.reservation_stale_minutes)


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    return Settings(
        data_dir=Path(env.get("FULFILLMENT_DATA_DIR", _DEFAULT_DATA_DIR)),
        log_level=env.get("FULFILLMENT_LOG_LEVEL", "INFO").upper(),
        currency=env.get("FULFILLMENT_CURRENCY", "CLP"),
        proof_max_bytes=_int(env, "FULFILLMENT_PROOF_MAX_BYTES", 5 * 1024 * 1024),
        reservation_stale_minutes=_int(env, "FULFILLMENT_RESERVATION_STALE_MINUTES", 60),
        base_url=env.get("FULFILLMENT_BASE_URL", "http://localhost:3000").strip().rstrip("/"),
        mercadopago_api_url=env.get(
            "MERCADOPAGO_API_URL", "https://api.mercadopago.com"
        ).rstrip("/"),
        mercadopago_access_token=_optional(env, "MERCADOPAGO_ACCESS_TOKEN"),
        mercadopago_webhook_secret=_optional(env, "MERCADOPAGO_WEBHOOK_SECRET"),
        email_endpoint=_optional(env, "FULFILLMENT_EMAIL_ENDPOINT"),
        http_timeout=float(env.get("FULFILLMENT_HTTP_TIMEOUT", "5.0")),
    )


def _int(env, name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _optional(env, name: str) -> str | None:
    value = (env.get(name) or "").strip()
    return value or None
