"""Webhook signature verification for the hosted payment provider.

The provider signs each notification with HMAC-SHA256 over
``id:<data.id>;request-id:<x-request-id>;ts:<ts>;`` and sends
``x-signature: ts=<ts>,v1=<hex digest>``.
"""

from __future__ import annotations

import hashlib
import hmac
import logging

from fulfillment.domain.exceptions import InvalidSignatureError

log = logging.getLogger(__name__)


def _parse_signature(header: str) -> tuple[str | None, str | None]:
    ts = v1 = None
    for part in header.split(","):
        key, _, value = part.strip().partition("=")
        if key == "ts":
            ts = value
        elif key == "v1":
            v1 = value
    return ts, v1


def signing_template(data_id: str, request_id: str, ts: str) -> str:
    return f"id:{data_id};request-id:{request_id};ts:{ts};"


def sign(secret: str, data_id: str, request_id: str, ts: str) -> str:
    template = signing_template(data_id, request_id, ts)
    return hmac.new(secret.encode(), template.encode(), hashlib.sha256).hexdigest()


def verify_webhook_signature(
    secret: str | None,
    signature_header: str | None,
    request_id: str | None,
    data_id: str | None,
) -> None:
    """Raise InvalidSignatureError unless the notification is authentic."""
    if not secret:
        raise InvalidSignatureError("Webhook secret is not configured")
    if not signature_header or not request_id or not data_id:
        raise InvalidSignatureError("Webhook is missing its signature, request id or data id")

    ts, v1 = _parse_signature(signature_header)
    if not ts or not v1:
        raise InvalidSignatureError("Incomplete webhook signature header")

    expected = sign(secret, data_id, request_id, ts)
    if not hmac.compare_digest(expected, v1.lower()):
        log.warning(f"Invalid webhook signature for request {request_id}")
        raise InvalidSignatureError("Invalid webhook signature")
