"""Concrete NotificationChannels.

- EmailChannel posts to the storefront's send-email endpoint, which
  resolves the order's recipients itself.
- ChatLogChannel appends a message to the order's chat thread.
- LogChannel writes to the application log (always available).

All of them may raise; the NotificationDispatcher swallows the failure.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

import httpx

from fulfillment.application.ports import Audience, NotificationChannel
from fulfillment.infrastructure.persistence.json_file import JsonFile

log = logging.getLogger(__name__)

SYSTEM_SENDER = "Store"


class EmailChannel(NotificationChannel):

    def __init__(
        self,
        endpoint: str,
        timeout: float = 5.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._client = client or httpx.Client(timeout=timeout)

    def send(self, order_id: int | None, audience: Audience, message: str) -> None:
        response = self._client.post(
            self._endpoint,
            json={
                "type": "order_notification",
                "audience": audience.value,
                "orderId": order_id,
                "message": message,
            },
        )
        response.raise_for_status()


class ChatLogChannel(NotificationChannel):
    """Customer-facing messages land in the order's chat thread."""

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    def send(self, order_id: int | None, audience: Audience, message: str) -> None:
        if audience != Audience.CUSTOMER or order_id is None:
            return
        with self._file.locked():
            records = self._file.load()
            records.append(
                {
                    "orderId": order_id,
                    "userName": SYSTEM_SENDER,
                    "message": message,
                    "isAdmin": True,
                    "read": False,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                }
            )
            self._file.persist(records)

    def messages_for(self, order_id: int) -> list[dict]:
        return [r for r in self._file.load() if r["orderId"] == order_id]


class LogChannel(NotificationChannel):

    def send(self, order_id: int | None, audience: Audience, message: str) -> None:
        log.info(f"[Order: {order_id}] notify {audience.value}: {message}")
