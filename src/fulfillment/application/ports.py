"""Ports for the external collaborators the fulfillment core calls into.

Object storage, the hosted payment gateway and outbound notification
channels are owned by other systems; the infrastructure layer provides
concrete adapters and the tests provide fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from fulfillment.domain.model.order import Customer, OrderLineItem


class Audience(Enum):
    CUSTOMER = "customer"
    STAFF = "staff"


@dataclass(frozen=True)
class Preference:
    """A provider-side payment intent the customer is redirected to."""

    preference_id: str
    redirect_url: str


@dataclass(frozen=True)
class PaymentEvent:
    """A provider report about a payment, keyed for idempotency by ``event_id``."""

    order_id: int
    event_id: str
    provider_status: str


class ProofStorage(ABC):

    @abstractmethod
    def store(self, filename: str, payload: bytes) -> str:
        """Store a payment proof and return a retrievable reference.

        Raises ProofUploadFailed when the object store rejects the write.
        """


class PaymentGateway(ABC):

    @abstractmethod
    def create_preference(
        self,
        items: tuple[OrderLineItem, ...],
        customer: Customer,
        order_id: int,
    ) -> Preference:
        """Create a hosted checkout correlated to *order_id*.

        Raises GatewayRequestFailed on any provider or transport error.
        """

    @abstractmethod
    def get_payment(self, payment_id: str) -> PaymentEvent:
        """Look up a payment the provider notified us about."""


class NotificationChannel(ABC):

    @abstractmethod
    def send(self, order_id: int | None, audience: Audience, message: str) -> None:
        """Deliver a message out of band. May raise; callers swallow."""
