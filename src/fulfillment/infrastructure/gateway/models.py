"""Pydantic models for the hosted payment provider's payloads.

Only the fields the fulfillment core reads are declared; everything else
the provider sends is ignored.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _ProviderModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class PreferenceItem(_ProviderModel):
    id: str
    title: str
    quantity: int = Field(..., gt=0)
    unit_price: float = Field(..., ge=0)
    currency_id: str
    picture_url: str | None = None


class PreferenceResponse(_ProviderModel):
    id: str
    init_point: str | None = None
    sandbox_init_point: str | None = None


class PaymentResponse(_ProviderModel):
    id: int | str
    status: str
    status_detail: str | None = None
    external_reference: str | None = None
    transaction_amount: float | None = None


class WebhookData(_ProviderModel):
    id: str


class WebhookNotification(_ProviderModel):
    """Body of a provider notification POSTed to the webhook URL."""

    type: str | None = None
    action: str | None = None
    data: WebhookData | None = None
