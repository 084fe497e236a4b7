"""Immutable value types for prices and cart quantities.

Both validate on construction, so a Money or Quantity that exists is a
usable one.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from fulfillment.domain.exceptions import ValidationError

DEFAULT_CURRENCY = "CLP"

# Currencies the storefront prices without minor units.
_ZERO_DECIMAL_CURRENCIES = frozenset({"CLP", "JPY", "KRW", "PYG"})


@dataclass(frozen=True)
class Money:
    """A non-negative Decimal amount in one currency."""

    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError(
                f"Money amount must be a Decimal, got {type(self.amount).__name__}"
            )
        if self.amount < 0:
            raise ValidationError(f"Money amount cannot be negative, got {self.amount}")

    def __add__(self, other: Money) -> Money:
        if self.currency != other.currency:
            raise ValidationError(f"Cannot combine {self.currency} with {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, factor: int) -> Money:
        if not isinstance(factor, int):
            raise TypeError(f"Can only multiply Money by int, got {type(factor).__name__}")
        return Money(self.amount * factor, self.currency)

    def __str__(self) -> str:
        if self.currency in _ZERO_DECIMAL_CURRENCIES:
            return f"${self.amount:,.0f}"
        return f"${self.amount:,.2f}"

    @staticmethod
    def of(amount: str | int | Decimal, currency: str = DEFAULT_CURRENCY) -> Money:
        """Build from user or catalog input (``"15990"``, ``10``)."""
        try:
            return Money(Decimal(str(amount)), currency)
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc

    @staticmethod
    def zero(currency: str = DEFAULT_CURRENCY) -> Money:
        return Money(Decimal(0), currency)


@dataclass(frozen=True)
class Quantity:
    """How many units of one product a cart line asks for; at least one."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")
