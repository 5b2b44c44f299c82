"""Money value object for monetary amounts with currency.

Amounts are stored as floats and every arithmetic operation goes through
``Decimal`` so that sums of cent values stay exact.
"""

from decimal import ROUND_HALF_UP, Decimal

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Float, String

from shipping.domain import shipping

VALID_CURRENCIES = frozenset(
    {
        "USD",
        "EUR",
        "GBP",
        "JPY",
        "CAD",
        "AUD",
        "CHF",
        "CNY",
        "INR",
        "MXN",
        "BRL",
        "KRW",
        "SGD",
        "HKD",
        "NOK",
        "SEK",
        "DKK",
        "NZD",
        "ZAR",
        "TWD",
    }
)

CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


@shipping.value_object
class Money:
    """Value object representing a monetary amount with currency."""

    amount: Float(required=True, min_value=0.0)
    currency: String(max_length=3, default="USD")

    @invariant.post
    def currency_must_be_valid_iso_4217(self):
        if self.currency not in VALID_CURRENCIES:
            raise ValidationError({"currency": [f"Unsupported currency: {self.currency}"]})

    @classmethod
    def zero(cls, currency: str = "USD") -> "Money":
        return cls(amount=0.0, currency=currency)

    @classmethod
    def of(cls, amount, currency: str = "USD") -> "Money":
        """Build a Money rounded half-up to whole cents."""
        return cls(amount=float(to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)), currency=currency)

    def _require_same_currency(self, other: "Money") -> None:
        if other.currency != self.currency:
            raise ValidationError({"currency": [f"Currency mismatch: {self.currency} vs {other.currency}"]})

    def add(self, other: "Money") -> "Money":
        self._require_same_currency(other)
        return Money(amount=float(to_decimal(self.amount) + to_decimal(other.amount)), currency=self.currency)

    def subtract(self, other: "Money") -> "Money":
        self._require_same_currency(other)
        result = to_decimal(self.amount) - to_decimal(other.amount)
        if result < 0:
            raise ValidationError({"amount": ["Subtraction would result in a negative amount"]})
        return Money(amount=float(result), currency=self.currency)

    def multiply(self, factor) -> "Money":
        if to_decimal(factor) < 0:
            raise ValidationError({"amount": ["Cannot multiply by a negative factor"]})
        return Money.of(to_decimal(self.amount) * to_decimal(factor), self.currency)

    def is_zero(self) -> bool:
        return to_decimal(self.amount) == 0
