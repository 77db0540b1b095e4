"""
Common Value Objects

- Money: a non-negative amount in one currency
- DateRange: a stay, start date inclusive and end date exclusive
"""

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal('0.01')


@dataclass(frozen=True)
class Money:
    """
    Money value object

    Immutable. Amounts are kept as Decimal; floats and strings are converted
    on construction.
    """
    amount: Decimal
    currency: str = 'usd'

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        if not self.currency:
            raise ValueError("Currency is required")

    def __mul__(self, factor) -> 'Money':
        if not isinstance(factor, (int, Decimal)):
            raise TypeError("Money can only be multiplied by an int or Decimal")
        return Money(self.amount * factor, self.currency)

    def quantize(self) -> 'Money':
        """Round half-up to whole cents."""
        return Money(self.amount.quantize(CENT, rounding=ROUND_HALF_UP), self.currency)

    @property
    def minor_units(self) -> int:
        """Amount in cents, as Stripe expects it."""
        return int((self.amount / CENT).quantize(Decimal('1'), rounding=ROUND_HALF_UP))

    def __str__(self):
        return f"{self.amount:,.2f} {self.currency.upper()}"


@dataclass(frozen=True)
class DateRange:
    """A stay from start_date (inclusive) to end_date (exclusive)."""
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date >= self.end_date:
            raise ValueError(f"Start date ({self.start_date}) must be before end date ({self.end_date})")

    def __len__(self) -> int:
        """Number of nights."""
        return (self.end_date - self.start_date).days

    def __str__(self):
        return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"
