"""
Common Value Objects

Value objects used across multiple domains:
- Money: Monetary amount held as an integer number of minor units (cents)
- DateRange: Half-open range of calendar dates (check-in to check-out)
- round_half_up: The single rounding rule used for every monetary product
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterator

from shared.domain.base import ValueObject

# ISO 4217 minor-unit exponents for the currencies the platform settles in
CURRENCY_EXPONENTS = {
    'DZD': 2,
    'EUR': 2,
    'USD': 2,
    'GBP': 2,
    'KZT': 2,
    'MAD': 2,
    'TND': 3,
    'JPY': 0,
}


def round_half_up(value: Decimal) -> int:
    """Round a Decimal amount of minor units to an int, halves away from zero"""
    return int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    All arithmetic happens on integer minor units so that sums never drift.
    Conversion to major units (Decimal) happens only at the boundary via
    `to_major()` / `from_major()`.
    """
    minor: int
    currency: str

    def __post_init__(self):
        if not isinstance(self.minor, int) or isinstance(self.minor, bool):
            raise TypeError("Money.minor must be an int number of minor units")
        if self.minor < 0:
            raise ValueError("Amount cannot be negative")
        if self.currency not in CURRENCY_EXPONENTS:
            raise ValueError(f"Unsupported currency: {self.currency}")

    @classmethod
    def zero(cls, currency: str) -> 'Money':
        return cls(0, currency)

    @classmethod
    def from_major(cls, amount, currency: str) -> 'Money':
        """Build from a major-unit amount such as Decimal('8500.00')"""
        if currency not in CURRENCY_EXPONENTS:
            raise ValueError(f"Unsupported currency: {currency}")
        scaled = Decimal(str(amount)).scaleb(CURRENCY_EXPONENTS[currency])
        return cls(round_half_up(scaled), currency)

    def to_major(self) -> Decimal:
        exponent = CURRENCY_EXPONENTS[self.currency]
        return Decimal(self.minor).scaleb(-exponent).quantize(Decimal(1).scaleb(-exponent))

    def _check_currency(self, other: 'Money', operation: str):
        if not isinstance(other, Money):
            raise TypeError(f"Can only {operation} Money and Money")
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot {operation} different currencies: {self.currency} and {other.currency}"
            )

    def __add__(self, other: 'Money') -> 'Money':
        self._check_currency(other, 'add')
        return Money(self.minor + other.minor, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        self._check_currency(other, 'subtract')
        return Money(self.minor - other.minor, self.currency)

    def multiply(self, factor) -> 'Money':
        """Multiply by an int or Decimal factor, rounding half-up to a minor unit"""
        if isinstance(factor, float):
            raise TypeError("Use Decimal, not float, for monetary factors")
        if not isinstance(factor, (int, Decimal)):
            raise TypeError("Can only multiply Money by int or Decimal")
        return Money(round_half_up(Decimal(self.minor) * Decimal(factor)), self.currency)

    def __str__(self):
        return f"{self.to_major():,} {self.currency}"

    def __repr__(self):
        return f"Money({self.minor}, '{self.currency}')"


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Date range value object

    Represents a range from start_date (inclusive) to end_date (exclusive).
    Used for stays, availability checks and blocks.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if not isinstance(self.start_date, date) or not isinstance(self.end_date, date):
            raise TypeError("DateRange bounds must be dates")
        if self.start_date >= self.end_date:
            raise ValueError(f"Start date ({self.start_date}) must be before end date ({self.end_date})")

    def overlaps_with(self, other: 'DateRange') -> bool:
        """
        Check if this range overlaps with another

        Note: end_date is exclusive, so adjacent ranges don't overlap.

        Examples:
            - DateRange(25, 28) overlaps with DateRange(27, 30) -> True
            - DateRange(25, 28) overlaps with DateRange(28, 31) -> False (adjacent)
        """
        if not isinstance(other, DateRange):
            raise TypeError("Can only check overlap with another DateRange")

        return (self.start_date < other.end_date and
                other.start_date < self.end_date)

    def contains(self, check_date: date) -> bool:
        """start_date is inclusive, end_date is exclusive"""
        return self.start_date <= check_date < self.end_date

    def nights(self) -> Iterator[date]:
        """Yield every night (the date slept on) in the range"""
        current = self.start_date
        while current < self.end_date:
            yield current
            current += timedelta(days=1)

    def __len__(self) -> int:
        """Number of nights in this range"""
        return (self.end_date - self.start_date).days

    def __str__(self):
        return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"

    def __repr__(self):
        return f"DateRange({self.start_date}, {self.end_date})"
