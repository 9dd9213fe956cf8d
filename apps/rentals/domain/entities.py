"""
Rate Catalog Entities

- RentalUnit: a bookable property with its base rate and fee structure
- PricingRule: a date-bounded multiplier on the base rate
- AvailabilityBlock: nights taken off the market by the owner or maintenance
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from shared.domain.base import Entity
from shared.domain.exceptions import ValidationError
from shared.domain.value_objects import DateRange, Money

MAX_MULTIPLIER = Decimal('10')


class UnitStatus(Enum):
    """
    Unit lifecycle status

    Units are never deleted, only moved between these states.
    Only AVAILABLE units accept new bookings.
    """
    AVAILABLE = 'available'
    OCCUPIED = 'occupied'
    MAINTENANCE = 'maintenance'


@dataclass(kw_only=True, eq=False)
class RentalUnit(Entity):
    """
    Rental unit with its pricing configuration

    Rates and fees are Money in the unit's currency. `tax_rate` is the
    VAT-style fraction applied to subtotal + fees; `tourist_tax` is a flat
    per-stay charge. Both come from the unit's jurisdiction.
    """
    owner_id: UUID | None = None
    name: str = ''
    base_rate: Money
    max_guests: int
    cleaning_fee: Money
    tax_rate: Decimal = Decimal('0')
    tourist_tax: Money | None = None
    min_nights: int = 1
    max_nights: int | None = None
    status: UnitStatus = UnitStatus.AVAILABLE

    def __post_init__(self):
        if self.tourist_tax is None:
            self.tourist_tax = Money.zero(self.currency)

        if self.base_rate.minor <= 0:
            raise ValidationError("Base nightly rate must be positive", field='base_rate')
        if self.cleaning_fee.currency != self.currency or self.tourist_tax.currency != self.currency:
            raise ValidationError("All unit amounts must share the base rate currency", field='currency')
        if self.max_guests < 1:
            raise ValidationError("Unit must accept at least one guest", field='max_guests')
        if not Decimal('0') <= self.tax_rate < Decimal('1'):
            raise ValidationError("Tax rate must be a fraction in [0, 1)", field='tax_rate')
        if self.min_nights < 1:
            raise ValidationError("Minimum stay must be at least one night", field='min_nights')
        if self.max_nights is not None and self.max_nights < self.min_nights:
            raise ValidationError("Maximum stay cannot be below minimum stay", field='max_nights')

    @property
    def currency(self) -> str:
        return self.base_rate.currency

    @property
    def is_bookable(self) -> bool:
        return self.status == UnitStatus.AVAILABLE

    def change_status(self, status: UnitStatus, now: datetime):
        self.status = status
        self.touch(now)

    def __str__(self):
        return f"RentalUnit {self.name or self.id} ({self.status.value})"


@dataclass(kw_only=True, eq=False)
class PricingRule(Entity):
    """
    Date-bounded override of a unit's base rate

    Both start_date and end_date are inclusive nights. A deactivated rule
    stays stored but no longer prices anything.
    """
    unit_id: UUID
    start_date: date
    end_date: date
    multiplier: Decimal
    label: str = ''
    is_active: bool = True

    def __post_init__(self):
        self.multiplier = Decimal(str(self.multiplier))
        self.validate()

    def validate(self):
        if self.start_date >= self.end_date:
            raise ValidationError(
                f"Rule start ({self.start_date}) must be before its end ({self.end_date})",
                field='end_date',
            )
        if not Decimal('0') < self.multiplier <= MAX_MULTIPLIER:
            raise ValidationError(
                f"Multiplier must be in (0, {MAX_MULTIPLIER}], got {self.multiplier}",
                field='multiplier',
            )

    def covers(self, night: date) -> bool:
        return self.start_date <= night <= self.end_date

    def overlaps(self, other: 'PricingRule') -> bool:
        """Inclusive-range intersection"""
        return self.start_date <= other.end_date and other.start_date <= self.end_date

    def __str__(self):
        state = 'active' if self.is_active else 'inactive'
        return f"PricingRule {self.label or self.id} {self.start_date}..{self.end_date} x{self.multiplier} ({state})"


class BlockKind(Enum):
    OWNER = 'owner'
    MAINTENANCE = 'maintenance'


@dataclass(kw_only=True, eq=False)
class AvailabilityBlock(Entity):
    """Nights a unit cannot be booked, half-open like a stay"""
    unit_id: UUID
    dates: DateRange
    kind: BlockKind = BlockKind.OWNER
    reason: str = ''
