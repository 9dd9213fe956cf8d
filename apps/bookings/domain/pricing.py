"""
Pricing

- PricingRuleResolver: picks the rule (if any) that prices each night
- PricingCalculator: turns a rate schedule and guest count into a breakdown
- PricingBreakdown: the immutable, persisted price snapshot of a stay

Every amount is an int of minor currency units. Products with a Decimal
rate are rounded half-up to one minor unit right where they are computed,
so the breakdown always sums exactly and two runs over the same inputs
produce the same bytes.
"""

from __future__ import annotations

import json
from bisect import bisect_right
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Tuple
from uuid import UUID

from shared.domain.base import ValueObject
from shared.domain.exceptions import ValidationError
from shared.domain.value_objects import CURRENCY_EXPONENTS, DateRange, Money, round_half_up

from apps.bookings.domain.errors import RuleConflict
from apps.rentals.domain.entities import RentalUnit
from apps.rentals.domain.rate_catalog import RateCatalog

ONE = Decimal('1')


def _decimal_text(value: Decimal) -> str:
    """Canonical text for a Decimal: no exponent, no trailing zeros"""
    return format(value.normalize(), 'f')


@dataclass(frozen=True)
class NightlyRate(ValueObject):
    """Price of a single night and the rule that produced it"""
    night: date
    amount: int
    multiplier: Decimal = ONE
    rule_id: UUID | None = None
    label: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.night.isoformat(),
            'rate': self.amount,
            'multiplier': _decimal_text(self.multiplier),
            'rule_id': str(self.rule_id) if self.rule_id else None,
            'label': self.label,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'NightlyRate':
        return cls(
            night=date.fromisoformat(data['date']),
            amount=int(data['rate']),
            multiplier=Decimal(data['multiplier']),
            rule_id=UUID(data['rule_id']) if data.get('rule_id') else None,
            label=data.get('label', ''),
        )


@dataclass(frozen=True)
class RateSchedule(ValueObject):
    """Effective nightly rates for every night of a stay, in date order"""
    unit_id: UUID
    currency: str
    rates: Tuple[NightlyRate, ...]

    def __len__(self) -> int:
        return len(self.rates)

    @property
    def total(self) -> int:
        return sum(rate.amount for rate in self.rates)

    def rate_for(self, night: date) -> NightlyRate:
        for rate in self.rates:
            if rate.night == night:
                return rate
        raise KeyError(night)


class PricingRuleResolver:
    """
    Resolves the nightly rate schedule of a stay

    A night covered by exactly one active rule costs base rate x multiplier;
    an uncovered night costs the base rate. Two active rules covering one
    night means the write-time invariant was broken upstream, so the
    resolver refuses to guess and raises RuleConflict.
    """

    def resolve(self, catalog: RateCatalog, dates: DateRange) -> RateSchedule:
        unit = catalog.unit
        nights = list(dates.nights())
        rules = catalog.rules_between(nights[0], nights[-1])
        starts = [rule.start_date for rule in rules]

        rates = []
        for night in nights:
            # rules are sorted by start, so only those up to bisect can cover the night
            candidates = rules[:bisect_right(starts, night)]
            matching = [rule for rule in candidates if rule.covers(night)]
            if len(matching) > 1:
                raise RuleConflict(unit.id, night, matching)
            if matching:
                rule = matching[0]
                rates.append(NightlyRate(
                    night=night,
                    amount=unit.base_rate.multiply(rule.multiplier).minor,
                    multiplier=rule.multiplier.normalize(),
                    rule_id=rule.id,
                    label=rule.label,
                ))
            else:
                rates.append(NightlyRate(night=night, amount=unit.base_rate.minor))

        return RateSchedule(unit_id=unit.id, currency=unit.currency, rates=tuple(rates))


@dataclass(frozen=True)
class PricingBreakdown(ValueObject):
    """
    Itemised price of a stay

    `taxes` is the VAT-style part plus the flat tourist tax. The breakdown
    is computed once at booking time and stored; it is never recomputed
    for an existing reservation.
    """
    currency: str
    nightly_rate: int
    nights: int
    subtotal: int
    cleaning_fee: int
    service_fee: int
    vat: int
    tourist_tax: int
    taxes: int
    total: int
    schedule: Tuple[NightlyRate, ...] = field(default=())

    def __post_init__(self):
        if self.taxes != self.vat + self.tourist_tax:
            raise ValueError("taxes must equal vat + tourist_tax")
        if self.subtotal + self.cleaning_fee + self.service_fee + self.taxes != self.total:
            raise ValueError("subtotal + cleaning_fee + service_fee + taxes must equal total")

    def money(self, name: str) -> Money:
        """e.g. breakdown.money('total')"""
        return Money(getattr(self, name), self.currency)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'currency': self.currency,
            'nightly_rate': self.nightly_rate,
            'nights': self.nights,
            'subtotal': self.subtotal,
            'cleaning_fee': self.cleaning_fee,
            'service_fee': self.service_fee,
            'vat': self.vat,
            'tourist_tax': self.tourist_tax,
            'taxes': self.taxes,
            'total': self.total,
            'schedule': [rate.to_dict() for rate in self.schedule],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PricingBreakdown':
        return cls(
            currency=data['currency'],
            nightly_rate=int(data['nightly_rate']),
            nights=int(data['nights']),
            subtotal=int(data['subtotal']),
            cleaning_fee=int(data['cleaning_fee']),
            service_fee=int(data['service_fee']),
            vat=int(data['vat']),
            tourist_tax=int(data['tourist_tax']),
            taxes=int(data['taxes']),
            total=int(data['total']),
            schedule=tuple(NightlyRate.from_dict(item) for item in data.get('schedule', [])),
        )

    def to_json(self) -> str:
        """Canonical serialisation, byte-identical for identical breakdowns"""
        return json.dumps(self.to_dict(), sort_keys=True, separators=(',', ':'))

    def to_major(self) -> Dict[str, str]:
        """Major-unit strings for display, e.g. {'total': '35169.50', ...}"""
        amounts = ('nightly_rate', 'subtotal', 'cleaning_fee', 'service_fee',
                   'vat', 'tourist_tax', 'taxes', 'total')
        return {name: str(self.money(name).to_major()) for name in amounts}


class PricingCalculator:
    """
    Usage:
        calculator = PricingCalculator(service_fee_rate=Decimal('0.10'))
        breakdown = calculator.calculate_pricing(unit, schedule, nights=3, guests=2)

    - subtotal: sum of the nightly rates
    - cleaning fee: unit base fee x max(1, ceil(guests / 2))
    - service fee: service_fee_rate x subtotal
    - taxes: unit.tax_rate x (subtotal + cleaning + service) + unit.tourist_tax
    """

    def __init__(self, service_fee_rate: Decimal = Decimal('0.10')):
        service_fee_rate = Decimal(str(service_fee_rate))
        if not Decimal('0') <= service_fee_rate < ONE:
            raise ValueError(f"Service fee rate must be in [0, 1), got {service_fee_rate}")
        self.service_fee_rate = service_fee_rate

    @staticmethod
    def cleaning_multiplier(guests: int) -> int:
        return max(1, (guests + 1) // 2)

    def calculate_pricing(
        self,
        unit: RentalUnit,
        rate_schedule: RateSchedule,
        nights: int,
        guests: int,
    ) -> PricingBreakdown:
        if nights < 1:
            raise ValidationError("A stay must be at least one night", field='check_out')
        if nights != len(rate_schedule):
            raise ValidationError(
                f"Rate schedule covers {len(rate_schedule)} nights, expected {nights}",
                field='nights',
            )
        if guests < 1:
            raise ValidationError("At least one guest is required", field='guests')
        if rate_schedule.currency != unit.currency:
            raise ValidationError("Rate schedule currency differs from the unit's", field='currency')
        if unit.currency not in CURRENCY_EXPONENTS:
            raise ValidationError(f"Unsupported currency {unit.currency}", field='currency')

        subtotal = rate_schedule.total
        cleaning_fee = unit.cleaning_fee.minor * self.cleaning_multiplier(guests)
        service_fee = round_half_up(Decimal(subtotal) * self.service_fee_rate)
        vat = round_half_up(Decimal(subtotal + cleaning_fee + service_fee) * unit.tax_rate)
        tourist_tax = unit.tourist_tax.minor
        taxes = vat + tourist_tax

        return PricingBreakdown(
            currency=unit.currency,
            nightly_rate=round_half_up(Decimal(subtotal) / Decimal(nights)),
            nights=nights,
            subtotal=subtotal,
            cleaning_fee=cleaning_fee,
            service_fee=service_fee,
            vat=vat,
            tourist_tax=tourist_tax,
            taxes=taxes,
            total=subtotal + cleaning_fee + service_fee + taxes,
            schedule=rate_schedule.rates,
        )


@dataclass(frozen=True)
class PriceQuote(ValueObject):
    """A previewed breakdown and the moment it stops being honoured"""
    unit_id: UUID
    dates: DateRange
    guests: int
    breakdown: PricingBreakdown
    valid_until: datetime

    def is_valid_at(self, moment: datetime) -> bool:
        return moment <= self.valid_until
