"""
Rate catalog repositories

CatalogRepository is the only way the engine reads units, pricing rules and
availability blocks. The in-memory implementation backs the domain tests and
local previews; the Django one maps to the ORM models.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, List
from uuid import UUID

from shared.application.uow import lock_for_update
from shared.domain.exceptions import NotFound
from shared.domain.value_objects import DateRange, Money

from apps.rentals.domain.entities import (
    AvailabilityBlock,
    BlockKind,
    PricingRule,
    RentalUnit,
    UnitStatus,
)
from apps.rentals.domain.rate_catalog import RateCatalog

logger = logging.getLogger(__name__)


class CatalogRepository(ABC):
    """Read/write access to units, rules and blocks"""

    @abstractmethod
    def get_unit(self, unit_id: UUID, lock: bool = False) -> RentalUnit:
        """
        Raises NotFound

        With `lock` inside a transaction the unit row is held FOR UPDATE.
        Every write that changes what a unit's nights are committed to
        takes this lock first, so those writes are serialised per unit
        across processes and always lock rows in the same order.
        """

    @abstractmethod
    def save_unit(self, unit: RentalUnit) -> None:
        pass

    @abstractmethod
    def list_rules(self, unit_id: UUID) -> List[PricingRule]:
        """All rules of a unit, active or not"""

    @abstractmethod
    def get_rule(self, rule_id: UUID) -> PricingRule:
        """Raises NotFound"""

    @abstractmethod
    def save_rule(self, rule: PricingRule) -> None:
        pass

    @abstractmethod
    def list_blocks(self, unit_id: UUID, dates: DateRange) -> List[AvailabilityBlock]:
        """Blocks overlapping `dates`"""

    @abstractmethod
    def save_block(self, block: AvailabilityBlock) -> None:
        pass

    def get_catalog(self, unit_id: UUID, lock: bool = False) -> RateCatalog:
        unit = self.get_unit(unit_id, lock=lock)
        return RateCatalog(unit=unit, rules=self.list_rules(unit_id))


class InMemoryCatalogRepository(CatalogRepository):

    def __init__(self):
        self.units: Dict[UUID, RentalUnit] = {}
        self.rules: Dict[UUID, PricingRule] = {}
        self.blocks: Dict[UUID, AvailabilityBlock] = {}

    def get_unit(self, unit_id: UUID, lock: bool = False) -> RentalUnit:
        try:
            return self.units[unit_id]
        except KeyError:
            raise NotFound(f"Rental unit {unit_id} not found", unit_id=str(unit_id)) from None

    def save_unit(self, unit: RentalUnit) -> None:
        self.units[unit.id] = unit

    def list_rules(self, unit_id: UUID) -> List[PricingRule]:
        return [rule for rule in self.rules.values() if rule.unit_id == unit_id]

    def get_rule(self, rule_id: UUID) -> PricingRule:
        try:
            return self.rules[rule_id]
        except KeyError:
            raise NotFound(f"Pricing rule {rule_id} not found", rule_id=str(rule_id)) from None

    def save_rule(self, rule: PricingRule) -> None:
        self.rules[rule.id] = rule

    def list_blocks(self, unit_id: UUID, dates: DateRange) -> List[AvailabilityBlock]:
        return [
            block for block in self.blocks.values()
            if block.unit_id == unit_id and block.dates.overlaps_with(dates)
        ]

    def save_block(self, block: AvailabilityBlock) -> None:
        self.blocks[block.id] = block


class DjangoCatalogRepository(CatalogRepository):
    """Maps catalog entities to apps.rentals.models"""

    def get_unit(self, unit_id: UUID, lock: bool = False) -> RentalUnit:
        from apps.rentals.models import RentalUnit as UnitModel

        queryset = UnitModel.objects.filter(pk=unit_id)
        if lock:
            queryset = lock_for_update(queryset)
        row = queryset.first()
        if row is None:
            raise NotFound(f"Rental unit {unit_id} not found", unit_id=str(unit_id))
        return self._unit_to_domain(row)

    def save_unit(self, unit: RentalUnit) -> None:
        from apps.rentals.models import RentalUnit as UnitModel

        UnitModel.objects.update_or_create(
            pk=unit.id,
            defaults={
                "owner_id": unit.owner_id,
                "name": unit.name,
                "currency": unit.currency,
                "base_rate_minor": unit.base_rate.minor,
                "cleaning_fee_minor": unit.cleaning_fee.minor,
                "tourist_tax_minor": unit.tourist_tax.minor,
                "tax_rate": unit.tax_rate,
                "max_guests": unit.max_guests,
                "min_nights": unit.min_nights,
                "max_nights": unit.max_nights,
                "status": unit.status.value,
                "created_at": unit.created_at,
                "updated_at": unit.updated_at,
            },
        )

    def list_rules(self, unit_id: UUID) -> List[PricingRule]:
        from apps.rentals.models import PricingRule as RuleModel

        return [self._rule_to_domain(row) for row in RuleModel.objects.filter(unit_id=unit_id)]

    def get_rule(self, rule_id: UUID) -> PricingRule:
        from apps.rentals.models import PricingRule as RuleModel

        try:
            row = RuleModel.objects.get(pk=rule_id)
        except RuleModel.DoesNotExist:
            raise NotFound(f"Pricing rule {rule_id} not found", rule_id=str(rule_id)) from None
        return self._rule_to_domain(row)

    def save_rule(self, rule: PricingRule) -> None:
        from apps.rentals.models import PricingRule as RuleModel

        RuleModel.objects.update_or_create(
            pk=rule.id,
            defaults={
                "unit_id": rule.unit_id,
                "start_date": rule.start_date,
                "end_date": rule.end_date,
                "multiplier": rule.multiplier,
                "label": rule.label,
                "is_active": rule.is_active,
                "created_at": rule.created_at,
                "updated_at": rule.updated_at,
            },
        )

    def list_blocks(self, unit_id: UUID, dates: DateRange) -> List[AvailabilityBlock]:
        from apps.rentals.models import AvailabilityBlock as BlockModel

        rows = BlockModel.objects.filter(
            unit_id=unit_id,
            start_date__lt=dates.end_date,
            end_date__gt=dates.start_date,
        )
        return [
            AvailabilityBlock(
                id=row.id,
                unit_id=row.unit_id,
                dates=DateRange(row.start_date, row.end_date),
                kind=BlockKind(row.kind),
                reason=row.reason,
                created_at=row.created_at,
                updated_at=row.updated_at,
            )
            for row in rows
        ]

    def save_block(self, block: AvailabilityBlock) -> None:
        from apps.rentals.models import AvailabilityBlock as BlockModel

        BlockModel.objects.update_or_create(
            pk=block.id,
            defaults={
                "unit_id": block.unit_id,
                "start_date": block.dates.start_date,
                "end_date": block.dates.end_date,
                "kind": block.kind.value,
                "reason": block.reason,
                "created_at": block.created_at,
                "updated_at": block.updated_at,
            },
        )

    @staticmethod
    def _unit_to_domain(row) -> RentalUnit:
        return RentalUnit(
            id=row.id,
            owner_id=row.owner_id,
            name=row.name,
            base_rate=Money(row.base_rate_minor, row.currency),
            cleaning_fee=Money(row.cleaning_fee_minor, row.currency),
            tourist_tax=Money(row.tourist_tax_minor, row.currency),
            tax_rate=row.tax_rate,
            max_guests=row.max_guests,
            min_nights=row.min_nights,
            max_nights=row.max_nights,
            status=UnitStatus(row.status),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @staticmethod
    def _rule_to_domain(row) -> PricingRule:
        return PricingRule(
            id=row.id,
            unit_id=row.unit_id,
            start_date=row.start_date,
            end_date=row.end_date,
            multiplier=row.multiplier,
            label=row.label,
            is_active=row.is_active,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
