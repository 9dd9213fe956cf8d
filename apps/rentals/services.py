"""Pricing rule and availability block management for unit owners."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

from shared.application.locks import RangeLockRegistry, range_locks
from shared.application.uow import AbstractUnitOfWork, DjangoUnitOfWork
from shared.domain.clock import Clock, get_default_clock
from shared.domain.exceptions import ValidationError
from shared.domain.value_objects import DateRange

from apps.rentals.domain.entities import AvailabilityBlock, BlockKind, PricingRule
from apps.rentals.repositories import CatalogRepository

logger = logging.getLogger(__name__)

EDITABLE_RULE_FIELDS = {"start_date", "end_date", "multiplier", "label"}


def _rule_span(start: date, end: date) -> DateRange:
    """Half-open span covering an inclusive rule range"""
    return DateRange(start, end + timedelta(days=1))


class PricingRuleService:
    """
    Owner-facing writes to a unit's rule set

    Every write re-validates the rule and rejects it with PricingRuleOverlap
    when it would share a night with another active rule of the unit.
    Writes touching the same nights of a unit are serialised through the
    range lock registry within a process and through the unit row lock
    across processes, so two concurrent writes cannot both pass the scan.
    """

    def __init__(
        self,
        catalog_repo: CatalogRepository,
        *,
        clock: Optional[Clock] = None,
        uow_factory: Callable[[], AbstractUnitOfWork] = DjangoUnitOfWork,
        locks: RangeLockRegistry = range_locks,
        lock_timeout: float = 5.0,
    ):
        self.catalog_repo = catalog_repo
        self.clock = clock or get_default_clock()
        self.uow_factory = uow_factory
        self.locks = locks
        self.lock_timeout = lock_timeout

    def _locked(self, unit_id: UUID, span: DateRange):
        return self.locks.hold(("pricing_rules", unit_id), span, timeout=self.lock_timeout)

    def add_rule(
        self,
        unit_id: UUID,
        start_date: date,
        end_date: date,
        multiplier: Decimal,
        label: str = "",
    ) -> PricingRule:
        now = self.clock.now()
        rule = PricingRule(
            unit_id=unit_id,
            start_date=start_date,
            end_date=end_date,
            multiplier=multiplier,
            label=label,
            created_at=now,
            updated_at=now,
        )
        with self._locked(unit_id, _rule_span(start_date, end_date)):
            with self.uow_factory():
                catalog = self.catalog_repo.get_catalog(unit_id, lock=True)
                catalog.add_rule(rule)
                self.catalog_repo.save_rule(rule)

        logger.info(
            f"Pricing rule {rule.id} added to unit {unit_id}: "
            f"{start_date}..{end_date} x{rule.multiplier}"
        )
        return rule

    def update_rule(self, rule_id: UUID, **changes) -> PricingRule:
        unknown = set(changes) - EDITABLE_RULE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

        current = self.catalog_repo.get_rule(rule_id)
        edited = PricingRule(
            id=current.id,
            unit_id=current.unit_id,
            start_date=changes.get("start_date", current.start_date),
            end_date=changes.get("end_date", current.end_date),
            multiplier=changes.get("multiplier", current.multiplier),
            label=changes.get("label", current.label),
            is_active=current.is_active,
            created_at=current.created_at,
            updated_at=self.clock.now(),
        )
        span = _rule_span(
            min(current.start_date, edited.start_date),
            max(current.end_date, edited.end_date),
        )
        with self._locked(current.unit_id, span):
            with self.uow_factory():
                catalog = self.catalog_repo.get_catalog(current.unit_id, lock=True)
                catalog.replace_rule(edited)
                self.catalog_repo.save_rule(edited)

        logger.info(f"Pricing rule {rule_id} updated: {sorted(changes)}")
        return edited

    def set_active(self, rule_id: UUID, active: bool) -> PricingRule:
        rule = self.catalog_repo.get_rule(rule_id)
        if rule.is_active == active:
            return rule

        with self._locked(rule.unit_id, _rule_span(rule.start_date, rule.end_date)):
            with self.uow_factory():
                catalog = self.catalog_repo.get_catalog(rule.unit_id, lock=True)
                stored = replace(
                    catalog.get_rule(rule_id),
                    is_active=active,
                    updated_at=self.clock.now(),
                )
                catalog.replace_rule(stored)
                self.catalog_repo.save_rule(stored)

        logger.info(f"Pricing rule {rule_id} {'activated' if active else 'deactivated'}")
        return stored

    def deactivate_rule(self, rule_id: UUID) -> PricingRule:
        return self.set_active(rule_id, False)

    def activate_rule(self, rule_id: UUID) -> PricingRule:
        return self.set_active(rule_id, True)

    def block_dates(
        self,
        unit_id: UUID,
        start_date: date,
        end_date: date,
        kind: BlockKind = BlockKind.OWNER,
        reason: str = "",
    ) -> AvailabilityBlock:
        try:
            dates = DateRange(start_date, end_date)
        except ValueError as exc:
            raise ValidationError(str(exc), field="end_date") from exc

        now = self.clock.now()
        block = AvailabilityBlock(
            unit_id=unit_id,
            dates=dates,
            kind=kind,
            reason=reason,
            created_at=now,
            updated_at=now,
        )
        with self.uow_factory():
            self.catalog_repo.get_unit(unit_id, lock=True)
            self.catalog_repo.save_block(block)

        logger.info(f"Unit {unit_id} blocked for {dates} ({kind.value})")
        return block

