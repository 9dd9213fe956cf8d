"""
Rate Catalog

A unit together with its pricing rules. The catalog is the write-side
guard for the rule invariant: active rules of one unit never share a night.

Overlap detection is a sorted-interval scan. Active rules are kept ordered
by start date; because they are disjoint their end dates are ordered too, so
a candidate can only collide with its left neighbour or with rules starting
on or before its own end date.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional
from uuid import UUID

from shared.domain.exceptions import NotFound, ValidationError

from apps.rentals.domain.entities import PricingRule, RentalUnit


class PricingRuleOverlap(ValidationError):
    """A rule write would make two active rules of a unit share a night"""

    code = 'pricing_rule_overlap'

    def __init__(self, candidate: PricingRule, existing: PricingRule):
        super().__init__(
            f"Rule {candidate.start_date}..{candidate.end_date} overlaps active rule "
            f"'{existing.label or existing.id}' ({existing.start_date}..{existing.end_date})",
            field='start_date',
            conflicting_rule_id=str(existing.id),
        )
        self.candidate = candidate
        self.existing = existing


def find_overlapping_rule(
    active_rules: List[PricingRule],
    candidate: PricingRule,
) -> Optional[PricingRule]:
    """
    Return an active rule intersecting `candidate`, or None

    `active_rules` must be sorted by start_date and must not contain the
    candidate itself.
    """
    starts = [rule.start_date for rule in active_rules]
    index = bisect_right(starts, candidate.start_date)

    if index > 0 and active_rules[index - 1].end_date >= candidate.start_date:
        return active_rules[index - 1]

    if index < len(active_rules) and active_rules[index].start_date <= candidate.end_date:
        return active_rules[index]

    return None


@dataclass
class RateCatalog:
    """
    Usage:
        catalog = RateCatalog(unit, rules)
        catalog.add_rule(PricingRule(unit_id=unit.id, ...))   # may raise PricingRuleOverlap
        schedule_rules = catalog.active_rules()
    """
    unit: RentalUnit
    rules: List[PricingRule] = field(default_factory=list)

    def active_rules(self) -> List[PricingRule]:
        return sorted(
            (rule for rule in self.rules if rule.is_active),
            key=lambda rule: (rule.start_date, rule.end_date),
        )

    def rules_between(self, first_night: date, last_night: date) -> List[PricingRule]:
        """Active rules touching any night in [first_night, last_night]"""
        return [
            rule for rule in self.active_rules()
            if rule.start_date <= last_night and rule.end_date >= first_night
        ]

    def get_rule(self, rule_id: UUID) -> PricingRule:
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        raise NotFound(f"Pricing rule {rule_id} not found", rule_id=str(rule_id))

    def ensure_no_overlap(self, candidate: PricingRule):
        if not candidate.is_active:
            return
        others = [rule for rule in self.active_rules() if rule.id != candidate.id]
        existing = find_overlapping_rule(others, candidate)
        if existing is not None:
            raise PricingRuleOverlap(candidate, existing)

    def add_rule(self, rule: PricingRule) -> PricingRule:
        if rule.unit_id != self.unit.id:
            raise ValidationError("Rule belongs to another unit", field='unit_id')
        rule.validate()
        self.ensure_no_overlap(rule)
        self.rules.append(rule)
        return rule

    def replace_rule(self, rule: PricingRule) -> PricingRule:
        """Swap in an edited copy of a stored rule after re-validating it"""
        current = self.get_rule(rule.id)
        rule.validate()
        self.ensure_no_overlap(rule)
        self.rules[self.rules.index(current)] = rule
        return rule
