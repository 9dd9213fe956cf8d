"""Serializers for the rate catalog."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers  # type: ignore

from apps.rentals.domain.entities import BlockKind


class PricingRuleSerializer(serializers.Serializer):
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    multiplier = serializers.DecimalField(
        max_digits=6,
        decimal_places=4,
        min_value=Decimal("0.0001"),
        max_value=Decimal("10"),
    )
    label = serializers.CharField(max_length=120, required=False, allow_blank=True, default="")

    def validate(self, attrs):  # type: ignore
        start = attrs.get("start_date")
        end = attrs.get("end_date")
        if start and end and start >= end:
            raise serializers.ValidationError({"end_date": "Дата окончания должна быть позже даты начала."})
        return attrs


class AvailabilityBlockSerializer(serializers.Serializer):
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    kind = serializers.ChoiceField(choices=[kind.value for kind in BlockKind], default=BlockKind.OWNER.value)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


def rule_data(rule) -> dict:
    return {
        "id": str(rule.id),
        "unit_id": str(rule.unit_id),
        "start_date": rule.start_date.isoformat(),
        "end_date": rule.end_date.isoformat(),
        "multiplier": str(rule.multiplier),
        "label": rule.label,
        "is_active": rule.is_active,
    }


def block_data(block) -> dict:
    return {
        "id": str(block.id),
        "unit_id": str(block.unit_id),
        "start_date": block.dates.start_date.isoformat(),
        "end_date": block.dates.end_date.isoformat(),
        "kind": block.kind.value,
        "reason": block.reason,
    }
