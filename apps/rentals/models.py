"""Rate catalog models."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class RentalUnit(models.Model):
    """Bookable unit with its base rate and fee structure."""

    class Status(models.TextChoices):
        AVAILABLE = "available", _("Available")
        OCCUPIED = "occupied", _("Occupied")
        MAINTENANCE = "maintenance", _("Maintenance")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner_id = models.UUIDField(null=True, blank=True, db_index=True)
    name = models.CharField(max_length=255, blank=True)
    currency = models.CharField(max_length=3, default="DZD")
    base_rate_minor = models.PositiveBigIntegerField(
        help_text=_("Base nightly rate in minor currency units."),
    )
    cleaning_fee_minor = models.PositiveBigIntegerField(default=0)
    tourist_tax_minor = models.PositiveBigIntegerField(
        default=0,
        help_text=_("Flat per-stay tourist tax in minor currency units."),
    )
    tax_rate = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        default=Decimal("0.0000"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("0.9999"))],
    )
    max_guests = models.PositiveSmallIntegerField(default=1)
    min_nights = models.PositiveSmallIntegerField(default=1)
    max_nights = models.PositiveSmallIntegerField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.AVAILABLE)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _("Rental unit")
        verbose_name_plural = _("Rental units")
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(base_rate_minor__gt=0),
                name="rental_unit_positive_rate",
            ),
            models.CheckConstraint(
                condition=models.Q(max_guests__gte=1),
                name="rental_unit_min_one_guest",
            ),
        ]

    def __str__(self) -> str:
        return self.name or str(self.id)


class PricingRule(models.Model):
    """Date-bounded multiplier on a unit's base rate (inclusive range)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    unit = models.ForeignKey(RentalUnit, on_delete=models.PROTECT, related_name="pricing_rules")
    start_date = models.DateField()
    end_date = models.DateField()
    multiplier = models.DecimalField(
        max_digits=6,
        decimal_places=4,
        validators=[MinValueValidator(Decimal("0.0001")), MaxValueValidator(Decimal("10"))],
    )
    label = models.CharField(max_length=120, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _("Pricing rule")
        verbose_name_plural = _("Pricing rules")
        ordering = ["unit", "start_date"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gt=models.F("start_date")),
                name="pricing_rule_valid_dates",
            ),
            models.CheckConstraint(
                condition=models.Q(multiplier__gt=0) & models.Q(multiplier__lte=10),
                name="pricing_rule_multiplier_bounds",
            ),
        ]
        indexes = [
            models.Index(fields=["unit", "is_active", "start_date"], name="rentals_pri_unit_id_5c1e2a_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.label or self.id}: {self.start_date}..{self.end_date} x{self.multiplier}"


class AvailabilityBlock(models.Model):
    """Owner or maintenance block over [start_date, end_date)."""

    class Kind(models.TextChoices):
        OWNER = "owner", _("Blocked by owner")
        MAINTENANCE = "maintenance", _("Maintenance")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    unit = models.ForeignKey(RentalUnit, on_delete=models.CASCADE, related_name="blocks")
    start_date = models.DateField()
    end_date = models.DateField()
    kind = models.CharField(max_length=20, choices=Kind.choices, default=Kind.OWNER)
    reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _("Availability block")
        verbose_name_plural = _("Availability blocks")
        ordering = ["unit", "start_date"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gt=models.F("start_date")),
                name="availability_block_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["unit", "start_date", "end_date"], name="rentals_ava_unit_id_8f3b7d_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.get_kind_display()} {self.start_date}..{self.end_date}"
