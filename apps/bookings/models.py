"""Reservation storage model."""

from __future__ import annotations

import uuid

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Reservation(models.Model):
    """Persisted reservation with its frozen pricing snapshot."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        CONFIRMED = "confirmed", _("Confirmed")
        CANCELLED = "cancelled", _("Cancelled")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Awaiting payment")
        PAID = "paid", _("Paid")
        REFUNDED = "refunded", _("Refunded")

    class CancellationReason(models.TextChoices):
        GUEST = "guest", _("Guest")
        OWNER = "owner", _("Owner")
        ADMIN = "admin", _("Administrator")
        EXPIRED = "expired", _("Hold expired")
        LOST_RACE = "lost_race", _("Lost confirmation race")
        UNAVAILABLE = "unavailable", _("Dates no longer available")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    unit = models.ForeignKey(
        "rentals.RentalUnit",
        on_delete=models.PROTECT,
        related_name="reservations",
    )
    requester_id = models.UUIDField(db_index=True)
    booking_reference = models.CharField(max_length=32, unique=True, editable=False)
    check_in = models.DateField()
    check_out = models.DateField()
    guest_count = models.PositiveSmallIntegerField(default=1)
    guest_name = models.CharField(max_length=255)
    guest_email = models.EmailField()
    guest_phone = models.CharField(max_length=50)
    guest_nationality = models.CharField(max_length=64, blank=True)
    special_requests = models.TextField(blank=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    payment_status = models.CharField(
        max_length=16,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    payment_reference = models.CharField(max_length=128, blank=True)
    pricing = models.JSONField(help_text=_("Pricing breakdown snapshot in minor units."))
    total_minor = models.PositiveBigIntegerField()
    currency = models.CharField(max_length=3)
    hold_expires_at = models.DateTimeField(null=True, blank=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(
        max_length=16,
        choices=CancellationReason.choices,
        blank=True,
    )
    cancellation_note = models.CharField(max_length=255, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _("Reservation")
        verbose_name_plural = _("Reservations")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(check_out__gt=models.F("check_in")),
                name="reservation_valid_dates",
            ),
            models.CheckConstraint(
                condition=models.Q(guest_count__gte=1),
                name="reservation_min_one_guest",
            ),
        ]
        indexes = [
            models.Index(fields=["unit", "check_in", "check_out"], name="bookings_re_unit_id_2d4a61_idx"),
            models.Index(fields=["status", "hold_expires_at"], name="bookings_re_status_7b9e03_idx"),
        ]

    def __str__(self) -> str:
        return f"Reservation #{self.booking_reference} for {self.unit_id}"
