"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Reservation


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    """Read-mostly view; status changes go through the booking engine."""

    list_display = (
        "booking_reference",
        "unit",
        "status",
        "payment_status",
        "check_in",
        "check_out",
        "guest_count",
        "total_minor",
        "currency",
        "created_at",
    )
    list_filter = ("status", "payment_status", "cancellation_reason", "check_in")
    search_fields = ("booking_reference", "guest_name", "guest_email", "payment_reference")
    readonly_fields = (
        "booking_reference",
        "unit",
        "requester_id",
        "check_in",
        "check_out",
        "pricing",
        "total_minor",
        "currency",
        "status",
        "payment_status",
        "hold_expires_at",
        "confirmed_at",
        "cancelled_at",
        "cancellation_reason",
        "refunded_at",
        "created_at",
        "updated_at",
    )
    date_hierarchy = "check_in"
