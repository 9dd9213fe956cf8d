"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.bookings.domain.entities import CancellationReason

# Owner/admin/guest cancellations come through the API; expiry and lost races never do
API_CANCELLATION_REASONS = [
    CancellationReason.GUEST.value,
    CancellationReason.OWNER.value,
    CancellationReason.ADMIN.value,
]


class StayQuerySerializer(serializers.Serializer):
    unit_id = serializers.UUIDField()
    check_in = serializers.DateField()
    check_out = serializers.DateField()


class QuoteRequestSerializer(StayQuerySerializer):
    guests = serializers.IntegerField(min_value=1, default=1)


class GuestInfoSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=50)
    nationality = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")


class BookingCreateSerializer(QuoteRequestSerializer):
    """Создание брони гостем."""

    requester_id = serializers.UUIDField()
    guest_info = GuestInfoSerializer()
    special_requests = serializers.CharField(required=False, allow_blank=True, default="")


class ConfirmSerializer(serializers.Serializer):
    payment_reference = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")


class CancelSerializer(serializers.Serializer):
    reason = serializers.ChoiceField(choices=API_CANCELLATION_REASONS, default=CancellationReason.GUEST.value)
    note = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


def breakdown_data(breakdown) -> dict:
    """Minor-unit amounts plus their major-unit display strings."""

    return {
        **breakdown.to_dict(),
        "display": breakdown.to_major(),
    }


def reservation_data(reservation) -> dict:
    return {
        "id": str(reservation.id),
        "booking_reference": reservation.booking_reference,
        "unit_id": str(reservation.unit_id),
        "requester_id": str(reservation.requester_id),
        "check_in": reservation.dates.start_date.isoformat(),
        "check_out": reservation.dates.end_date.isoformat(),
        "nights": reservation.nights,
        "guests": reservation.guests,
        "guest_info": reservation.guest_info.to_dict(),
        "special_requests": reservation.special_requests,
        "status": reservation.status.value,
        "payment_status": reservation.payment_status.value,
        "payment_reference": reservation.payment_reference,
        "pricing": breakdown_data(reservation.pricing),
        "hold_expires_at": _isoformat(reservation.hold_expires_at),
        "confirmed_at": _isoformat(reservation.confirmed_at),
        "cancelled_at": _isoformat(reservation.cancelled_at),
        "cancellation_reason": (
            reservation.cancellation_reason.value if reservation.cancellation_reason else None
        ),
        "refunded_at": _isoformat(reservation.refunded_at),
        "created_at": _isoformat(reservation.created_at),
    }


def availability_data(result) -> dict:
    return {
        "available": result.available,
        "conflicts": [
            {
                "reservation_id": str(r.id),
                "check_in": r.dates.start_date.isoformat(),
                "check_out": r.dates.end_date.isoformat(),
                "status": r.status.value,
            }
            for r in result.conflicts
        ],
        "blocks": [
            {
                "start_date": b.dates.start_date.isoformat(),
                "end_date": b.dates.end_date.isoformat(),
                "kind": b.kind.value,
            }
            for b in result.blocks
        ],
        "restrictions": list(result.restrictions),
    }


def quote_data(quote) -> dict:
    return {
        "unit_id": str(quote.unit_id),
        "check_in": quote.dates.start_date.isoformat(),
        "check_out": quote.dates.end_date.isoformat(),
        "guests": quote.guests,
        "pricing": breakdown_data(quote.breakdown),
        "valid_until": quote.valid_until.isoformat(),
    }


def _isoformat(value):
    return value.isoformat() if value else None
