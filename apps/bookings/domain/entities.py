"""
Booking Domain Entities

Core business entities for the booking domain:
- Reservation: Main aggregate representing a guest's claim on a unit
- ReservationStatus: FSM states for the reservation lifecycle
- PaymentStatus: Orthogonal payment state tracking
- GuestInfo: Contact details of the lead guest
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID

from shared.domain.base import Aggregate, ValueObject
from shared.domain.value_objects import DateRange

from apps.bookings.domain.errors import InvalidTransition
from apps.bookings.domain.events import (
    PaymentReceived,
    RefundRecorded,
    ReservationCancelled,
    ReservationConfirmed,
    ReservationCreated,
)
from apps.bookings.domain.pricing import PricingBreakdown


class ReservationStatus(Enum):
    """
    Reservation Status Finite State Machine

    State transitions:
    - PENDING -> CONFIRMED (payment received and confirm re-check passed)
    - PENDING -> CANCELLED (guest/owner cancel, hold expiry, lost race)
    - CONFIRMED -> CANCELLED (guest/owner cancel)
    """
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'


class PaymentStatus(Enum):
    """Payment status: PENDING -> PAID -> REFUNDED"""
    PENDING = 'pending'
    PAID = 'paid'
    REFUNDED = 'refunded'


class CancellationReason(Enum):
    GUEST = 'guest'
    OWNER = 'owner'
    ADMIN = 'admin'
    EXPIRED = 'expired'        # hold window elapsed without payment
    LOST_RACE = 'lost_race'    # a competing stay was confirmed first
    UNAVAILABLE = 'unavailable'  # blocked or restricted by the time payment arrived


# Only these statuses hold nights on the calendar
BLOCKING_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})


@dataclass(frozen=True)
class GuestInfo(ValueObject):
    """Lead guest contact details as submitted with the booking"""
    name: str
    email: str
    phone: str
    nationality: str = ''

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'nationality': self.nationality,
        }


@dataclass(kw_only=True, eq=False)
class Reservation(Aggregate):
    """
    Reservation Aggregate Root

    Key invariants:
    - dates is a valid half-open range of at least one night
    - pricing is fixed at creation and never recomputed
    - status only moves forward; CANCELLED is terminal
    - CONFIRMED requires payment PAID
    - once CANCELLED only payment/audit metadata may change
    """

    booking_reference: str
    unit_id: UUID
    requester_id: UUID
    dates: DateRange
    guests: int
    guest_info: GuestInfo
    pricing: PricingBreakdown
    special_requests: str = ''

    status: ReservationStatus = ReservationStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_reference: str = ''
    hold_expires_at: datetime | None = None

    confirmed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: CancellationReason | None = None
    cancellation_note: str = ''
    refunded_at: datetime | None = None

    @classmethod
    def create(
        cls,
        *,
        booking_reference: str,
        unit_id: UUID,
        requester_id: UUID,
        dates: DateRange,
        guests: int,
        guest_info: GuestInfo,
        pricing: PricingBreakdown,
        special_requests: str,
        hold_expires_at: datetime,
        now: datetime,
    ) -> 'Reservation':
        reservation = cls(
            booking_reference=booking_reference,
            unit_id=unit_id,
            requester_id=requester_id,
            dates=dates,
            guests=guests,
            guest_info=guest_info,
            pricing=pricing,
            special_requests=special_requests,
            hold_expires_at=hold_expires_at,
            created_at=now,
            updated_at=now,
        )
        reservation.add_event(ReservationCreated(
            aggregate_id=reservation.id,
            occurred_at=now,
            reservation_id=reservation.id,
            unit_id=unit_id,
            requester_id=requester_id,
            dates=dates,
            total=pricing.money('total'),
        ))
        return reservation

    def record_payment(self, payment_reference: str, now: datetime):
        """
        Record a captured payment (payment PENDING -> PAID)

        Allowed on a cancelled reservation too: the money has been taken
        and the refund workflow needs to see it.
        """
        if self.payment_status == PaymentStatus.PAID:
            return
        if self.payment_status == PaymentStatus.REFUNDED:
            raise InvalidTransition(
                f"Reservation {self.booking_reference} was already refunded",
                field='payment_status',
            )

        self.payment_status = PaymentStatus.PAID
        self.payment_reference = payment_reference
        self.touch(now)

        self.add_event(PaymentReceived(
            aggregate_id=self.id,
            occurred_at=now,
            reservation_id=self.id,
            payment_reference=payment_reference,
        ))

    def confirm(self, now: datetime):
        """
        Confirm (PENDING -> CONFIRMED)

        The caller runs the authoritative availability re-check first.
        Events: ReservationConfirmed
        """
        if self.status == ReservationStatus.CONFIRMED:
            return
        if self.status != ReservationStatus.PENDING:
            raise InvalidTransition(
                f"Cannot confirm reservation {self.booking_reference} "
                f"from status {self.status.value}",
                field='status',
            )
        if self.payment_status != PaymentStatus.PAID:
            raise InvalidTransition(
                f"Reservation {self.booking_reference} cannot be confirmed before payment",
                field='payment_status',
            )

        self.status = ReservationStatus.CONFIRMED
        self.confirmed_at = now
        self.hold_expires_at = None
        self.touch(now)

        self.add_event(ReservationConfirmed(
            aggregate_id=self.id,
            occurred_at=now,
            reservation_id=self.id,
            unit_id=self.unit_id,
            dates=self.dates,
        ))

    def cancel(self, reason: CancellationReason, now: datetime, note: str = '') -> bool:
        """
        Cancel from PENDING or CONFIRMED

        Cancelling twice is a no-op and returns False. The pricing snapshot
        is left untouched as the historical record.
        Events: ReservationCancelled
        """
        if self.status == ReservationStatus.CANCELLED:
            return False

        old_status = self.status
        self.status = ReservationStatus.CANCELLED
        self.cancellation_reason = reason
        self.cancellation_note = note
        self.cancelled_at = now
        self.hold_expires_at = None
        self.touch(now)

        self.add_event(ReservationCancelled(
            aggregate_id=self.id,
            occurred_at=now,
            reservation_id=self.id,
            unit_id=self.unit_id,
            dates=self.dates,
            reason=reason.value,
            old_status=old_status.value,
            refund_required=self.payment_status == PaymentStatus.PAID,
        ))
        return True

    def record_refund(self, now: datetime):
        """Payment PAID -> REFUNDED, only once the stay is cancelled"""
        if self.payment_status == PaymentStatus.REFUNDED:
            return
        if self.status != ReservationStatus.CANCELLED:
            raise InvalidTransition(
                f"Reservation {self.booking_reference} must be cancelled before a refund",
                field='status',
            )
        if self.payment_status != PaymentStatus.PAID:
            raise InvalidTransition(
                f"Reservation {self.booking_reference} has no payment to refund",
                field='payment_status',
            )

        self.payment_status = PaymentStatus.REFUNDED
        self.refunded_at = now
        self.touch(now)

        self.add_event(RefundRecorded(
            aggregate_id=self.id,
            occurred_at=now,
            reservation_id=self.id,
            amount=self.pricing.money('total'),
        ))

    def is_hold_expired(self, now: datetime) -> bool:
        """Pending, unpaid and past the hold window"""
        if self.status != ReservationStatus.PENDING:
            return False
        if self.payment_status != PaymentStatus.PENDING:
            return False
        if not self.hold_expires_at:
            return False
        return now >= self.hold_expires_at

    @property
    def blocks_dates(self) -> bool:
        return self.status in BLOCKING_STATUSES

    @property
    def lost_race(self) -> bool:
        return self.cancellation_reason == CancellationReason.LOST_RACE

    @property
    def nights(self) -> int:
        return len(self.dates)

    def __str__(self):
        return f"Reservation {self.booking_reference} ({self.status.value})"

    def __repr__(self):
        return (
            f"Reservation(id={self.id}, booking_reference={self.booking_reference}, "
            f"status={self.status.value}, payment_status={self.payment_status.value}, "
            f"dates={self.dates})"
        )
