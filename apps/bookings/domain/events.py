"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
These are published after successful transaction commits.
"""

from dataclasses import dataclass
from uuid import UUID

from shared.domain.base import DomainEvent
from shared.domain.value_objects import DateRange, Money


@dataclass(kw_only=True)
class ReservationCreated(DomainEvent):
    """
    Event: A new pending reservation was stored

    Triggers:
    - Hold confirmation to the guest (external notifications)
    - Audit log entry
    """
    reservation_id: UUID
    unit_id: UUID
    requester_id: UUID
    dates: DateRange
    total: Money


@dataclass(kw_only=True)
class PaymentReceived(DomainEvent):
    """Event: The payment gateway reported a captured payment"""
    reservation_id: UUID
    payment_reference: str


@dataclass(kw_only=True)
class ReservationConfirmed(DomainEvent):
    """
    Event: Reservation confirmed (PENDING -> CONFIRMED)

    Triggers:
    - Booking confirmation to the guest
    - Owner notification
    """
    reservation_id: UUID
    unit_id: UUID
    dates: DateRange


@dataclass(kw_only=True)
class ReservationCancelled(DomainEvent):
    """
    Event: Reservation was cancelled

    `reason` tells expiry and lost races apart from guest/owner
    cancellations; `refund_required` is set when money was captured.
    """
    reservation_id: UUID
    unit_id: UUID
    dates: DateRange
    reason: str
    old_status: str
    refund_required: bool = False


@dataclass(kw_only=True)
class RefundRecorded(DomainEvent):
    """Event: A captured payment was refunded"""
    reservation_id: UUID
    amount: Money
