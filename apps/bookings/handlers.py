"""
Booking event handlers

Subscribers run after the unit of work has committed. They write the
structured audit trail of every reservation transition; notification
delivery lives outside this service and consumes the same log stream.
"""

from __future__ import annotations

import structlog

from shared.application.message_bus import MessageBus, message_bus
from shared.domain.base import DomainEvent

from apps.bookings.domain.events import (
    PaymentReceived,
    RefundRecorded,
    ReservationCancelled,
    ReservationConfirmed,
    ReservationCreated,
)

audit_logger = structlog.get_logger("audit")


def audit_reservation_created(event: ReservationCreated) -> None:
    audit_logger.info(
        "reservation.created",
        **event.to_dict(),
        reservation_id=str(event.reservation_id),
        unit_id=str(event.unit_id),
        requester_id=str(event.requester_id),
        check_in=event.dates.start_date.isoformat(),
        check_out=event.dates.end_date.isoformat(),
        total=str(event.total),
    )


def audit_payment_received(event: PaymentReceived) -> None:
    audit_logger.info(
        "reservation.payment_received",
        **event.to_dict(),
        reservation_id=str(event.reservation_id),
        payment_reference=event.payment_reference,
    )


def audit_reservation_confirmed(event: ReservationConfirmed) -> None:
    audit_logger.info(
        "reservation.confirmed",
        **event.to_dict(),
        reservation_id=str(event.reservation_id),
        unit_id=str(event.unit_id),
        check_in=event.dates.start_date.isoformat(),
        check_out=event.dates.end_date.isoformat(),
    )


def audit_reservation_cancelled(event: ReservationCancelled) -> None:
    log = audit_logger.warning if event.refund_required else audit_logger.info
    log(
        "reservation.cancelled",
        **event.to_dict(),
        reservation_id=str(event.reservation_id),
        unit_id=str(event.unit_id),
        reason=event.reason,
        old_status=event.old_status,
        refund_required=event.refund_required,
    )


def audit_refund_recorded(event: RefundRecorded) -> None:
    audit_logger.info(
        "reservation.refunded",
        **event.to_dict(),
        reservation_id=str(event.reservation_id),
        amount=str(event.amount),
    )


HANDLERS: dict[type[DomainEvent], object] = {
    ReservationCreated: audit_reservation_created,
    PaymentReceived: audit_payment_received,
    ReservationConfirmed: audit_reservation_confirmed,
    ReservationCancelled: audit_reservation_cancelled,
    RefundRecorded: audit_refund_recorded,
}


def register_handlers(bus: MessageBus = message_bus) -> None:
    """Subscribe the audit handlers; safe to call more than once"""
    for event_type, handler in HANDLERS.items():
        bus.register_event_handler(event_type, handler)
