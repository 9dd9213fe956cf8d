"""
Booking Engine Errors

The full taxonomy callers branch on:
- ValidationError: malformed request, rejected before any read
- NotFound: unknown unit or reservation
- BookingConflict: requested nights are taken; carries the conflicts
- RuleConflict: stored pricing rules overlap (data-integrity fault)
- LostRace: payment arrived but a competing stay was confirmed first
- LockTimeout: the confirm/cancel critical section was busy
- InvalidTransition: the reservation's status does not allow the operation
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Sequence

from shared.domain.exceptions import (
    BookingEngineError,
    LockTimeout,
    NotFound,
    ValidationError,
)

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from apps.bookings.domain.entities import Reservation
    from apps.rentals.domain.entities import AvailabilityBlock, PricingRule


class BookingConflict(BookingEngineError):
    """
    The requested range overlaps pending/confirmed stays or blocks

    Also raised by confirm when the nights were blocked or the unit was
    restricted after the hold was taken; the details then carry
    `reservation_id` and `refund_required`.
    """

    code = 'booking_conflict'

    def __init__(
        self,
        conflicts: Sequence['Reservation'],
        blocks: Sequence['AvailabilityBlock'] = (),
        restrictions: Sequence[str] = (),
        **details,
    ):
        parts = []
        if conflicts:
            parts.append(f"{len(conflicts)} conflicting reservation(s)")
        if blocks:
            parts.append(f"{len(blocks)} blocked period(s)")
        parts.extend(restrictions)
        super().__init__(
            "Unit is not available for the requested dates: " + "; ".join(parts),
            conflicts=[
                {
                    'reservation_id': str(r.id),
                    'check_in': r.dates.start_date.isoformat(),
                    'check_out': r.dates.end_date.isoformat(),
                    'status': r.status.value,
                }
                for r in conflicts
            ],
            blocks=[
                {
                    'start_date': b.dates.start_date.isoformat(),
                    'end_date': b.dates.end_date.isoformat(),
                    'kind': b.kind.value,
                }
                for b in blocks
            ],
            restrictions=list(restrictions),
            **details,
        )
        self.conflicts = list(conflicts)
        self.blocks = list(blocks)
        self.restrictions = list(restrictions)


class RuleConflict(BookingEngineError):
    """More than one active pricing rule covers the same night"""

    code = 'rule_conflict'

    def __init__(self, unit_id, night: date, rules: Sequence['PricingRule']):
        super().__init__(
            f"Pricing rules {', '.join(str(r.id) for r in rules)} of unit {unit_id} "
            f"all cover {night.isoformat()}",
            unit_id=str(unit_id),
            night=night.isoformat(),
            rule_ids=[str(r.id) for r in rules],
        )
        self.unit_id = unit_id
        self.night = night
        self.rules = list(rules)


class LostRace(BookingEngineError):
    """
    The reservation was cancelled at confirm time

    A competing reservation for overlapping nights was confirmed first.
    The holder has paid, so the caller must start a refund.
    """

    code = 'lost_race'

    def __init__(self, reservation: 'Reservation', winner_id=None):
        super().__init__(
            f"Reservation {reservation.booking_reference} lost the race for "
            f"{reservation.dates} and was cancelled; refund required",
            reservation_id=str(reservation.id),
            winner_id=str(winner_id) if winner_id else None,
            refund_required=True,
        )
        self.reservation = reservation
        self.winner_id = winner_id


class InvalidTransition(ValidationError):
    """The reservation's current status does not allow the operation"""

    code = 'invalid_transition'


__all__ = [
    'BookingEngineError',
    'BookingConflict',
    'InvalidTransition',
    'LockTimeout',
    'LostRace',
    'NotFound',
    'RuleConflict',
    'ValidationError',
]
