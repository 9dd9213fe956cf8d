"""
Availability Checker

Read-only answer to "can this unit be booked for [check_in, check_out)?".
Conflicts are returned as data; nothing here raises for an occupied range.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional, Tuple
from uuid import UUID

from shared.domain.exceptions import ValidationError
from shared.domain.value_objects import DateRange

from apps.bookings.domain.entities import BLOCKING_STATUSES, Reservation, ReservationStatus
from apps.rentals.domain.entities import AvailabilityBlock, RentalUnit

logger = logging.getLogger(__name__)


def stay_range(check_in: date, check_out: date) -> DateRange:
    """Build a stay range, turning bad input into a ValidationError"""
    if not isinstance(check_in, date) or not isinstance(check_out, date):
        raise ValidationError("Check-in and check-out must be calendar dates", field='check_in')
    if check_in >= check_out:
        raise ValidationError("Check-out date must be after check-in date", field='check_out')
    return DateRange(check_in, check_out)


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    conflicts: Tuple[Reservation, ...] = ()
    blocks: Tuple[AvailabilityBlock, ...] = ()
    restrictions: Tuple[str, ...] = field(default=())


class AvailabilityChecker:
    """
    Usage:
        checker = AvailabilityChecker(reservation_repo, catalog_repo)
        result = checker.check_availability(unit_id, check_in, check_out)
        if not result.available:
            ...  # result.conflicts, result.blocks, result.restrictions
    """

    def __init__(self, reservation_repo, catalog_repo):
        self.reservation_repo = reservation_repo
        self.catalog_repo = catalog_repo

    def find_conflicts(
        self,
        unit_id: UUID,
        dates: DateRange,
        *,
        statuses: Iterable[ReservationStatus] = BLOCKING_STATUSES,
        exclude_reservation_id: Optional[UUID] = None,
        lock: bool = False,
    ) -> Tuple[Reservation, ...]:
        """Reservations in `statuses` whose half-open range overlaps `dates`"""
        return tuple(self.reservation_repo.list_overlapping(
            unit_id,
            dates,
            statuses=frozenset(statuses),
            exclude_id=exclude_reservation_id,
            lock=lock,
        ))

    @staticmethod
    def restrictions_for(unit: RentalUnit, dates: DateRange) -> Tuple[str, ...]:
        restrictions = []
        if not unit.is_bookable:
            restrictions.append(f"Unit is not available for booking (status: {unit.status.value})")
        if len(dates) < unit.min_nights:
            restrictions.append(f"Minimum stay is {unit.min_nights} night(s)")
        if unit.max_nights is not None and len(dates) > unit.max_nights:
            restrictions.append(f"Maximum stay is {unit.max_nights} night(s)")
        return tuple(restrictions)

    def check_availability(
        self,
        unit_id: UUID,
        check_in: date,
        check_out: date,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> AvailabilityResult:
        dates = stay_range(check_in, check_out)
        unit = self.catalog_repo.get_unit(unit_id)

        conflicts = self.find_conflicts(
            unit_id, dates, exclude_reservation_id=exclude_reservation_id
        )
        blocks = tuple(self.catalog_repo.list_blocks(unit_id, dates))
        restrictions = self.restrictions_for(unit, dates)

        available = not conflicts and not blocks and not restrictions
        if not available:
            logger.debug(
                f"Unit {unit_id} unavailable for {dates}: {len(conflicts)} conflicts, "
                f"{len(blocks)} blocks, {len(restrictions)} restrictions"
            )
        return AvailabilityResult(
            available=available,
            conflicts=conflicts,
            blocks=blocks,
            restrictions=restrictions,
        )
