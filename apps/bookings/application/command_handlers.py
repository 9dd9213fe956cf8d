"""
Booking Command Handlers

These are the use cases for the booking domain.
They orchestrate domain operations within units of work.

Commands:
- CreateBookingCommand: Create a pending reservation
- ConfirmBookingCommand: Record payment and confirm (authoritative re-check)
- CancelBookingCommand: Cancel a reservation
- RecordRefundCommand: Mark a cancelled reservation's payment refunded
- ExpirePendingCommand: Cancel unpaid reservations past their hold window
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Mapping, Optional, Union
from uuid import UUID, uuid4

from django.core.exceptions import ValidationError as DjangoValidationError  # type: ignore
from django.core.validators import validate_email  # type: ignore

from shared.application.locks import RangeLockRegistry
from shared.application.uow import AbstractUnitOfWork
from shared.domain.clock import Clock
from shared.domain.exceptions import LockTimeout, ValidationError
from shared.domain.value_objects import DateRange

from apps.bookings.conf import EngineConfig
from apps.bookings.domain.availability import AvailabilityChecker, AvailabilityResult, stay_range
from apps.bookings.domain.entities import (
    CancellationReason,
    GuestInfo,
    Reservation,
    ReservationStatus,
)
from apps.bookings.domain.errors import (
    BookingConflict,
    InvalidTransition,
    LostRace,
    RuleConflict,
)
from apps.bookings.domain.pricing import PricingBreakdown, PricingCalculator, PricingRuleResolver
from apps.bookings.repositories import ReservationRepository
from apps.rentals.domain.entities import RentalUnit
from apps.rentals.domain.rate_catalog import RateCatalog
from apps.rentals.repositories import CatalogRepository

logger = logging.getLogger(__name__)

PHONE_RE = re.compile(r"^\+?[0-9][0-9 ()\-]{5,24}$")
MAX_SPECIAL_REQUESTS = 2000


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Command to create a new booking

    This is the primary entry point for creating reservations.
    """
    unit_id: UUID
    requester_id: UUID
    check_in: date
    check_out: date
    guests: int
    guest_info: Union[GuestInfo, Mapping[str, str]]
    special_requests: str = ''


@dataclass
class ConfirmBookingCommand:
    """Command to confirm a reservation after the gateway captured payment"""
    reservation_id: UUID
    payment_reference: str = ''


@dataclass
class CancelBookingCommand:
    """Command to cancel a reservation"""
    reservation_id: UUID
    reason: CancellationReason = CancellationReason.GUEST
    note: str = ''


@dataclass
class RecordRefundCommand:
    """Command to record that a captured payment was refunded"""
    reservation_id: UUID


@dataclass
class ExpirePendingCommand:
    """Command to cancel every unpaid reservation past its hold window"""
    unit_id: Optional[UUID] = None


# ===== Shared wiring =====

@dataclass
class HandlerContext:
    """Collaborators every handler needs"""
    reservation_repo: ReservationRepository
    catalog_repo: CatalogRepository
    clock: Clock
    config: EngineConfig
    uow_factory: Callable[[], AbstractUnitOfWork]
    locks: RangeLockRegistry
    resolver: PricingRuleResolver = field(default_factory=PricingRuleResolver)

    def __post_init__(self):
        self.checker = AvailabilityChecker(self.reservation_repo, self.catalog_repo)
        self.calculator = PricingCalculator(self.config.service_fee_rate)

    def critical_section(self, reservation: Reservation):
        """Per-unit, per-range lock around a re-check and its write"""
        return self.locks.hold(
            reservation.unit_id,
            reservation.dates,
            timeout=self.config.lock_timeout_seconds,
        )

    def lock_unit(self, unit_id: UUID) -> RentalUnit:
        """Take the unit row lock; first lock of every calendar-changing write"""
        return self.catalog_repo.get_unit(unit_id, lock=True)

    def price(self, catalog: RateCatalog, dates: DateRange, guests: int) -> PricingBreakdown:
        """Resolve + calculate; pure, so safe to call without locks"""
        try:
            schedule = self.resolver.resolve(catalog, dates)
        except RuleConflict as exc:
            logger.error(
                f"Pricing rule overlap on unit {exc.unit_id} at {exc.night}: "
                f"rules {[str(rule.id) for rule in exc.rules]}"
            )
            raise
        return self.calculator.calculate_pricing(catalog.unit, schedule, len(dates), guests)


def validate_guest_count(guests) -> int:
    if isinstance(guests, bool) or not isinstance(guests, int):
        raise ValidationError("Guest count must be an integer", field='guests')
    if guests < 1:
        raise ValidationError("At least one guest is required", field='guests')
    return guests


def validate_capacity(unit: RentalUnit, guests: int) -> int:
    if guests > unit.max_guests:
        raise ValidationError(
            f"Guest count ({guests}) exceeds unit capacity ({unit.max_guests})",
            field='guests',
        )
    return guests


def validate_guest_info(guest_info: Union[GuestInfo, Mapping[str, str], None]) -> GuestInfo:
    """Reject missing or malformed contact details before anything is read"""
    if guest_info is None:
        raise ValidationError("Guest information is required", field='guest_info')
    if isinstance(guest_info, GuestInfo):
        data = guest_info.to_dict()
    else:
        data = {key: (guest_info.get(key) or '') for key in ('name', 'email', 'phone', 'nationality')}

    data = {key: str(value).strip() for key, value in data.items()}
    missing = [key for key in ('name', 'email', 'phone') if not data[key]]
    if missing:
        raise ValidationError(
            f"Missing guest information: {', '.join(missing)}",
            field='guest_info',
            missing=missing,
        )
    if len(data['name']) > 255:
        raise ValidationError("Guest name is too long", field='guest_info.name')
    try:
        validate_email(data['email'])
    except DjangoValidationError:
        raise ValidationError("Guest email is not valid", field='guest_info.email') from None
    if not PHONE_RE.match(data['phone']):
        raise ValidationError("Guest phone is not valid", field='guest_info.phone')

    return GuestInfo(**data)


# ===== Command Handlers =====

class CreateBookingHandler:
    """
    Handler for CreateBooking command

    Everything is validated and priced before the single insert, so a
    failure at any step leaves nothing behind.

    Strategy:
    1. Validate input (no reads)
    2. Load the rate catalog and check unit limits
    3. Optimistic availability check against pending/confirmed stays
    4. Resolve rules and price the stay
    5. Insert the PENDING reservation in one unit of work
    Racing creates may both pass step 3; the confirm step settles them.
    """

    def __init__(self, context: HandlerContext):
        self.ctx = context

    def handle(self, command: CreateBookingCommand) -> Reservation:
        guests = validate_guest_count(command.guests)
        dates = stay_range(command.check_in, command.check_out)
        guest_info = validate_guest_info(command.guest_info)
        special_requests = (command.special_requests or '').strip()
        if len(special_requests) > MAX_SPECIAL_REQUESTS:
            raise ValidationError("Special requests are too long", field='special_requests')

        now = self.ctx.clock.now()
        today = now.date()
        if dates.start_date < today:
            raise ValidationError("Check-in date cannot be in the past", field='check_in')
        if (dates.end_date - today).days > self.ctx.config.max_advance_days:
            raise ValidationError("Booking date is too far in the future", field='check_out')

        logger.info(
            f"Creating booking for unit {command.unit_id}, "
            f"requester {command.requester_id}, dates {dates}"
        )

        catalog = self.ctx.catalog_repo.get_catalog(command.unit_id)
        validate_capacity(catalog.unit, guests)

        availability = self.ctx.checker.check_availability(command.unit_id, dates.start_date, dates.end_date)
        if not availability.available:
            logger.warning(
                f"Booking conflict on unit {command.unit_id} for {dates}: "
                f"{[str(r.id) for r in availability.conflicts]}"
            )
            raise BookingConflict(
                availability.conflicts,
                availability.blocks,
                availability.restrictions,
            )

        pricing = self.ctx.price(catalog, dates, guests)

        reservation = Reservation.create(
            booking_reference=self._generate_booking_reference(now),
            unit_id=command.unit_id,
            requester_id=command.requester_id,
            dates=dates,
            guests=guests,
            guest_info=guest_info,
            pricing=pricing,
            special_requests=special_requests,
            hold_expires_at=now + self.ctx.config.hold_window,
            now=now,
        )

        with self.ctx.uow_factory() as uow:
            self.ctx.reservation_repo.add(reservation)
            uow.collect_events(reservation)

        logger.info(
            f"Reservation created: {reservation.booking_reference} "
            f"(ID: {reservation.id}, total {reservation.pricing.money('total')})"
        )
        return reservation

    def _generate_booking_reference(self, now) -> str:
        """Generate booking reference: {prefix}{timestamp}{random}"""
        random_part = uuid4().hex[:6].upper()
        return f"{self.ctx.config.reference_prefix}{now.strftime('%Y%m%d%H%M%S')}{random_part}"


class ConfirmBookingHandler:
    """
    Handler for confirming a reservation after payment

    The confirm step is where nights are actually committed. Inside the
    unit/range critical section, holding the unit row lock, it re-runs
    availability against CONFIRMED stays, blocks and unit restrictions:
    - all clear: this reservation is confirmed, and pending stays that
      overlap it (the other side of a create race) are cancelled as lost
    - a confirmed stay found: this reservation is cancelled as lost and
      LostRace is raised after the cancellation is committed
    - a block or restriction found: this reservation is cancelled as
      unavailable and BookingConflict is raised with refund_required
    """

    def __init__(self, context: HandlerContext):
        self.ctx = context

    def handle(self, command: ConfirmBookingCommand) -> Reservation:
        logger.info(f"Confirming reservation {command.reservation_id}")

        reservation = self.ctx.reservation_repo.get(command.reservation_id)
        if reservation.status == ReservationStatus.CONFIRMED:
            return reservation
        if reservation.status == ReservationStatus.CANCELLED:
            return self._payment_for_cancelled(reservation, command.payment_reference)

        winner: Optional[Reservation] = None
        unavailable: Optional[AvailabilityResult] = None
        with self.ctx.critical_section(reservation):
            with self.ctx.uow_factory() as uow:
                unit = self.ctx.lock_unit(reservation.unit_id)
                reservation = self.ctx.reservation_repo.get(command.reservation_id, lock=True)
                # a competing confirm may have settled it while we waited for the lock
                if reservation.status == ReservationStatus.PENDING:
                    now = self.ctx.clock.now()
                    reservation.record_payment(command.payment_reference, now)
                    winners = self.ctx.checker.find_conflicts(
                        reservation.unit_id,
                        reservation.dates,
                        statuses={ReservationStatus.CONFIRMED},
                        exclude_reservation_id=reservation.id,
                        lock=True,
                    )
                    if winners:
                        winner = winners[0]
                        reservation.cancel(
                            CancellationReason.LOST_RACE,
                            now,
                            note=f"Dates taken by {winner.booking_reference}",
                        )
                    else:
                        unavailable = self._closed_nights(unit, reservation.dates)
                        if unavailable is not None:
                            reservation.cancel(
                                CancellationReason.UNAVAILABLE,
                                now,
                                note="Dates blocked or restricted before payment arrived",
                            )
                        else:
                            reservation.confirm(now)
                            self._cancel_losers(reservation, now, uow)
                    self.ctx.reservation_repo.save(reservation)
                    uow.collect_events(reservation)

        if reservation.status == ReservationStatus.CANCELLED:
            if winner is not None:
                logger.warning(
                    f"Reservation {reservation.booking_reference} lost the race to "
                    f"{winner.booking_reference}; refund required"
                )
                raise LostRace(reservation, winner_id=winner.id)
            if unavailable is not None:
                logger.warning(
                    f"Reservation {reservation.booking_reference} cancelled at confirm: "
                    f"{len(unavailable.blocks)} blocks, restrictions {list(unavailable.restrictions)}; "
                    f"refund required"
                )
                raise BookingConflict(
                    (),
                    unavailable.blocks,
                    unavailable.restrictions,
                    reservation_id=str(reservation.id),
                    refund_required=True,
                )
            return self._payment_for_cancelled(reservation, command.payment_reference)

        logger.info(f"Reservation {reservation.booking_reference} confirmed")
        return reservation

    def _closed_nights(self, unit: RentalUnit, dates: DateRange) -> Optional[AvailabilityResult]:
        """Blocks and unit restrictions over `dates`, or None when the nights are open"""
        blocks = tuple(self.ctx.catalog_repo.list_blocks(unit.id, dates))
        restrictions = self.ctx.checker.restrictions_for(unit, dates)
        if not blocks and not restrictions:
            return None
        return AvailabilityResult(available=False, blocks=blocks, restrictions=restrictions)

    def _cancel_losers(self, winner: Reservation, now, uow: AbstractUnitOfWork):
        losers = self.ctx.checker.find_conflicts(
            winner.unit_id,
            winner.dates,
            statuses={ReservationStatus.PENDING},
            exclude_reservation_id=winner.id,
            lock=True,
        )
        for loser in losers:
            loser.cancel(
                CancellationReason.LOST_RACE,
                now,
                note=f"Dates taken by {winner.booking_reference}",
            )
            self.ctx.reservation_repo.save(loser)
            uow.collect_events(loser)
            logger.warning(
                f"Pending reservation {loser.booking_reference} cancelled: "
                f"{winner.booking_reference} confirmed first"
            )

    def _payment_for_cancelled(self, reservation: Reservation, payment_reference: str) -> Reservation:
        """Money arrived for a stay that no longer exists: keep the payment, refuse the stay"""
        with self.ctx.uow_factory() as uow:
            reservation = self.ctx.reservation_repo.get(reservation.id, lock=True)
            reservation.record_payment(payment_reference, self.ctx.clock.now())
            self.ctx.reservation_repo.save(reservation)
            uow.collect_events(reservation)

        if reservation.lost_race:
            raise LostRace(reservation)
        raise InvalidTransition(
            f"Reservation {reservation.booking_reference} is cancelled "
            f"({reservation.cancellation_reason.value}); refund required",
            field='status',
            refund_required=True,
        )


class CancelBookingHandler:
    """Handler for cancelling a reservation; cancelling twice is a no-op"""

    def __init__(self, context: HandlerContext):
        self.ctx = context

    def handle(self, command: CancelBookingCommand) -> Reservation:
        reason = CancellationReason(command.reason)
        logger.info(f"Cancelling reservation {command.reservation_id}, reason: {reason.value}")

        reservation = self.ctx.reservation_repo.get(command.reservation_id)
        if reservation.status == ReservationStatus.CANCELLED:
            return reservation

        with self.ctx.critical_section(reservation):
            with self.ctx.uow_factory() as uow:
                self.ctx.lock_unit(reservation.unit_id)
                reservation = self.ctx.reservation_repo.get(command.reservation_id, lock=True)
                if reservation.cancel(reason, self.ctx.clock.now(), note=command.note):
                    self.ctx.reservation_repo.save(reservation)
                    uow.collect_events(reservation)

        logger.info(f"Reservation {reservation.booking_reference} cancelled")
        return reservation


class RecordRefundHandler:
    """Handler for recording a refund issued by the payment gateway"""

    def __init__(self, context: HandlerContext):
        self.ctx = context

    def handle(self, command: RecordRefundCommand) -> Reservation:
        with self.ctx.uow_factory() as uow:
            reservation = self.ctx.reservation_repo.get(command.reservation_id, lock=True)
            reservation.record_refund(self.ctx.clock.now())
            self.ctx.reservation_repo.save(reservation)
            uow.collect_events(reservation)

        logger.info(f"Refund recorded for reservation {reservation.booking_reference}")
        return reservation


class ExpirePendingHandler:
    """
    Handler for the hold-expiry sweep

    Each reservation is expired in its own unit of work; one that cannot be
    locked right now is left for the next sweep.
    """

    def __init__(self, context: HandlerContext):
        self.ctx = context

    def handle(self, command: ExpirePendingCommand) -> int:
        now = self.ctx.clock.now()
        expired = 0

        for candidate in self.ctx.reservation_repo.list_expired_pending(now, command.unit_id):
            try:
                with self.ctx.critical_section(candidate):
                    with self.ctx.uow_factory() as uow:
                        self.ctx.lock_unit(candidate.unit_id)
                        reservation = self.ctx.reservation_repo.get(candidate.id, lock=True)
                        if not reservation.is_hold_expired(now):
                            continue
                        reservation.cancel(
                            CancellationReason.EXPIRED,
                            now,
                            note="Hold window elapsed without payment",
                        )
                        self.ctx.reservation_repo.save(reservation)
                        uow.collect_events(reservation)
            except LockTimeout:
                logger.warning(f"Skipping expiry of {candidate.booking_reference}: range is locked")
                continue

            expired += 1
            logger.info(f"Reservation {reservation.booking_reference} expired automatically")

        if expired:
            logger.info(f"Expired {expired} pending reservations")
        return expired
