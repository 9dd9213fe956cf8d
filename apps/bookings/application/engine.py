"""
Booking Engine

Single entry point for the booking and pricing operations. Views, Celery
tasks and the admin go through BookingEngine; it wires the repositories,
clock, config and locks into the command handlers.

Usage:
    engine = BookingEngine.default()
    quote = engine.quote_price(unit_id, check_in, check_out, guests=2)
    reservation = engine.create_booking(unit_id, requester_id, check_in, check_out, 2, guest_info)
    engine.confirm_booking(reservation.id, payment_reference="pay_123")
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Mapping, Optional, Union
from uuid import UUID

from shared.application.locks import RangeLockRegistry, range_locks
from shared.application.uow import AbstractUnitOfWork, DjangoUnitOfWork
from shared.domain.clock import Clock, get_default_clock

from apps.bookings.application.command_handlers import (
    CancelBookingCommand,
    CancelBookingHandler,
    ConfirmBookingCommand,
    ConfirmBookingHandler,
    CreateBookingCommand,
    CreateBookingHandler,
    ExpirePendingCommand,
    ExpirePendingHandler,
    HandlerContext,
    RecordRefundCommand,
    RecordRefundHandler,
    validate_capacity,
    validate_guest_count,
)
from apps.bookings.conf import EngineConfig, engine_settings
from apps.bookings.domain.availability import AvailabilityResult, stay_range
from apps.bookings.domain.entities import CancellationReason, GuestInfo, Reservation
from apps.bookings.domain.pricing import PriceQuote, RateSchedule
from apps.bookings.repositories import DjangoReservationRepository, ReservationRepository
from apps.rentals.repositories import CatalogRepository, DjangoCatalogRepository

logger = logging.getLogger(__name__)


class BookingEngine:

    def __init__(
        self,
        reservation_repo: ReservationRepository,
        catalog_repo: CatalogRepository,
        *,
        clock: Optional[Clock] = None,
        config: Optional[EngineConfig] = None,
        uow_factory: Callable[[], AbstractUnitOfWork] = DjangoUnitOfWork,
        locks: RangeLockRegistry = range_locks,
    ):
        self.ctx = HandlerContext(
            reservation_repo=reservation_repo,
            catalog_repo=catalog_repo,
            clock=clock or get_default_clock(),
            config=config or EngineConfig(),
            uow_factory=uow_factory,
            locks=locks,
        )
        self._create = CreateBookingHandler(self.ctx)
        self._confirm = ConfirmBookingHandler(self.ctx)
        self._cancel = CancelBookingHandler(self.ctx)
        self._refund = RecordRefundHandler(self.ctx)
        self._expire = ExpirePendingHandler(self.ctx)

    @classmethod
    def default(cls, **overrides) -> 'BookingEngine':
        """Engine backed by the ORM and the BOOKING_ENGINE setting"""
        overrides.setdefault('config', engine_settings())
        return cls(DjangoReservationRepository(), DjangoCatalogRepository(), **overrides)

    @property
    def clock(self) -> Clock:
        return self.ctx.clock

    @property
    def config(self) -> EngineConfig:
        return self.ctx.config

    # ===== Queries =====

    def check_availability(
        self,
        unit_id: UUID,
        check_in: date,
        check_out: date,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> AvailabilityResult:
        return self.ctx.checker.check_availability(
            unit_id, check_in, check_out, exclude_reservation_id=exclude_reservation_id
        )

    def resolve_rate_schedule(self, unit_id: UUID, check_in: date, check_out: date) -> RateSchedule:
        dates = stay_range(check_in, check_out)
        catalog = self.ctx.catalog_repo.get_catalog(unit_id)
        return self.ctx.resolver.resolve(catalog, dates)

    def quote_price(self, unit_id: UUID, check_in: date, check_out: date, guests: int) -> PriceQuote:
        """
        Preview the price of a stay without holding anything

        The breakdown is what create_booking would store right now; the
        quote is honoured until valid_until (now + hold window).
        """
        guests = validate_guest_count(guests)
        dates = stay_range(check_in, check_out)
        catalog = self.ctx.catalog_repo.get_catalog(unit_id)
        validate_capacity(catalog.unit, guests)
        breakdown = self.ctx.price(catalog, dates, guests)
        return PriceQuote(
            unit_id=unit_id,
            dates=dates,
            guests=guests,
            breakdown=breakdown,
            valid_until=self.ctx.clock.now() + self.ctx.config.hold_window,
        )

    def get_reservation(self, reservation_id: UUID) -> Reservation:
        return self.ctx.reservation_repo.get(reservation_id)

    # ===== Commands =====

    def create_booking(
        self,
        unit_id: UUID,
        requester_id: UUID,
        check_in: date,
        check_out: date,
        guests: int,
        guest_info: Union[GuestInfo, Mapping[str, str]],
        special_requests: str = '',
    ) -> Reservation:
        return self._create.handle(CreateBookingCommand(
            unit_id=unit_id,
            requester_id=requester_id,
            check_in=check_in,
            check_out=check_out,
            guests=guests,
            guest_info=guest_info,
            special_requests=special_requests,
        ))

    def confirm_booking(self, reservation_id: UUID, payment_reference: str = '') -> Reservation:
        return self._confirm.handle(ConfirmBookingCommand(
            reservation_id=reservation_id,
            payment_reference=payment_reference,
        ))

    def cancel_booking(
        self,
        reservation_id: UUID,
        reason: CancellationReason = CancellationReason.GUEST,
        note: str = '',
    ) -> Reservation:
        return self._cancel.handle(CancelBookingCommand(
            reservation_id=reservation_id,
            reason=reason,
            note=note,
        ))

    def record_refund(self, reservation_id: UUID) -> Reservation:
        return self._refund.handle(RecordRefundCommand(reservation_id=reservation_id))

    def cancel_expired_pending(self, unit_id: Optional[UUID] = None) -> int:
        return self._expire.handle(ExpirePendingCommand(unit_id=unit_id))
