"""Tests for the hold-expiry task and the audit subscribers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from shared.application.message_bus import MessageBus, message_bus
from shared.domain.clock import FixedClock
from shared.domain.value_objects import DateRange, Money

from apps.bookings import handlers
from apps.bookings.application.engine import BookingEngine
from apps.bookings.domain.events import ReservationCancelled, ReservationCreated
from apps.bookings.models import Reservation as ReservationModel
from apps.bookings.repositories import DjangoReservationRepository
from apps.bookings.tasks import cancel_expired_pending
from apps.rentals.domain.entities import RentalUnit
from apps.rentals.repositories import DjangoCatalogRepository


@pytest.fixture
def stored_unit():
    unit = RentalUnit(
        name="Studio Oran",
        base_rate=Money(600000, "DZD"),
        cleaning_fee=Money(100000, "DZD"),
        tax_rate=Decimal("0.19"),
        max_guests=2,
    )
    DjangoCatalogRepository().save_unit(unit)
    return unit


@pytest.mark.django_db
def test_task_cancels_only_expired_holds(stored_unit):
    started = datetime.now(timezone.utc) - timedelta(hours=1)
    engine = BookingEngine(DjangoReservationRepository(), DjangoCatalogRepository(), clock=FixedClock(started))
    guest = {"name": "Nour", "email": "nour@example.com", "phone": "+213550000000"}
    check_in = started.date() + timedelta(days=20)

    expired = engine.create_booking(stored_unit.id, uuid4(), check_in, check_in + timedelta(days=2), 1, guest)
    paid = engine.create_booking(
        stored_unit.id, uuid4(), check_in + timedelta(days=5), check_in + timedelta(days=7), 1, guest
    )
    engine.confirm_booking(paid.id, "pay_1")

    result = cancel_expired_pending.delay().get()

    assert result == {"expired": 1}
    row = ReservationModel.objects.get(pk=expired.id)
    assert row.status == ReservationModel.Status.CANCELLED
    assert row.cancellation_reason == ReservationModel.CancellationReason.EXPIRED
    assert ReservationModel.objects.get(pk=paid.id).status == ReservationModel.Status.CONFIRMED


def test_audit_handlers_are_registered_on_startup():
    assert handlers.audit_reservation_created in message_bus.handlers_for(ReservationCreated)
    assert handlers.audit_reservation_cancelled in message_bus.handlers_for(ReservationCancelled)


def test_register_handlers_is_idempotent():
    bus = MessageBus()

    handlers.register_handlers(bus)
    handlers.register_handlers(bus)

    assert bus.handlers_for(ReservationCreated) == [handlers.audit_reservation_created]


def test_audit_handlers_accept_events():
    dates = DateRange(datetime(2026, 6, 1).date(), datetime(2026, 6, 3).date())
    reservation_id = uuid4()

    bus = MessageBus()
    handlers.register_handlers(bus)
    bus.publish_events([
        ReservationCreated(
            aggregate_id=reservation_id,
            reservation_id=reservation_id,
            unit_id=uuid4(),
            requester_id=uuid4(),
            dates=dates,
            total=Money(100, "DZD"),
        ),
        ReservationCancelled(
            aggregate_id=reservation_id,
            reservation_id=reservation_id,
            unit_id=uuid4(),
            dates=dates,
            reason="expired",
            old_status="pending",
        ),
    ])
