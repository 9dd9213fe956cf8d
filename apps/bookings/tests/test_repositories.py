"""Persistence tests for the Django-backed repositories."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from shared.application.uow import DjangoUnitOfWork
from shared.domain.clock import FixedClock
from shared.domain.exceptions import NotFound
from shared.domain.value_objects import DateRange, Money

from apps.bookings.application.engine import BookingEngine
from apps.bookings.domain.entities import BLOCKING_STATUSES, ReservationStatus
from apps.bookings.domain.errors import BookingConflict
from apps.bookings.models import Reservation as ReservationModel
from apps.bookings.repositories import DjangoReservationRepository
from apps.rentals.domain.entities import AvailabilityBlock, BlockKind, PricingRule, RentalUnit
from apps.rentals.repositories import DjangoCatalogRepository

pytestmark = pytest.mark.django_db

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)
CHECK_IN = NOW.date() + timedelta(days=40)


@pytest.fixture
def catalog():
    return DjangoCatalogRepository()


@pytest.fixture
def stored_unit(catalog):
    unit = RentalUnit(
        name="Villa Tipaza",
        base_rate=Money(850000, "DZD"),
        cleaning_fee=Money(150000, "DZD"),
        tax_rate=Decimal("0.19"),
        tourist_tax=Money(500, "DZD"),
        max_guests=4,
        created_at=NOW,
        updated_at=NOW,
    )
    catalog.save_unit(unit)
    return unit


@pytest.fixture
def django_engine(catalog):
    return BookingEngine(DjangoReservationRepository(), catalog, clock=FixedClock(NOW))


@pytest.fixture
def guest():
    return {"name": "Yacine Haddad", "email": "yacine@example.com", "phone": "+213661000111"}


def test_unit_and_rules_round_trip(catalog, stored_unit):
    rule = PricingRule(
        unit_id=stored_unit.id,
        start_date=CHECK_IN,
        end_date=CHECK_IN + timedelta(days=5),
        multiplier=Decimal("1.5"),
        label="Eid",
    )
    catalog.save_rule(rule)

    loaded = catalog.get_catalog(stored_unit.id)

    assert loaded.unit.base_rate == Money(850000, "DZD")
    assert loaded.unit.tax_rate == Decimal("0.19")
    assert loaded.unit.tourist_tax == Money(500, "DZD")
    assert [r.id for r in loaded.rules] == [rule.id]
    assert loaded.rules[0].multiplier == Decimal("1.5")


def test_missing_rows_raise_not_found(catalog):
    with pytest.raises(NotFound):
        catalog.get_unit(uuid4())
    with pytest.raises(NotFound):
        catalog.get_rule(uuid4())
    with pytest.raises(NotFound):
        DjangoReservationRepository().get(uuid4())


def test_blocks_are_half_open(catalog, stored_unit):
    catalog.save_block(AvailabilityBlock(
        unit_id=stored_unit.id,
        dates=DateRange(CHECK_IN, CHECK_IN + timedelta(days=2)),
        kind=BlockKind.MAINTENANCE,
        created_at=NOW,
        updated_at=NOW,
    ))

    assert len(catalog.list_blocks(stored_unit.id, DateRange(CHECK_IN + timedelta(days=1), CHECK_IN + timedelta(days=4)))) == 1
    assert catalog.list_blocks(stored_unit.id, DateRange(CHECK_IN + timedelta(days=2), CHECK_IN + timedelta(days=4))) == []


def test_reservation_round_trip_keeps_pricing_snapshot(django_engine, stored_unit, guest):
    reservation = django_engine.create_booking(
        stored_unit.id, uuid4(), CHECK_IN, CHECK_IN + timedelta(days=3), 2, guest, "Crib please"
    )

    row = ReservationModel.objects.get(pk=reservation.id)
    assert row.status == ReservationModel.Status.PENDING
    assert row.total_minor == 3516950
    assert row.currency == "DZD"
    assert row.pricing["vat"] == 561450
    assert len(row.pricing["schedule"]) == 3

    loaded = DjangoReservationRepository().get(reservation.id)
    assert loaded.pricing.to_json() == reservation.pricing.to_json()
    assert loaded.guest_info.email == "yacine@example.com"
    assert loaded.special_requests == "Crib please"
    assert loaded.hold_expires_at == NOW + timedelta(minutes=30)


def test_list_overlapping_and_expired(django_engine, stored_unit, guest):
    repo = DjangoReservationRepository()
    first = django_engine.create_booking(stored_unit.id, uuid4(), CHECK_IN, CHECK_IN + timedelta(days=3), 2, guest)
    second = django_engine.create_booking(
        stored_unit.id, uuid4(), CHECK_IN + timedelta(days=3), CHECK_IN + timedelta(days=5), 2, guest
    )

    overlapping = repo.list_overlapping(
        stored_unit.id,
        DateRange(CHECK_IN + timedelta(days=2), CHECK_IN + timedelta(days=4)),
        statuses=BLOCKING_STATUSES,
    )
    assert [r.id for r in overlapping] == [first.id, second.id]

    with DjangoUnitOfWork():
        locked = repo.list_overlapping(
            stored_unit.id,
            DateRange(CHECK_IN, CHECK_IN + timedelta(days=1)),
            statuses=BLOCKING_STATUSES,
            exclude_id=first.id,
            lock=True,
        )
    assert locked == []

    assert repo.list_expired_pending(NOW + timedelta(minutes=29)) == []
    assert {r.id for r in repo.list_expired_pending(NOW + timedelta(minutes=30))} == {first.id, second.id}


def test_confirm_and_cancel_persist(django_engine, stored_unit, guest):
    reservation = django_engine.create_booking(
        stored_unit.id, uuid4(), CHECK_IN, CHECK_IN + timedelta(days=2), 1, guest
    )

    django_engine.confirm_booking(reservation.id, "pay_42")
    row = ReservationModel.objects.get(pk=reservation.id)
    assert row.status == ReservationModel.Status.CONFIRMED
    assert row.payment_status == ReservationModel.PaymentStatus.PAID
    assert row.hold_expires_at is None

    django_engine.cancel_booking(reservation.id)
    row.refresh_from_db()
    assert row.status == ReservationStatus.CANCELLED.value
    assert row.cancellation_reason == "guest"


def test_unit_row_lock_inside_unit_of_work(catalog, stored_unit):
    with DjangoUnitOfWork():
        locked = catalog.get_unit(stored_unit.id, lock=True)

    assert locked.id == stored_unit.id
    with pytest.raises(NotFound):
        with DjangoUnitOfWork():
            catalog.get_unit(uuid4(), lock=True)


def test_confirm_over_stored_block_is_refused(django_engine, catalog, stored_unit, guest):
    reservation = django_engine.create_booking(
        stored_unit.id, uuid4(), CHECK_IN, CHECK_IN + timedelta(days=2), 1, guest
    )
    catalog.save_block(AvailabilityBlock(
        unit_id=stored_unit.id,
        dates=DateRange(CHECK_IN + timedelta(days=1), CHECK_IN + timedelta(days=3)),
        kind=BlockKind.OWNER,
        created_at=NOW,
        updated_at=NOW,
    ))

    with pytest.raises(BookingConflict) as excinfo:
        django_engine.confirm_booking(reservation.id, "pay_7")

    assert excinfo.value.to_dict()["refund_required"] is True
    row = ReservationModel.objects.get(pk=reservation.id)
    assert row.status == ReservationModel.Status.CANCELLED
    assert row.cancellation_reason == ReservationModel.CancellationReason.UNAVAILABLE
    assert row.payment_status == ReservationModel.PaymentStatus.PAID
