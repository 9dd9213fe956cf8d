"""Shared pytest fixtures for the engine's domain tests."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from shared.application.locks import RangeLockRegistry
from shared.application.message_bus import MessageBus
from shared.application.uow import InMemoryUnitOfWork
from shared.domain.base import DomainEvent
from shared.domain.clock import FixedClock
from shared.domain.value_objects import Money

from apps.bookings.application.engine import BookingEngine
from apps.bookings.conf import EngineConfig
from apps.bookings.domain.entities import GuestInfo
from apps.bookings.repositories import InMemoryReservationRepository
from apps.rentals.domain.entities import RentalUnit
from apps.rentals.repositories import InMemoryCatalogRepository
from apps.rentals.services import PricingRuleService

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)
CHECK_IN = date(2026, 6, 10)


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def bus():
    return MessageBus()


@pytest.fixture
def published(bus):
    """Every event the in-memory units of work publish"""
    events = []
    bus.register_event_handler(DomainEvent, events.append)
    return events


@pytest.fixture
def uow_factory(bus):
    return lambda: InMemoryUnitOfWork(bus=bus)


@pytest.fixture
def locks():
    return RangeLockRegistry()


@pytest.fixture
def catalog_repo():
    return InMemoryCatalogRepository()


@pytest.fixture
def reservation_repo():
    return InMemoryReservationRepository()


@pytest.fixture
def unit(catalog_repo, clock):
    """8500.00 DZD a night, 1500.00 cleaning, 19% VAT, 5.00 tourist tax"""
    unit = RentalUnit(
        name="Studio Hydra",
        owner_id=uuid4(),
        base_rate=Money(850000, "DZD"),
        cleaning_fee=Money(150000, "DZD"),
        tax_rate=Decimal("0.19"),
        tourist_tax=Money(500, "DZD"),
        max_guests=4,
        created_at=clock.now(),
        updated_at=clock.now(),
    )
    catalog_repo.save_unit(unit)
    return unit


@pytest.fixture
def config():
    return EngineConfig(lock_timeout_seconds=0.5)


@pytest.fixture
def engine(reservation_repo, catalog_repo, clock, config, uow_factory, locks):
    return BookingEngine(
        reservation_repo,
        catalog_repo,
        clock=clock,
        config=config,
        uow_factory=uow_factory,
        locks=locks,
    )


@pytest.fixture
def rule_service(catalog_repo, clock, uow_factory, locks):
    return PricingRuleService(
        catalog_repo,
        clock=clock,
        uow_factory=uow_factory,
        locks=locks,
        lock_timeout=0.5,
    )


@pytest.fixture
def guest_info():
    return GuestInfo(name="Amina Benali", email="amina@example.com", phone="+213 555 123 456")


@pytest.fixture
def book(engine, unit, guest_info):
    """Create a pending reservation on `unit`; defaults to 3 nights from CHECK_IN"""

    def _book(check_in=CHECK_IN, check_out=None, guests=2, requester_id=None):
        return engine.create_booking(
            unit_id=unit.id,
            requester_id=requester_id or uuid4(),
            check_in=check_in,
            check_out=check_out or check_in + timedelta(days=3),
            guests=guests,
            guest_info=guest_info,
        )

    return _book
