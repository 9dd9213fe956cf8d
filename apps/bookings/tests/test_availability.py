"""Tests for the availability checker."""

from __future__ import annotations

from datetime import timedelta

import pytest

from shared.domain.exceptions import NotFound, ValidationError

from apps.rentals.domain.entities import BlockKind, UnitStatus

from conftest import CHECK_IN


def days(n):
    return CHECK_IN + timedelta(days=n)


def test_free_unit_is_available(engine, unit):
    result = engine.check_availability(unit.id, days(0), days(3))

    assert result.available
    assert result.conflicts == ()
    assert result.blocks == ()


def test_back_to_back_stays_do_not_conflict(engine, unit, book):
    book(days(0), days(3))

    assert engine.check_availability(unit.id, days(3), days(5)).available
    assert engine.check_availability(unit.id, days(-2), days(0)).available


def test_overlapping_pending_stay_is_reported(engine, unit, book):
    existing = book(days(0), days(3))

    result = engine.check_availability(unit.id, days(2), days(4))

    assert not result.available
    assert [r.id for r in result.conflicts] == [existing.id]


def test_cancelled_stay_frees_its_nights(engine, unit, book):
    existing = book(days(0), days(3))
    engine.cancel_booking(existing.id)

    assert engine.check_availability(unit.id, days(1), days(2)).available


def test_excluded_reservation_is_ignored(engine, unit, book):
    existing = book(days(0), days(3))

    result = engine.check_availability(unit.id, days(0), days(3), exclude_reservation_id=existing.id)

    assert result.available


def test_blocks_make_unit_unavailable(engine, rule_service, unit):
    block = rule_service.block_dates(unit.id, days(4), days(6), BlockKind.OWNER, "Family visit")

    result = engine.check_availability(unit.id, days(5), days(8))

    assert not result.available
    assert result.blocks == (block,)
    assert engine.check_availability(unit.id, days(6), days(8)).available


def test_unit_restrictions(engine, catalog_repo, unit, clock):
    unit.min_nights = 2
    unit.max_nights = 5
    catalog_repo.save_unit(unit)

    assert engine.check_availability(unit.id, days(0), days(1)).restrictions == ("Minimum stay is 2 night(s)",)
    assert engine.check_availability(unit.id, days(0), days(6)).restrictions == ("Maximum stay is 5 night(s)",)

    unit.change_status(UnitStatus.MAINTENANCE, clock.now())
    result = engine.check_availability(unit.id, days(0), days(3))
    assert not result.available
    assert "maintenance" in result.restrictions[0]


def test_invalid_range_and_unknown_unit(engine, unit):
    with pytest.raises(ValidationError):
        engine.check_availability(unit.id, days(3), days(3))
    with pytest.raises(ValidationError):
        engine.check_availability(unit.id, days(3), days(1))
    with pytest.raises(NotFound):
        engine.check_availability(unit.owner_id, days(0), days(1))
