"""Tests for range locks, the message bus and the in-memory unit of work."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date

import pytest

from shared.application.locks import RangeLockRegistry
from shared.application.message_bus import MessageBus
from shared.application.uow import InMemoryUnitOfWork
from shared.domain.base import Aggregate, DomainEvent
from shared.domain.exceptions import LockTimeout
from shared.domain.value_objects import DateRange

JUNE_10_13 = DateRange(date(2026, 6, 10), date(2026, 6, 13))
JUNE_12_14 = DateRange(date(2026, 6, 12), date(2026, 6, 14))
JUNE_13_15 = DateRange(date(2026, 6, 13), date(2026, 6, 15))


@dataclass(kw_only=True)
class Pinged(DomainEvent):
    note: str = ""


@dataclass(kw_only=True, eq=False)
class Counter(Aggregate):
    value: int = 0

    def ping(self, note):
        self.value += 1
        self.add_event(Pinged(aggregate_id=self.id, note=note))


def test_overlapping_hold_times_out():
    locks = RangeLockRegistry()

    with locks.hold("unit-1", JUNE_10_13):
        with pytest.raises(LockTimeout) as excinfo:
            with locks.hold("unit-1", JUNE_12_14, timeout=0.05):
                pass

    assert excinfo.value.code == "lock_timeout"
    assert locks.active_holds == 0


def test_adjacent_ranges_and_other_units_do_not_block():
    locks = RangeLockRegistry()

    with locks.hold("unit-1", JUNE_10_13):
        with locks.hold("unit-1", JUNE_13_15, timeout=0.05):
            with locks.hold("unit-2", JUNE_10_13, timeout=0.05):
                assert locks.active_holds == 3


def test_hold_is_released_when_block_raises():
    locks = RangeLockRegistry()

    with pytest.raises(RuntimeError):
        with locks.hold("unit-1", JUNE_10_13):
            raise RuntimeError("boom")

    with locks.hold("unit-1", JUNE_10_13, timeout=0.05):
        assert locks.active_holds == 1


def test_waiter_proceeds_once_holder_releases():
    locks = RangeLockRegistry()
    order = []
    entered = threading.Event()

    def holder():
        with locks.hold("unit-1", JUNE_10_13):
            entered.set()
            order.append("holder")

    with locks.hold("unit-1", JUNE_10_13):
        thread = threading.Thread(target=holder)
        thread.start()
        assert not entered.wait(0.05)
        order.append("first")

    thread.join(timeout=2)
    assert order == ["first", "holder"]


def test_events_are_published_only_after_commit():
    bus = MessageBus()
    received = []
    bus.register_event_handler(Pinged, received.append)
    counter = Counter()

    with InMemoryUnitOfWork(bus=bus) as uow:
        counter.ping("one")
        uow.collect_events(counter)
        assert received == []

    assert [event.note for event in received] == ["one"]
    assert counter.events == []
    assert uow.committed


def test_rollback_discards_collected_events():
    bus = MessageBus()
    received = []
    bus.register_event_handler(Pinged, received.append)
    counter = Counter()

    with pytest.raises(ValueError):
        with InMemoryUnitOfWork(bus=bus) as uow:
            counter.ping("lost")
            uow.collect_events(counter)
            raise ValueError("abort")

    assert received == []
    assert not uow.committed


def test_failing_handler_does_not_stop_the_others():
    bus = MessageBus()
    received = []

    def broken(event):
        raise RuntimeError("handler failure")

    bus.register_event_handler(DomainEvent, broken)
    bus.register_event_handler(Pinged, received.append)
    bus.register_event_handler(Pinged, received.append)

    bus.publish_events([Pinged(note="x")])

    assert len(received) == 1
    assert bus.handlers_for(Pinged) == [received.append, broken]
