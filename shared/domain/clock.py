"""
Explicit Clock

Engine code never reads wall-clock time directly. Services receive a Clock
and ask it for "now"; tests pass a FixedClock and move it forward by hand.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    """Injectable time source"""

    def now(self) -> datetime:
        """Return the current timezone-aware UTC time"""
        ...  # pragma: no cover


class SystemClock:
    """Production clock backed by the system time"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Test clock that only moves when told to

    Usage:
        clock = FixedClock(datetime(2026, 5, 1, 12, tzinfo=timezone.utc))
        clock.advance(minutes=31)
    """

    def __init__(self, at: datetime):
        if at.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")
        self._now = at

    def now(self) -> datetime:
        return self._now

    def set(self, at: datetime):
        self._now = at

    def advance(self, **delta) -> datetime:
        self._now = self._now + timedelta(**delta)
        return self._now


_default_clock: Clock = SystemClock()


def get_default_clock() -> Clock:
    return _default_clock


def set_default_clock(clock: Clock):
    global _default_clock
    _default_clock = clock


def utc_now() -> datetime:
    return _default_clock.now()


def today(clock: Clock) -> date:
    return clock.now().date()
