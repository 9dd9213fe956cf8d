"""
Range Locks

Short-lived critical sections keyed by (unit, date range). Two holders
conflict only when they target the same unit and their half-open ranges
overlap, so confirmations for different weeks of the same unit proceed in
parallel.

The registry lives in-process. Across processes the Django repositories add
row locks (SELECT ... FOR UPDATE) inside the same unit of work.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Hashable, Iterator, List
from uuid import UUID, uuid4
import logging
import threading
import time

from shared.domain.exceptions import LockTimeout
from shared.domain.value_objects import DateRange

logger = logging.getLogger(__name__)


def _lock_timeout(key: Hashable, dates: DateRange, timeout: float) -> LockTimeout:
    return LockTimeout(
        f"Could not lock {key} for {dates} within {timeout}s",
        dates=str(dates),
        timeout=timeout,
    )


@dataclass(frozen=True)
class _Hold:
    key: Hashable
    dates: DateRange
    token: UUID = field(default_factory=uuid4)


class RangeLockRegistry:
    """
    Usage:
        locks = RangeLockRegistry()
        with locks.hold(unit_id, DateRange(check_in, check_out), timeout=5):
            ...  # re-check and write

    The hold is released on every exit path, including exceptions raised
    inside the block.
    """

    def __init__(self):
        self._condition = threading.Condition()
        self._holds: List[_Hold] = []

    def _blocked(self, key: Hashable, dates: DateRange) -> bool:
        return any(h.key == key and h.dates.overlaps_with(dates) for h in self._holds)

    def acquire(self, key: Hashable, dates: DateRange, timeout: float) -> _Hold:
        deadline = time.monotonic() + timeout
        with self._condition:
            while self._blocked(key, dates):
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logger.warning(f"Range lock timeout for {key} {dates}")
                    raise _lock_timeout(key, dates, timeout)
                self._condition.wait(remaining)
            hold = _Hold(key=key, dates=dates)
            self._holds.append(hold)
            return hold

    def release(self, hold: _Hold):
        with self._condition:
            try:
                self._holds.remove(hold)
            except ValueError:
                logger.error(f"Releasing unknown range lock {hold.token}")
                return
            self._condition.notify_all()

    @contextmanager
    def hold(self, key: Hashable, dates: DateRange, timeout: float = 5.0) -> Iterator[None]:
        acquired = self.acquire(key, dates, timeout)
        try:
            yield
        finally:
            self.release(acquired)

    @property
    def active_holds(self) -> int:
        with self._condition:
            return len(self._holds)


range_locks = RangeLockRegistry()
