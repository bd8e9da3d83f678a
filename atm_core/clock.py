"""
Clock Module

Time source for transaction timestamps. Accounts and the ledger take any
zero-argument callable returning a timezone-aware datetime, so tests can
drive time explicitly with ManualClock.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from threading import Lock


Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Current UTC wall-clock time"""
    return datetime.now(timezone.utc)


class ManualClock:
    """
    Clock that only moves when told to.

    Time can only move forward, never backward.
    """

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
        self._lock = Lock()

    def __call__(self) -> datetime:
        with self._lock:
            return self._now

    def advance(self, **delta) -> datetime:
        """Move the clock forward by timedelta keyword arguments"""
        step = timedelta(**delta)
        if step < timedelta(0):
            raise ValueError("Cannot move time backwards")
        with self._lock:
            self._now = self._now + step
            return self._now

    def set(self, new_time: datetime) -> None:
        """
        Jump to a new time.

        Raises:
            ValueError: If new_time is before the current time
        """
        with self._lock:
            if new_time < self._now:
                raise ValueError(
                    f"Cannot move time backwards: {new_time} < {self._now}"
                )
            self._now = new_time
