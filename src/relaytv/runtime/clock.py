"""Wall-clock abstractions used for live-offset computation.

Live playback is measured against wall-clock time: a viewer joining a live
session that started 45 seconds ago is told to start 45 seconds in.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Protocol implemented by clock providers."""

    def now_utc(self) -> datetime:
        """Return the current UTC time as an aware datetime."""

    def seconds_since(self, dt: datetime) -> float:
        """Return non-negative seconds elapsed since ``dt``."""


def _ensure_aware(dt: datetime) -> None:
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        raise ValueError("Datetime must be timezone-aware")


def seconds_between(start: datetime, end: datetime) -> float:
    """Return non-negative seconds from ``start`` to ``end``."""
    _ensure_aware(start)
    _ensure_aware(end)
    return max(0.0, (end - start).total_seconds())


class MasterClock:
    """Real clock providing timezone-aware timestamps."""

    def now_utc(self) -> datetime:
        """Return current UTC time as an aware datetime."""
        return datetime.now(timezone.utc)

    def seconds_since(self, dt: datetime) -> float:
        """Return non-negative seconds elapsed since the given timestamp."""
        return seconds_between(dt, self.now_utc())


class SteppedClock:
    """Deterministic clock used for tests.

    Time advances only when :meth:`advance` is called.
    """

    def __init__(self, start: datetime | None = None) -> None:
        start = start or datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        _ensure_aware(start)
        self._current = start
        self._lock = Lock()

    def now_utc(self) -> datetime:
        with self._lock:
            return self._current

    def seconds_since(self, dt: datetime) -> float:
        return seconds_between(dt, self.now_utc())

    def advance(self, seconds: float) -> datetime:
        """Advance the clock by ``seconds`` (must be non-negative)."""
        if seconds < 0.0:
            raise ValueError("seconds must be non-negative")
        with self._lock:
            self._current += timedelta(seconds=seconds)
            return self._current
