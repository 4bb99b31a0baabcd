from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Union

DayLike = Union[datetime, date, str]


def start_of_day(value: DayLike) -> date:
    """Normalize a datetime, date or ISO string to its local calendar day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        return date.fromisoformat(value[:10])


def format_ts(value: datetime) -> str:
    return value.isoformat(timespec="seconds")


class Clock:
    """Wall clock in local time."""

    def now(self) -> datetime:
        return datetime.now()

    def today(self) -> date:
        return start_of_day(self.now())


class FixedClock(Clock):
    """Clock pinned to a given instant; moves only when told to."""

    def __init__(self, now: datetime):
        self._now = now

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now

    def advance(self, **delta) -> datetime:
        self._now = self._now + timedelta(**delta)
        return self._now
