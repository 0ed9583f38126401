from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Protocol

from ..core.exceptions import InvalidInput


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        raise InvalidInput(f"Invalid timestamp: {value!r}")


def parse_hhmm(value: str | time) -> time:
    """Parse "HH:MM" (or "HH:MM:SS") into a time of day."""
    if isinstance(value, time):
        return value
    v = (value or "").strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(v, fmt).time()
        except ValueError:
            continue
    raise InvalidInput(f"Invalid time of day (HH:MM): {value!r}")


def minutes_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def at_time(day: date, value: time, *, next_day: bool = False) -> datetime:
    moment = datetime.combine(day, value)
    return moment + timedelta(days=1) if next_day else moment


def whole_minutes(delta: timedelta) -> int:
    """Whole minutes in ``delta``, truncated toward zero."""
    return int(delta.total_seconds() / 60)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


class Clock(Protocol):
    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock:
    def now(self) -> datetime:
        return now_local()


class FixedClock:
    """Clock pinned to an instant; ``advance`` moves it forward."""

    def __init__(self, instant: datetime):
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        self._instant = instant

    def advance(self, **kwargs) -> datetime:
        self._instant = self._instant + timedelta(**kwargs)
        return self._instant
