"""Which shifts of a location accept a check-in at a given instant."""

from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Iterable

from ..core.constants import CHECKOUT_REMINDER_OFFSETS
from ..locations.model import Location
from .model import Shift

_DAY_SECONDS = 24 * 60 * 60


def _seconds_of_day(value: time) -> int:
    return value.hour * 3600 + value.minute * 60 + value.second


def _in_window(t: int, start: int, end: int) -> bool:
    """``start <= t < end`` on a 24h circle; ``end < start`` wraps past midnight."""
    if start == end:
        return True
    if end < start:
        return t >= start or t < end
    return start <= t < end


class ShiftWindowEvaluator:
    def is_open(self, location: Location, instant: datetime) -> bool:
        """Whether the working hours of the instant's own weekday contain it.

        Only that weekday's entry is consulted: after midnight inside an
        overnight opening, the answer comes from the new day's row.
        """
        hours = location.hours_for(instant.date())
        if hours is None or hours.is_closed:
            return False

        t = _seconds_of_day(instant.time())
        open_s = _seconds_of_day(hours.open)
        close_s = _seconds_of_day(hours.close)
        if close_s < open_s:
            return t >= open_s or t < close_s
        return open_s <= t < close_s

    def accepts(self, shift: Shift, instant: datetime) -> bool:
        earliest = (_seconds_of_day(shift.start_time) - shift.grace_minutes * 60) % _DAY_SECONDS
        return _in_window(_seconds_of_day(instant.time()), earliest, _seconds_of_day(shift.end_time))

    def available_shifts(self, location: Location, instant: datetime) -> list[Shift]:
        """Every shift whose ``[start - grace, end)`` window contains ``instant``.

        All qualifying shifts are returned in configuration order; choosing
        among them belongs to the caller.
        """
        if not self.is_open(location, instant):
            return []
        return [shift for shift in location.shifts if self.accepts(shift, instant)]


def shift_start_for(shift: Shift, checkin: datetime) -> datetime:
    """Start instant of the shift occurrence a check-in belongs to.

    A check-in in the after-midnight tail of an overnight shift belongs to the
    occurrence that started the previous day; one in a grace window that opens
    before midnight belongs to the occurrence starting the next day.
    """
    start = datetime.combine(checkin.date(), shift.start_time)
    earliest = start - timedelta(minutes=shift.grace_minutes)
    if shift.is_overnight:
        if checkin.time() < shift.end_time and checkin < earliest:
            start -= timedelta(days=1)
    elif earliest.date() < checkin.date() and checkin >= earliest + timedelta(days=1):
        start += timedelta(days=1)
    return start


def expected_checkout(shift: Shift, checkin: datetime) -> datetime:
    """Shift end for the occurrence ``checkin`` belongs to."""
    start = shift_start_for(shift, checkin)
    end = datetime.combine(start.date(), shift.end_time)
    if end <= start:
        end += timedelta(days=1)
    return end


def checkout_reminder_times(expected: datetime) -> dict[str, datetime]:
    """When each checkout reminder falls due, keyed by reminder name."""
    return {key: expected + timedelta(minutes=offset) for key, offset in CHECKOUT_REMINDER_OFFSETS}


def pending_reminders(expected: datetime, sent: Iterable[str], now: datetime) -> list[str]:
    """Reminders due at ``now`` and not delivered yet, earliest first."""
    already = set(sent)
    return [key for key, due in checkout_reminder_times(expected).items() if now >= due and key not in already]
