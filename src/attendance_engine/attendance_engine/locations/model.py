from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Mapping, Optional

from ..common.datetime_utils import at_time, minutes_of_day
from ..core.enums import Weekday
from ..core.exceptions import InvalidInput
from ..geo.model import GeoPoint
from ..shifts.model import Shift


@dataclass(frozen=True)
class WorkingHours:
    """Opening window for one weekday. ``close < open`` denotes an overnight window."""

    open: time
    close: time
    is_closed: bool = False

    @property
    def is_overnight(self) -> bool:
        return minutes_of_day(self.close) < minutes_of_day(self.open)

    @classmethod
    def closed(cls) -> "WorkingHours":
        return cls(open=time(0, 0), close=time(0, 0), is_closed=True)


@dataclass(frozen=True)
class Location:
    """Physical workplace with a circular geofence."""

    location_id: str
    name: str
    lat: float
    lng: float
    radius: float
    is_active: bool = True
    working_hours: Mapping[Weekday, WorkingHours] = field(default_factory=dict)
    shifts: tuple[Shift, ...] = ()
    break_hours: Decimal = Decimal(0)

    def __post_init__(self):
        if not self.radius or self.radius <= 0:
            raise InvalidInput(f"Location radius must be > 0 (location {self.location_id})")

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(self.lat, self.lng)

    def hours_for(self, day: date) -> Optional[WorkingHours]:
        return self.working_hours.get(Weekday.from_index(day.weekday()))

    def close_time_for(self, day: date) -> Optional[datetime]:
        """Closing instant of the working window that opens on ``day``.

        None when the location is closed that day or has no entry for it.
        """
        hours = self.hours_for(day)
        if hours is None or hours.is_closed:
            return None
        return at_time(day, hours.close, next_day=hours.is_overnight)

    def find_shift(self, shift_id: Optional[str]) -> Optional[Shift]:
        if shift_id is None:
            return None
        for shift in self.shifts:
            if str(shift.shift_id) == str(shift_id):
                return shift
        return None
