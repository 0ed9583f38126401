from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import minutes_of_day
from ..core.exceptions import InvalidInput


@dataclass(frozen=True)
class Shift:
    """Work shift offered at a location.

    ``grace_minutes`` is how early before ``start_time`` a check-in is accepted,
    ``late_buffer_minutes`` how long after it a check-in still counts as on time.
    ``end_time`` before ``start_time`` means the shift runs past midnight.
    """

    shift_id: str
    shift_name: str
    start_time: time
    end_time: time
    grace_minutes: int = 0
    late_buffer_minutes: int = 0
    standard_hours: Optional[Decimal] = None

    def __post_init__(self):
        if self.grace_minutes < 0:
            raise InvalidInput("Shift grace minutes must be >= 0")
        if self.late_buffer_minutes < 0:
            raise InvalidInput("Shift late buffer must be >= 0")

    @property
    def is_overnight(self) -> bool:
        return minutes_of_day(self.end_time) < minutes_of_day(self.start_time)

    def as_dict(self) -> dict:
        return {
            "id": self.shift_id,
            "name": self.shift_name,
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "grace_minutes": self.grace_minutes,
        }
