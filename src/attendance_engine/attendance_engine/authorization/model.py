from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from ..core.enums import CheckinMode
from ..geo.resolver import RankedLocation
from ..shifts.model import Shift


@dataclass(frozen=True)
class Authorized:
    """Check-in is allowed.

    ``primary`` is None for offsite check-ins. ``shifts`` holds the candidate
    shifts of the primary location; when there is more than one the calling
    layer asks the user to choose.
    """

    mode: CheckinMode
    primary: Optional[RankedLocation]
    shifts: tuple[Shift, ...] = ()
    nearest: Optional[RankedLocation] = None
    locations_in_range: tuple[RankedLocation, ...] = ()
    reason: Optional[str] = None

    allowed = True

    @property
    def selected_shift(self) -> Optional[Shift]:
        return self.shifts[0] if len(self.shifts) == 1 else None

    @property
    def needs_shift_selection(self) -> bool:
        return len(self.shifts) > 1

    def as_dict(self) -> dict:
        return {
            "allowed": True,
            "mode": self.mode.value,
            "primary_location": self.primary.as_dict() if self.primary else None,
            "shifts": [s.as_dict() for s in self.shifts],
            "nearest_location": self.nearest.as_dict() if self.nearest else None,
            "locations_in_range": [r.as_dict() for r in self.locations_in_range],
            "reason": self.reason,
        }


@dataclass(frozen=True)
class Denied:
    reason: str
    nearest: Optional[RankedLocation] = None
    locations_in_range: tuple[RankedLocation, ...] = ()

    allowed = False

    def as_dict(self) -> dict:
        return {
            "allowed": False,
            "reason": self.reason,
            "nearest_location": self.nearest.as_dict() if self.nearest else None,
            "locations_in_range": [r.as_dict() for r in self.locations_in_range],
        }


AuthResult = Union[Authorized, Denied]
