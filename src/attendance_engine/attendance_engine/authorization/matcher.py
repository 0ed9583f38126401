"""Check-in policy: geofence, user permissions and open shifts."""

from __future__ import annotations

from datetime import datetime
from typing import AbstractSet, Sequence

from ..core.enums import CheckinMode
from ..geo import resolver
from ..geo.model import GeoPoint
from ..locations.model import Location
from ..shifts.window import ShiftWindowEvaluator
from .model import AuthResult, Authorized, Denied

REASON_OFFSITE = "Offsite check-in"
REASON_NOT_IN_AREA = "Not within any permitted area"


class LocationMatcher:
    """Pure decision function over a position, an instant and a user's permissions."""

    def __init__(self, shift_windows: ShiftWindowEvaluator | None = None):
        self._windows = shift_windows or ShiftWindowEvaluator()

    def authorize(
        self,
        point: GeoPoint,
        instant: datetime,
        locations: Sequence[Location],
        allowed_ids: AbstractSet[str],
        allow_outside: bool,
    ) -> AuthResult:
        ranked = resolver.rank(point, locations)
        nearest = ranked[0] if ranked else None
        in_range = tuple(resolver.in_range(ranked))
        allowed = {str(i) for i in allowed_ids}
        permitted_in_range = [r for r in in_range if str(r.location.location_id) in allowed]

        if permitted_in_range:
            primary = permitted_in_range[0]
            shifts = tuple(self._windows.available_shifts(primary.location, instant))
            if not shifts:
                return Denied(
                    reason=f"No shift is open for check-in at {primary.location.name}",
                    nearest=nearest,
                    locations_in_range=in_range,
                )
            return Authorized(
                mode=CheckinMode.ONSITE,
                primary=primary,
                shifts=shifts,
                nearest=nearest,
                locations_in_range=in_range,
            )

        if allow_outside:
            reason = f"Offsite (near {in_range[0].location.name})" if in_range else REASON_OFFSITE
            return Authorized(
                mode=CheckinMode.OFFSITE,
                primary=None,
                nearest=nearest,
                locations_in_range=in_range,
                reason=reason,
            )

        if in_range:
            return Denied(
                reason=f"Not permitted to check in at {in_range[0].location.name}",
                nearest=nearest,
                locations_in_range=in_range,
            )

        return Denied(reason=REASON_NOT_IN_AREA, nearest=nearest, locations_in_range=in_range)
