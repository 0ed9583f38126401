"""Worked, regular and overtime hours.

Every figure is derived from scratch out of the two timestamps and the static
shift/location configuration, so recomputing a record with the same inputs
always yields the same numbers.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..common.datetime_utils import whole_minutes
from ..core.constants import OVERTIME_ALERT_HOURS
from ..core.exceptions import ClockSkew
from ..core.settings import EngineSettings
from ..shifts.model import Shift
from ..shifts.window import expected_checkout, shift_start_for
from .base import HoursBreakdown, HoursCalculator, OvertimeAlerts

ZERO = Decimal(0)
SIXTY = Decimal(60)


class StandardHoursCalculator(HoursCalculator):
    """Standard rule: (out - in) minus break, split at the standard day length."""

    def __init__(self, settings: EngineSettings | None = None):
        self._settings = settings or EngineSettings()

    def _quantize(self, value: Decimal) -> Decimal:
        return value.quantize(self._settings.hours_precision, rounding=ROUND_HALF_UP)

    def standard_hours_for(self, shift: Optional[Shift]) -> Decimal:
        if shift is not None and shift.standard_hours is not None:
            return Decimal(shift.standard_hours)
        return self._settings.standard_day_hours

    def compute(
        self,
        checkin: datetime,
        checkout: datetime,
        *,
        shift: Optional[Shift] = None,
        close_time: Optional[datetime] = None,
        break_hours: Decimal = ZERO,
        cap_at_close: bool = False,
    ) -> HoursBreakdown:
        if checkout < checkin:
            raise ClockSkew("Check-out time cannot be earlier than check-in time")

        effective = checkout
        if cap_at_close and close_time is not None and checkout > close_time:
            effective = max(close_time, checkin)

        raw = Decimal(whole_minutes(effective - checkin)) / SIXTY

        applied_break = ZERO
        threshold = self._settings.break_deduction_threshold_hours
        if raw > threshold:
            applied_break = min(Decimal(break_hours or 0), raw - threshold)

        total = self._quantize(raw - applied_break)
        standard = self.standard_hours_for(shift)
        regular = self._quantize(min(total, standard))
        overtime = self._quantize(max(ZERO, total - standard))

        late = self.late_minutes(checkin, shift)

        early = False
        if shift is not None:
            minutes_before_end = whole_minutes(expected_checkout(shift, checkin) - effective)
            early = minutes_before_end > shift.grace_minutes

        return HoursBreakdown(
            total_hours=total,
            regular_hours=regular,
            overtime_hours=overtime,
            break_hours=self._quantize(applied_break),
            is_late=late > 0,
            late_minutes=late,
            is_early_checkout=early,
            is_overnight=checkin.date() != effective.date(),
            effective_checkout=effective,
        )

    def late_minutes(self, checkin: datetime, shift: Optional[Shift]) -> int:
        if shift is None:
            return 0
        allowed_until = shift_start_for(shift, checkin) + timedelta(minutes=shift.late_buffer_minutes)
        if checkin <= allowed_until:
            return 0
        return whole_minutes(checkin - allowed_until)

    def minutes_past_close(self, checkout: datetime, close_time: Optional[datetime]) -> Optional[int]:
        """Whole minutes between the location's close and ``checkout``; None without a close time."""
        if close_time is None:
            return None
        return whole_minutes(checkout - close_time)

    def overtime_alerts(self, checkin: datetime, now: datetime) -> OvertimeAlerts:
        worked = Decimal(whole_minutes(now - checkin)) / SIXTY
        h8, h10, h12 = (worked >= h for h in OVERTIME_ALERT_HOURS)
        return OvertimeAlerts(hours_8=h8, hours_10=h10, hours_12=h12, is_overnight=checkin.date() != now.date())
