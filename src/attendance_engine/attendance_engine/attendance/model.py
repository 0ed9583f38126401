from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from ..core.enums import AttendanceStatus, CheckinMode
from ..geo.model import GeoPoint
from ..shifts.model import Shift

ZERO = Decimal(0)


@dataclass(frozen=True)
class EditHistoryEntry:
    """One audited change to a record's checkout time."""

    edited_by: str
    edited_by_name: str
    edited_at: datetime
    field: str
    old_value: Optional[datetime]
    new_value: Optional[datetime]
    reason: str
    overtime_approved: Optional[bool] = None

    def as_dict(self) -> dict:
        return {
            "edited_by": self.edited_by,
            "edited_by_name": self.edited_by_name,
            "edited_at": self.edited_at.isoformat(),
            "field": self.field,
            "old_value": self.old_value.isoformat() if self.old_value else None,
            "new_value": self.new_value.isoformat() if self.new_value else None,
            "reason": self.reason,
            "overtime_approved": self.overtime_approved,
        }


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one check-in of one user, open until checked out.

    Hours fields are only ever replaced together from a fresh HoursBreakdown.
    ``edit_history`` is append-only. ``reminders_sent`` holds the keys of the
    checkout reminders already delivered for this check-in.
    """

    record_id: int
    user_id: str
    work_date: date
    check_in_time: datetime
    check_in_point: GeoPoint
    mode: CheckinMode
    status: AttendanceStatus = AttendanceStatus.CHECKED_IN
    locations_in_range: tuple[str, ...] = ()
    primary_location_id: Optional[str] = None
    primary_location_name: Optional[str] = None
    shift: Optional[Shift] = None
    check_out_time: Optional[datetime] = None
    check_out_point: Optional[GeoPoint] = None

    total_hours: Decimal = ZERO
    regular_hours: Decimal = ZERO
    overtime_hours: Decimal = ZERO
    break_hours: Decimal = ZERO
    is_late: bool = False
    late_minutes: int = 0
    is_early_checkout: bool = False
    is_overnight: bool = False

    needs_overtime_approval: bool = False
    overtime_approved: bool = False
    forgot_checkout: bool = False
    auto_checkout: bool = False
    manual_checkout: bool = False

    note: Optional[str] = None
    auth_reason: Optional[str] = None
    edit_history: tuple[EditHistoryEntry, ...] = field(default_factory=tuple)
    reminders_sent: frozenset[str] = frozenset()
    version: int = 0

    @property
    def is_open(self) -> bool:
        return self.status == AttendanceStatus.CHECKED_IN

    def with_hours(self, hours: Any) -> "AttendanceRecord":
        return replace(
            self,
            total_hours=hours.total_hours,
            regular_hours=hours.regular_hours,
            overtime_hours=hours.overtime_hours,
            break_hours=hours.break_hours,
            is_late=hours.is_late,
            late_minutes=hours.late_minutes,
            is_early_checkout=hours.is_early_checkout,
            is_overnight=hours.is_overnight,
        )

    def with_edit(self, entry: EditHistoryEntry) -> "AttendanceRecord":
        return replace(self, edit_history=self.edit_history + (entry,))

    def as_dict(self) -> dict:
        return {
            "id": self.record_id,
            "user_id": self.user_id,
            "work_date": self.work_date.isoformat(),
            "status": self.status.value,
            "mode": self.mode.value,
            "check_in_time": self.check_in_time.isoformat(),
            "check_in_point": self.check_in_point.as_dict(),
            "check_out_time": self.check_out_time.isoformat() if self.check_out_time else None,
            "check_out_point": self.check_out_point.as_dict() if self.check_out_point else None,
            "locations_in_range": list(self.locations_in_range),
            "primary_location_id": self.primary_location_id,
            "primary_location_name": self.primary_location_name,
            "shift": self.shift.as_dict() if self.shift else None,
            "total_hours": float(self.total_hours),
            "regular_hours": float(self.regular_hours),
            "overtime_hours": float(self.overtime_hours),
            "break_hours": float(self.break_hours),
            "is_late": self.is_late,
            "late_minutes": self.late_minutes,
            "is_early_checkout": self.is_early_checkout,
            "is_overnight": self.is_overnight,
            "needs_overtime_approval": self.needs_overtime_approval,
            "overtime_approved": self.overtime_approved,
            "forgot_checkout": self.forgot_checkout,
            "auto_checkout": self.auto_checkout,
            "manual_checkout": self.manual_checkout,
            "note": self.note,
            "auth_reason": self.auth_reason,
            "edit_history": [e.as_dict() for e in self.edit_history],
            "reminders_sent": sorted(self.reminders_sent),
        }
