from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used to guard HR-only review endpoints."""

    ADMIN = "admin"
    STAFF = "staff"


class AttendanceStatus(str, Enum):
    """Lifecycle state of an attendance record as stored in the database."""

    CHECKED_IN = "checked-in"
    COMPLETED = "completed"
    PENDING_APPROVAL = "pending-approval"


class CheckinMode(str, Enum):
    ONSITE = "onsite"
    OFFSITE = "offsite"


class Weekday(str, Enum):
    """Keys of a location's weekly working-hours table, Monday first."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_index(cls, index: int) -> "Weekday":
        # date.weekday(): Monday == 0
        return list(cls)[index]


class NotificationType(str, Enum):
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    OVERTIME_THRESHOLD = "overtime_threshold"
    FORGOTTEN_CHECKOUT = "forgotten_checkout"
    CHECKOUT_REMINDER = "checkout_reminder"
