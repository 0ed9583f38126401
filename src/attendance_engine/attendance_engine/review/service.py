"""HR review queue for records the engine could not close on its own."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..attendance.service import AttendanceService
from ..core.constants import DEFAULT_HISTORY_LIMIT, TRUST_SCORE_MIN_RECORDS
from ..core.enums import AttendanceStatus

logger = logging.getLogger(__name__)

CATEGORY_EXTENDED_EVENT = "extended_event"
CATEGORY_LATE_CLOSING = "late_closing"
CATEGORY_PAST_CLOSING = "past_closing"


@dataclass(frozen=True)
class PendingOvertimeInfo:
    approved_hours: Decimal
    actual_hours: Decimal
    overtime_hours: Decimal
    category: str

    def as_dict(self) -> dict:
        return {
            "approved_hours": float(self.approved_hours),
            "actual_hours": float(self.actual_hours),
            "overtime_hours": float(self.overtime_hours),
            "category": self.category,
        }


def overtime_category(extra_hours: Decimal) -> str:
    if extra_hours > 3:
        return CATEGORY_EXTENDED_EVENT
    if extra_hours > 2:
        return CATEGORY_LATE_CLOSING
    return CATEGORY_PAST_CLOSING


def trust_score(records: Sequence[AttendanceRecord]) -> int:
    """0-100 reliability score from a user's recent records; 0 without enough history."""
    total = len(records)
    if total < TRUST_SCORE_MIN_RECORDS:
        return 0
    forgot = sum(1 for r in records if r.forgot_checkout)
    manual = sum(1 for r in records if r.manual_checkout)
    late = sum(1 for r in records if r.is_late)

    score = 100 - (forgot / total) * 50 - (manual / total) * 30 - (late / total) * 20
    return max(0, round(score))


class ExceptionQueue:
    """Filtered views over pending-approval records plus the resolve action.

    Holds no state of its own; resolving delegates to AttendanceService.
    """

    def __init__(self, attendance: AttendanceRepository, service: AttendanceService):
        self._attendance = attendance
        self._service = service

    def _pending(self) -> list[AttendanceRecord]:
        records = list(self._attendance.list_by_status(AttendanceStatus.PENDING_APPROVAL))
        records.sort(key=lambda r: r.check_in_time, reverse=True)
        return records

    def forgotten_checkouts(self) -> list[AttendanceRecord]:
        return [r for r in self._pending() if r.forgot_checkout]

    def overtime_approvals(self) -> list[AttendanceRecord]:
        return [r for r in self._pending() if r.needs_overtime_approval and not r.forgot_checkout]

    def integrity_violations(self) -> list[AttendanceRecord]:
        """Pending records that are neither forgotten nor waiting for overtime approval."""
        broken = [r for r in self._pending() if not r.forgot_checkout and not r.needs_overtime_approval]
        for record in broken:
            logger.warning("Record %s is pending approval without a reason flag", record.record_id)
        return broken

    def pending_overtime_info(self, record: AttendanceRecord) -> Optional[PendingOvertimeInfo]:
        if record.check_out_time is None:
            return None
        approved = self._service.preview_hours(record, record.check_out_time, cap_at_close=True)
        actual = self._service.preview_hours(record, record.check_out_time, cap_at_close=False)
        extra = actual.total_hours - approved.total_hours
        return PendingOvertimeInfo(
            approved_hours=approved.total_hours,
            actual_hours=actual.total_hours,
            overtime_hours=extra,
            category=overtime_category(extra),
        )

    def trust_score_for(self, user_id: str, *, limit: int = DEFAULT_HISTORY_LIMIT) -> int:
        return trust_score(self._attendance.get_recent_for_user(user_id, limit))

    def resolve(
        self,
        record_id: int,
        approved_instant: datetime,
        approver_id: str,
        reason: str,
        approve_overtime_hours: bool,
        *,
        approver_name: Optional[str] = None,
    ) -> AttendanceRecord:
        return self._service.resolve_pending(
            record_id,
            approved_instant,
            approver_id,
            reason,
            approve_overtime_hours,
            approver_name=approver_name,
        )
