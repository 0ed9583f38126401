from __future__ import annotations

from typing import Optional

from ...core.enums import AttendanceStatus
from .base import CloseStrategy, StatusDecision


class OvertimeApprovalStrategy(CloseStrategy):
    """Check-out past the location's close time by more than the tolerance."""

    def decide(self, *, minutes_past_close: Optional[int], tolerance_minutes: int) -> StatusDecision:
        return StatusDecision(
            status=AttendanceStatus.PENDING_APPROVAL,
            needs_overtime_approval=True,
            note=f"Checked out {minutes_past_close} minutes after closing",
        )
