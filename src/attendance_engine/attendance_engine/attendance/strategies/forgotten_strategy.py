from __future__ import annotations

from typing import Optional

from ...core.enums import AttendanceStatus
from .base import CloseStrategy, StatusDecision, exceeds_tolerance


class ForgottenCheckoutStrategy(CloseStrategy):
    """Closed by the sweep: always pending until HR confirms the real check-out."""

    def decide(self, *, minutes_past_close: Optional[int], tolerance_minutes: int) -> StatusDecision:
        return StatusDecision(
            status=AttendanceStatus.PENDING_APPROVAL,
            forgot_checkout=True,
            needs_overtime_approval=exceeds_tolerance(minutes_past_close, tolerance_minutes),
        )
