from __future__ import annotations

from typing import Optional

from ...core.enums import AttendanceStatus
from .base import CloseStrategy, StatusDecision


class CompletedStrategy(CloseStrategy):
    """Ordinary check-out within the overtime tolerance."""

    def decide(self, *, minutes_past_close: Optional[int], tolerance_minutes: int) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.COMPLETED)
