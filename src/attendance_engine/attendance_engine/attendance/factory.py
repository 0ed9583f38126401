from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .strategies.base import CloseStrategy, exceeds_tolerance
from .strategies.forgotten_strategy import ForgottenCheckoutStrategy
from .strategies.normal_strategy import CompletedStrategy
from .strategies.overtime_strategy import OvertimeApprovalStrategy


@dataclass
class CloseStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_checkout(self, *, minutes_past_close: Optional[int], tolerance_minutes: int) -> CloseStrategy:
        if exceeds_tolerance(minutes_past_close, tolerance_minutes):
            return OvertimeApprovalStrategy()
        return CompletedStrategy()

    def for_auto_close(self) -> CloseStrategy:
        return ForgottenCheckoutStrategy()
