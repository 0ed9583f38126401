from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ...core.enums import AttendanceStatus


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    needs_overtime_approval: bool = False
    forgot_checkout: bool = False
    note: Optional[str] = None


class CloseStrategy(ABC):
    """Strategy Pattern: encapsulate how a closing record is classified."""

    @abstractmethod
    def decide(self, *, minutes_past_close: Optional[int], tolerance_minutes: int) -> StatusDecision:
        raise NotImplementedError


def exceeds_tolerance(minutes_past_close: Optional[int], tolerance_minutes: int) -> bool:
    return minutes_past_close is not None and minutes_past_close > tolerance_minutes
