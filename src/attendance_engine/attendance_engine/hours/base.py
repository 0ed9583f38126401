from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..shifts.model import Shift


@dataclass(frozen=True)
class HoursBreakdown:
    total_hours: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    break_hours: Decimal
    is_late: bool
    late_minutes: int
    is_early_checkout: bool
    is_overnight: bool
    effective_checkout: datetime


@dataclass(frozen=True)
class OvertimeAlerts:
    hours_8: bool
    hours_10: bool
    hours_12: bool
    is_overnight: bool

    @property
    def any(self) -> bool:
        return self.hours_8 or self.hours_10 or self.hours_12


class HoursCalculator(ABC):
    """Calculator interface (Strategy Pattern for worked hours)."""

    @abstractmethod
    def compute(
        self,
        checkin: datetime,
        checkout: datetime,
        *,
        shift: Optional[Shift] = None,
        close_time: Optional[datetime] = None,
        break_hours: Decimal = Decimal(0),
        cap_at_close: bool = False,
    ) -> HoursBreakdown:
        raise NotImplementedError

    @abstractmethod
    def late_minutes(self, checkin: datetime, shift: Optional[Shift]) -> int:
        raise NotImplementedError
