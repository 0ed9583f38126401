from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from decimal import Decimal
from types import ModuleType

from ..common.datetime_utils import parse_hhmm
from . import constants


@dataclass(frozen=True)
class EngineSettings:
    """Tunable thresholds of the geofencing and shift engine."""

    standard_day_hours: Decimal = Decimal(constants.DEFAULT_STANDARD_DAY_HOURS)
    overtime_tolerance_minutes: int = constants.DEFAULT_OVERTIME_TOLERANCE_MINUTES
    hours_precision: Decimal = Decimal(constants.DEFAULT_HOURS_PRECISION)
    auto_checkout_after_hours: int = constants.DEFAULT_AUTO_CHECKOUT_AFTER_HOURS
    default_checkout_time: time = constants.DEFAULT_CHECKOUT_TIME
    break_deduction_threshold_hours: Decimal = Decimal(constants.DEFAULT_BREAK_DEDUCTION_THRESHOLD_HOURS)
    location_timeout_seconds: float = constants.DEFAULT_LOCATION_TIMEOUT_SECONDS

    @classmethod
    def from_module(cls, settings: ModuleType) -> "EngineSettings":
        default_checkout = getattr(settings, "DEFAULT_CHECKOUT_TIME", None)
        return cls(
            standard_day_hours=Decimal(str(getattr(settings, "STANDARD_DAY_HOURS", constants.DEFAULT_STANDARD_DAY_HOURS))),
            overtime_tolerance_minutes=int(
                getattr(settings, "OVERTIME_TOLERANCE_MINUTES", constants.DEFAULT_OVERTIME_TOLERANCE_MINUTES)
            ),
            hours_precision=Decimal(str(getattr(settings, "HOURS_PRECISION", constants.DEFAULT_HOURS_PRECISION))),
            auto_checkout_after_hours=int(
                getattr(settings, "AUTO_CHECKOUT_AFTER_HOURS", constants.DEFAULT_AUTO_CHECKOUT_AFTER_HOURS)
            ),
            default_checkout_time=parse_hhmm(default_checkout) if default_checkout else constants.DEFAULT_CHECKOUT_TIME,
            break_deduction_threshold_hours=Decimal(
                str(
                    getattr(
                        settings,
                        "BREAK_DEDUCTION_THRESHOLD_HOURS",
                        constants.DEFAULT_BREAK_DEDUCTION_THRESHOLD_HOURS,
                    )
                )
            ),
            location_timeout_seconds=float(
                getattr(settings, "LOCATION_TIMEOUT_SECONDS", constants.DEFAULT_LOCATION_TIMEOUT_SECONDS)
            ),
        )
