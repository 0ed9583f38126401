"""Daily sweep closing records whose owner forgot to check out.

Safe to interrupt and re-run: each record's state is re-checked under its
lock before closing, and records already closed are skipped silently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from ..attendance.model import AttendanceRecord
from ..attendance.service import AttendanceService
from ..common.datetime_utils import Clock, SystemClock, at_time
from ..core.exceptions import NotCheckedIn
from ..core.settings import EngineSettings
from ..shifts.window import expected_checkout

logger = logging.getLogger(__name__)

ACTION_CLOSED = "closed"
ACTION_WOULD_CLOSE = "would_close"
ACTION_SKIPPED = "skipped"
ACTION_ERROR = "error"


@dataclass(frozen=True)
class SweepItem:
    record_id: int
    user_id: str
    check_in_time: datetime
    fallback_checkout: Optional[datetime]
    action: str
    message: str = ""

    def as_dict(self) -> dict:
        return {
            "record_id": self.record_id,
            "user_id": self.user_id,
            "check_in_time": self.check_in_time.isoformat(),
            "fallback_checkout": self.fallback_checkout.isoformat() if self.fallback_checkout else None,
            "action": self.action,
            "message": self.message,
        }


@dataclass(frozen=True)
class SweepReport:
    run_at: datetime
    dry_run: bool
    items: tuple[SweepItem, ...] = field(default_factory=tuple)

    def _count(self, action: str) -> int:
        return sum(1 for i in self.items if i.action == action)

    @property
    def processed(self) -> int:
        return self._count(ACTION_CLOSED)

    @property
    def would_close(self) -> int:
        return self._count(ACTION_WOULD_CLOSE)

    @property
    def skipped(self) -> int:
        return self._count(ACTION_SKIPPED)

    @property
    def errors(self) -> list[str]:
        return [f"{i.record_id}: {i.message}" for i in self.items if i.action == ACTION_ERROR]

    def as_dict(self) -> dict:
        return {
            "run_at": self.run_at.isoformat(),
            "dry_run": self.dry_run,
            "processed": self.processed,
            "would_close": self.would_close,
            "skipped": self.skipped,
            "errors": self.errors,
            "items": [i.as_dict() for i in self.items],
        }


class AutoCheckoutSweep:
    def __init__(
        self,
        service: AttendanceService,
        *,
        settings: EngineSettings | None = None,
        clock: Clock | None = None,
    ):
        self._service = service
        self._settings = settings or EngineSettings()
        self._clock = clock or SystemClock()

    def is_stale(self, record: AttendanceRecord, now: datetime) -> bool:
        return now - record.check_in_time > timedelta(hours=self._settings.auto_checkout_after_hours)

    def fallback_checkout(self, record: AttendanceRecord, now: datetime) -> datetime:
        """Checkout instant assumed for a forgotten record.

        Shift end if the record has a shift, else the location's close time,
        else the default checkout time of the check-in day. Never before the
        check-in and never after the sweep itself.
        """
        checkin = record.check_in_time
        if record.shift is not None:
            fallback = expected_checkout(record.shift, checkin)
        else:
            fallback = self._service.close_time_for(record)
            if fallback is None:
                fallback = at_time(checkin.date(), self._settings.default_checkout_time)
                if fallback <= checkin:
                    fallback = checkin + timedelta(hours=float(self._settings.standard_day_hours))
        return max(checkin, min(fallback, now))

    def reason_text(self) -> str:
        return (
            "Automatic checkout: no check-out recorded within "
            f"{self._settings.auto_checkout_after_hours} hours of check-in"
        )

    def run(self, *, dry_run: bool = False, now: datetime | None = None) -> SweepReport:
        run_at = now or self._clock.now()
        stale = [r for r in self._service.list_open() if self.is_stale(r, run_at)]
        stale.sort(key=lambda r: r.check_in_time)
        logger.info("[auto-checkout] %d stale open record(s) found (dry_run=%s)", len(stale), dry_run)

        items: list[SweepItem] = []
        for record in stale:
            fallback: Optional[datetime] = None
            try:
                fallback = self.fallback_checkout(record, run_at)
                if dry_run:
                    items.append(self._item(record, fallback, ACTION_WOULD_CLOSE))
                    continue
                self._service.auto_close(record.record_id, fallback, self.reason_text())
                items.append(self._item(record, fallback, ACTION_CLOSED))
            except NotCheckedIn:
                # Closed by the user or an earlier run in the meantime.
                items.append(self._item(record, fallback, ACTION_SKIPPED, "already closed"))
            except Exception as e:
                logger.exception("[auto-checkout] failed to close record %s", record.record_id)
                items.append(self._item(record, fallback, ACTION_ERROR, str(e) or type(e).__name__))

        report = SweepReport(run_at=run_at, dry_run=dry_run, items=tuple(items))
        logger.info(
            "[auto-checkout] processed=%d would_close=%d skipped=%d errors=%d",
            report.processed,
            report.would_close,
            report.skipped,
            len(report.errors),
        )
        return report

    @staticmethod
    def _item(record: AttendanceRecord, fallback: Optional[datetime], action: str, message: str = "") -> SweepItem:
        return SweepItem(
            record_id=record.record_id,
            user_id=record.user_id,
            check_in_time=record.check_in_time,
            fallback_checkout=fallback,
            action=action,
            message=message,
        )
