"""Periodic pass sending checkout reminders for open shift records."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from ..attendance.service import AttendanceService
from ..common.datetime_utils import Clock, SystemClock
from ..core.exceptions import NotCheckedIn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReminderItem:
    record_id: int
    user_id: str
    reminders: tuple[str, ...] = ()
    error: str = ""

    def as_dict(self) -> dict:
        return {
            "record_id": self.record_id,
            "user_id": self.user_id,
            "reminders": list(self.reminders),
            "error": self.error or None,
        }


@dataclass(frozen=True)
class ReminderReport:
    run_at: datetime
    items: tuple[ReminderItem, ...] = field(default_factory=tuple)

    @property
    def sent(self) -> int:
        return sum(len(i.reminders) for i in self.items)

    @property
    def errors(self) -> list[str]:
        return [f"{i.record_id}: {i.error}" for i in self.items if i.error]

    def as_dict(self) -> dict:
        return {
            "run_at": self.run_at.isoformat(),
            "sent": self.sent,
            "errors": self.errors,
            "items": [i.as_dict() for i in self.items],
        }


class CheckoutReminderPass:
    def __init__(self, service: AttendanceService, *, clock: Clock | None = None):
        self._service = service
        self._clock = clock or SystemClock()

    def run(self, *, now: datetime | None = None) -> ReminderReport:
        run_at = now or self._clock.now()
        items: list[ReminderItem] = []
        for record in self._service.list_open():
            if record.shift is None:
                continue
            try:
                sent = self._service.send_checkout_reminders(record.record_id, now=run_at)
            except NotCheckedIn:
                continue
            except Exception as e:
                logger.exception("[reminders] failed for record %s", record.record_id)
                items.append(ReminderItem(record.record_id, record.user_id, error=str(e) or type(e).__name__))
                continue
            if sent:
                items.append(ReminderItem(record.record_id, record.user_id, reminders=sent))

        report = ReminderReport(run_at=run_at, items=tuple(items))
        logger.info("[reminders] sent=%d errors=%d", report.sent, len(report.errors))
        return report
