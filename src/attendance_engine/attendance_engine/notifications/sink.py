from __future__ import annotations

import logging
from typing import Protocol

from .model import AttendanceEvent

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    """Fire-and-forget receiver of attendance events (chat webhook, push, ...)."""

    def publish(self, event: AttendanceEvent) -> None:
        raise NotImplementedError


class LoggingNotificationSink:
    def publish(self, event: AttendanceEvent) -> None:
        logger.info(
            "[%s] user=%s record=%s location=%s data=%s",
            event.type.value,
            event.user_id,
            event.record_id,
            event.location_name or "-",
            event.data,
        )


class Notifier:
    """Best-effort delivery: a failing sink never fails the attendance transition."""

    def __init__(self, sink: NotificationSink | None = None):
        self._sink = sink or LoggingNotificationSink()

    def notify(self, event: AttendanceEvent) -> bool:
        try:
            self._sink.publish(event)
            return True
        except Exception:
            logger.exception("Failed to send %s notification for record %s", event.type.value, event.record_id)
            return False
