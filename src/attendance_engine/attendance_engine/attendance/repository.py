from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_open_for_user_and_date(self, user_id: str, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_recent_for_user(self, user_id: str, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_by_status(self, status: AttendanceStatus) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create_checkin(self, record: AttendanceRecord) -> int:
        """Insert a new open record and return its id.

        Must be atomic with respect to the one-open-record-per-(user, day) rule:
        raises AlreadyCheckedIn when an open record already exists.
        """

        raise NotImplementedError

    def compare_and_set(
        self,
        record: AttendanceRecord,
        *,
        expected_status: AttendanceStatus,
        expected_version: int,
    ) -> bool:
        """Persist ``record`` only if the stored row still has the expected status and version.

        The stored version is bumped on success. Returns False when another writer
        got there first; nothing is written in that case.
        """

        raise NotImplementedError
