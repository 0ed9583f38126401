"""In-memory collaborators and builders shared by the test suites."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from decimal import Decimal
from typing import Callable, Optional

from src.attendance_engine.attendance_engine.attendance.model import AttendanceRecord
from src.attendance_engine.attendance_engine.common.datetime_utils import FixedClock
from src.attendance_engine.attendance_engine.container import Container, wire
from src.attendance_engine.attendance_engine.core.enums import AttendanceStatus, Role, Weekday
from src.attendance_engine.attendance_engine.core.exceptions import AlreadyCheckedIn
from src.attendance_engine.attendance_engine.core.settings import EngineSettings
from src.attendance_engine.attendance_engine.locations.model import Location, WorkingHours
from src.attendance_engine.attendance_engine.notifications.sink import Notifier
from src.attendance_engine.attendance_engine.shifts.model import Shift
from src.attendance_engine.attendance_engine.users.model import User

STORE_LAT = 10.7769
STORE_LNG = 106.7009
# ~20 m north of the store
NEAR_STORE = (10.7771, 106.7009)
# ~5.5 km away
FAR_AWAY = (10.8269, 106.7009)


def every_day(open_: time, close: time) -> dict:
    return {day: WorkingHours(open=open_, close=close) for day in Weekday}


def day_shift(**overrides) -> Shift:
    values = dict(
        shift_id="day",
        shift_name="Day",
        start_time=time(9, 0),
        end_time=time(18, 0),
        grace_minutes=15,
    )
    values.update(overrides)
    return Shift(**values)


def store(**overrides) -> Location:
    values = dict(
        location_id="store-1",
        name="Riverside Store",
        lat=STORE_LAT,
        lng=STORE_LNG,
        radius=100,
        working_hours=every_day(time(7, 0), time(18, 0)),
        shifts=(day_shift(),),
    )
    values.update(overrides)
    return Location(**values)


def staff(**overrides) -> User:
    values = dict(
        user_id="u1",
        full_name="Staff One",
        role=Role.STAFF,
        allowed_location_ids=frozenset({"store-1"}),
    )
    values.update(overrides)
    return User(**values)


class InMemoryLocations:
    def __init__(self, locations=(), *, fail: bool = False):
        self.locations = list(locations)
        self.fail = fail

    def list_active(self):
        if self.fail:
            raise RuntimeError("directory offline")
        return [loc for loc in self.locations if loc.is_active]

    def get_by_id(self, location_id):
        if self.fail:
            raise RuntimeError("directory offline")
        for loc in self.locations:
            if loc.location_id == location_id:
                return loc
        return None


@dataclass
class InMemoryUsers:
    users_by_id: dict[str, User] = field(default_factory=dict)
    fail: bool = False

    def get_by_id(self, user_id: str) -> Optional[User]:
        if self.fail:
            raise RuntimeError("permission store offline")
        return self.users_by_id.get(user_id)


class InMemoryAttendance:
    """Thread-safe store with the same atomic guarantees as the MySQL repository."""

    def __init__(self):
        self._lock = threading.Lock()
        self._records: dict[int, AttendanceRecord] = {}
        self._id = 0
        self.before_compare_and_set: Optional[Callable[[AttendanceRecord], None]] = None

    def add(self, record: AttendanceRecord) -> AttendanceRecord:
        with self._lock:
            self._id = max(self._id, record.record_id)
            self._records[record.record_id] = record
        return record

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        with self._lock:
            return self._records.get(int(record_id))

    def get_open_for_user_and_date(self, user_id: str, work_date: date) -> Optional[AttendanceRecord]:
        with self._lock:
            for r in self._records.values():
                if r.user_id == user_id and r.work_date == work_date and r.is_open:
                    return r
        return None

    def get_recent_for_user(self, user_id: str, limit: int):
        with self._lock:
            items = [r for r in self._records.values() if r.user_id == user_id]
        items.sort(key=lambda r: r.check_in_time, reverse=True)
        return items[:limit]

    def list_by_status(self, status: AttendanceStatus):
        with self._lock:
            return [r for r in self._records.values() if r.status == status]

    def create_checkin(self, record: AttendanceRecord) -> int:
        with self._lock:
            for r in self._records.values():
                if r.user_id == record.user_id and r.work_date == record.work_date and r.is_open:
                    raise AlreadyCheckedIn("You have already checked in today")
            self._id += 1
            self._records[self._id] = replace(record, record_id=self._id, version=0)
            return self._id

    def compare_and_set(self, record: AttendanceRecord, *, expected_status, expected_version) -> bool:
        hook = self.before_compare_and_set
        if hook is not None:
            self.before_compare_and_set = None
            hook(record)
        with self._lock:
            current = self._records.get(record.record_id)
            if current is None or current.status != expected_status or current.version != expected_version:
                return False
            self._records[record.record_id] = replace(record, version=current.version + 1)
            return True


class RecordingSink:
    def __init__(self):
        self.events = []

    def publish(self, event) -> None:
        self.events.append(event)

    def types(self) -> list:
        return [e.type for e in self.events]


class FailingSink:
    def publish(self, event) -> None:
        raise ConnectionError("webhook down")


@dataclass
class Harness:
    container: Container
    locations: InMemoryLocations
    users: InMemoryUsers
    attendance: InMemoryAttendance
    sink: RecordingSink
    clock: FixedClock

    @property
    def service(self):
        return self.container.attendance_service


def build_harness(
    *,
    locations=None,
    users=None,
    now: datetime = datetime(2025, 3, 3, 8, 52),
    settings: EngineSettings | None = None,
    sink=None,
) -> Harness:
    location_repo = InMemoryLocations(locations if locations is not None else [store()])
    user_list = users if users is not None else [staff(), staff(user_id="hr", full_name="HR Lead", role=Role.ADMIN)]
    user_repo = InMemoryUsers({u.user_id: u for u in user_list})
    attendance = InMemoryAttendance()
    recording = sink if sink is not None else RecordingSink()
    clock = FixedClock(now)
    container = wire(
        locations_repo=location_repo,
        users_repo=user_repo,
        attendance_repo=attendance,
        settings=settings or EngineSettings(),
        clock=clock,
        notifier=Notifier(recording),
    )
    return Harness(
        container=container,
        locations=location_repo,
        users=user_repo,
        attendance=attendance,
        sink=recording,
        clock=clock,
    )


def hours(value: str) -> Decimal:
    return Decimal(value)
