from datetime import datetime

from src.attendance_engine.attendance_engine.attendance.model import AttendanceRecord
from src.attendance_engine.attendance_engine.core.enums import CheckinMode, NotificationType
from src.attendance_engine.attendance_engine.geo.model import GeoPoint
from tests.fakes import NEAR_STORE, FailingSink, build_harness


def reminder_events(h):
    return [e for e in h.sink.events if e.type == NotificationType.CHECKOUT_REMINDER]


def test_nothing_is_sent_before_the_first_reminder_is_due():
    h = build_harness()
    h.service.check_in("u1", *NEAR_STORE)

    report = h.container.reminders.run(now=datetime(2025, 3, 3, 17, 44))

    assert report.sent == 0
    assert report.items == ()
    assert reminder_events(h) == []


def test_due_reminders_are_sent_once_and_remembered():
    h = build_harness()
    record = h.service.check_in("u1", *NEAR_STORE)

    first = h.container.reminders.run(now=datetime(2025, 3, 3, 17, 50))
    again = h.container.reminders.run(now=datetime(2025, 3, 3, 17, 55))

    assert first.items[0].reminders == ("15min",)
    assert again.sent == 0
    assert h.attendance.get_by_id(record.record_id).reminders_sent == frozenset({"15min"})
    assert len(reminder_events(h)) == 1


def test_overdue_reminders_are_batched_into_one_notification():
    h = build_harness()
    record = h.service.check_in("u1", *NEAR_STORE)
    h.container.reminders.run(now=datetime(2025, 3, 3, 17, 50))

    report = h.container.reminders.run(now=datetime(2025, 3, 3, 19, 5))

    assert report.items[0].reminders == ("30min", "1hour")
    event = reminder_events(h)[-1]
    assert event.record_id == record.record_id
    assert event.data["reminders"] == ["30min", "1hour"]
    assert event.data["latest"] == "1hour"
    assert event.data["expected_checkout"] == "2025-03-03T18:00:00"
    assert event.data["minutes_from_expected"] == 65


def test_closed_records_get_no_reminders():
    h = build_harness()
    record = h.service.check_in("u1", *NEAR_STORE)
    h.service.check_out(record.record_id, *NEAR_STORE, now=datetime(2025, 3, 3, 17, 30))

    report = h.container.reminders.run(now=datetime(2025, 3, 3, 20, 30))

    assert report.items == ()
    assert reminder_events(h) == []


def test_records_without_a_shift_are_skipped():
    h = build_harness()
    h.attendance.add(
        AttendanceRecord(
            record_id=9,
            user_id="u1",
            work_date=datetime(2025, 3, 3).date(),
            check_in_time=datetime(2025, 3, 3, 8, 0),
            check_in_point=GeoPoint(*NEAR_STORE),
            mode=CheckinMode.OFFSITE,
        )
    )

    report = h.container.reminders.run(now=datetime(2025, 3, 3, 22, 0))

    assert report.items == ()
    assert h.attendance.get_by_id(9).reminders_sent == frozenset()


def test_failing_sink_does_not_resend():
    h = build_harness(sink=FailingSink())
    record = h.service.check_in("u1", *NEAR_STORE)

    first = h.container.reminders.run(now=datetime(2025, 3, 3, 17, 50))
    again = h.container.reminders.run(now=datetime(2025, 3, 3, 17, 55))

    assert first.sent == 1
    assert first.errors == []
    assert again.sent == 0
    assert h.attendance.get_by_id(record.record_id).reminders_sent == frozenset({"15min"})
